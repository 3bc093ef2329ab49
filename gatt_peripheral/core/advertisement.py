import logging
from typing import Iterable

from dbus_next.constants import PropertyAccess
from dbus_next.service import dbus_property, method

from ..constants import LE_ADVERTISEMENT_IFACE
from .members import AdvertisementMethod, AdvertisementProperty
from .node import GATTNode

logger = logging.getLogger(__name__)


class Advertisement(GATTNode):
    PROPERTIES = AdvertisementProperty
    METHODS = AdvertisementMethod

    def __init__(self, path, local_name, service_uuids: Iterable[str], ad_type='peripheral', includes: Iterable[str] = ()):
        self.local_name = local_name
        self.service_uuids = list(service_uuids)
        self.ad_type = ad_type
        self.includes = list(includes)
        self.released = False
        super().__init__(LE_ADVERTISEMENT_IFACE, path)

    def _property_getters(self):
        return {
            AdvertisementProperty.TYPE: lambda: self.ad_type,
            AdvertisementProperty.SERVICE_UUIDS: lambda: list(self.service_uuids),
            AdvertisementProperty.LOCAL_NAME: lambda: self.local_name,
            AdvertisementProperty.INCLUDES: lambda: list(self.includes),
        }

    def _method_handlers(self):
        return {AdvertisementMethod.RELEASE: self.release}

    @dbus_property(access=PropertyAccess.READ)
    def Type(self) -> 's':
        return self.ad_type

    @dbus_property(access=PropertyAccess.READ)
    def LocalName(self) -> 's':
        return self.local_name

    @dbus_property(access=PropertyAccess.READ)
    def ServiceUUIDs(self) -> 'as':
        return list(self.service_uuids)

    @dbus_property(access=PropertyAccess.READ)
    def Includes(self) -> 'as':
        return list(self.includes)

    @method()
    def Release(self):
        self.release()

    def release(self) -> None:
        # BlueZ calls this when it drops the advertisement on its own
        self.released = True
        logger.info("Advertisement %s released", self.path)
