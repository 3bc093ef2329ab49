from dbus_next.constants import PropertyAccess
from dbus_next.service import dbus_property

from ..constants import GATT_SERVICE_IFACE
from .members import ServiceMethod, ServiceProperty
from .node import GATTNode


class GATTService(GATTNode):
    PROPERTIES = ServiceProperty
    METHODS = ServiceMethod

    def __init__(self, path: str, uuid: str, primary: bool = True):
        self.uuid = uuid
        self.primary = primary
        self.characteristics = []
        super().__init__(GATT_SERVICE_IFACE, path)

    def add_characteristic(self, characteristic):
        self.characteristics.append(characteristic)

    def _property_getters(self):
        return {
            ServiceProperty.UUID: lambda: self.uuid,
            ServiceProperty.PRIMARY: lambda: self.primary,
            ServiceProperty.CHARACTERISTICS: lambda: [c.path for c in self.characteristics],
            ServiceProperty.INCLUDES: lambda: [],
        }

    @dbus_property(access=PropertyAccess.READ)
    def UUID(self) -> 's':
        return self.uuid

    @dbus_property(access=PropertyAccess.READ)
    def Primary(self) -> 'b':
        return self.primary

    @dbus_property(access=PropertyAccess.READ)
    def Characteristics(self) -> 'ao':
        return [c.path for c in self.characteristics]

    @dbus_property(access=PropertyAccess.READ)
    def Includes(self) -> 'ao':
        return []
