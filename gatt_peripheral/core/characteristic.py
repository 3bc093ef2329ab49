import logging
from typing import Iterable

from dbus_next.constants import PropertyAccess
from dbus_next.service import dbus_property, method

from ..constants import DEFAULT_VALUE_CAPACITY, GATT_CHRC_IFACE, NOTIFY_FLAGS, READ_FLAGS, WRITE_FLAGS
from ..errors import NotSupportedError
from ..uuids import device_address
from .members import CharacteristicMethod, CharacteristicProperty
from .node import GATTNode
from .store import TRUNCATE, ValueStore

logger = logging.getLogger(__name__)


class GATTCharacteristic(GATTNode):
    PROPERTIES = CharacteristicProperty
    METHODS = CharacteristicMethod

    def __init__(
        self,
        path: str,
        uuid: str,
        flags: Iterable[str],
        service,
        initial_value: bytes = b"",
        capacity: int = DEFAULT_VALUE_CAPACITY,
        overflow: str = TRUNCATE,
    ):
        self.uuid = uuid
        self.flags = list(flags)
        self.service = service
        self.store = ValueStore(initial_value, capacity, overflow)
        self.notifying = False
        super().__init__(GATT_CHRC_IFACE, path)

    @property
    def readable(self) -> bool:
        return any(flag in self.flags for flag in READ_FLAGS)

    @property
    def writable(self) -> bool:
        return any(flag in self.flags for flag in WRITE_FLAGS)

    @property
    def notifiable(self) -> bool:
        return any(flag in self.flags for flag in NOTIFY_FLAGS)

    def _property_getters(self):
        return {
            CharacteristicProperty.UUID: lambda: self.uuid,
            CharacteristicProperty.SERVICE: lambda: self.service.path,
            CharacteristicProperty.FLAGS: lambda: list(self.flags),
            CharacteristicProperty.VALUE: self.store.read,
            CharacteristicProperty.NOTIFYING: lambda: self.notifying,
            CharacteristicProperty.DESCRIPTORS: lambda: [],
        }

    def _method_handlers(self):
        return {
            CharacteristicMethod.READ_VALUE: self.read_value,
            CharacteristicMethod.WRITE_VALUE: self.write_value,
            CharacteristicMethod.START_NOTIFY: self.start_notify,
            CharacteristicMethod.STOP_NOTIFY: self.stop_notify,
        }

    @dbus_property(access=PropertyAccess.READ)
    def UUID(self) -> 's':
        return self.uuid

    @dbus_property(access=PropertyAccess.READ)
    def Service(self) -> 'o':
        return self.service.path

    @dbus_property(access=PropertyAccess.READ)
    def Flags(self) -> 'as':
        return list(self.flags)

    @dbus_property(access=PropertyAccess.READ)
    def Value(self) -> 'ay':
        return self.store.read()

    @dbus_property(access=PropertyAccess.READ)
    def Notifying(self) -> 'b':
        return self.notifying

    @dbus_property(access=PropertyAccess.READ)
    def Descriptors(self) -> 'ao':
        return []

    @method()
    def ReadValue(self, options: 'a{sv}') -> 'ay':
        return self.read_value(options)

    @method()
    def WriteValue(self, value: 'ay', options: 'a{sv}'):
        self.write_value(value, options)

    @method()
    def StartNotify(self):
        self.start_notify()

    @method()
    def StopNotify(self):
        self.stop_notify()

    def read_value(self, options=None) -> bytes:
        if not self.readable:
            raise NotSupportedError("Read not supported", member="ReadValue")
        value = self.store.read()
        logger.debug("[READ] %s from %s -> %r", self.path, device_address(options) or "unknown", value)
        return value

    def write_value(self, value, options=None) -> None:
        """
        Store a value written by a central.

        Subscribers are not notified; a push is the job of whoever drives
        the characteristic (see notify()).
        """
        if not self.writable:
            raise NotSupportedError("Write not supported", member="WriteValue")
        stored = self.store.write(value)
        logger.info("[WRITE] %s from %s: %r", self.path, device_address(options) or "unknown", stored)

    def start_notify(self) -> None:
        if not self.notifiable:
            raise NotSupportedError("Notify not supported", member="StartNotify")
        with self.store.lock:
            if self.notifying:
                return
            self.notifying = True
        logger.info("[CCCD] Notifications enabled on %s", self.path)

    def stop_notify(self) -> None:
        if not self.notifiable:
            raise NotSupportedError("Notify not supported", member="StopNotify")
        with self.store.lock:
            if not self.notifying:
                return
            self.notifying = False
        logger.info("[CCCD] Notifications disabled on %s", self.path)

    def notify(self, value) -> bytes:
        """Write ``value`` and push it to the subscriber if one is listening."""
        with self.store.lock:
            stored = self.store.write(value)
            notifying = self.notifying
        if notifying:
            self.emit_properties_changed({"Value": stored})
            logger.debug("[NOTIFY] %s sent %r", self.path, stored)
        else:
            logger.debug("[NOTIFY] %s skipped (no client subscribed)", self.path)
        return stored
