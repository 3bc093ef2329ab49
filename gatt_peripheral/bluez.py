import logging
from typing import Tuple

from dbus_next.constants import MessageType
from dbus_next.errors import InterfaceNotFoundError
from dbus_next.message import Message

from .constants import BLUEZ, DBUS_OM_IFACE, GATT_MANAGER_IFACE, LE_ADVERTISING_MANAGER_IFACE
from .errors import ConfigurationError

logger = logging.getLogger(__name__)


async def find_adapter_path(bus) -> str:
    """Object path of the first adapter offering both GATT and advertising managers."""
    message = Message(
        destination=BLUEZ,
        path="/",
        interface=DBUS_OM_IFACE,
        member="GetManagedObjects",
    )
    reply = await bus.call(message)
    if reply.message_type == MessageType.ERROR:
        raise ConfigurationError(
            f"GetManagedObjects failed: {reply.error_name} {reply.body}"
        )

    objects = reply.body[0]
    for path, interfaces in sorted(objects.items()):
        if GATT_MANAGER_IFACE in interfaces and LE_ADVERTISING_MANAGER_IFACE in interfaces:
            logger.info("Using adapter %s", path)
            return path

    raise ConfigurationError("No bluetooth adapter with GATT and advertising support found.")


async def get_managers(bus, adapter_path: str) -> Tuple[object, object]:
    """Proxy interfaces for org.bluez.GattManager1 and org.bluez.LEAdvertisingManager1."""
    intro = await bus.introspect(BLUEZ, adapter_path)
    adapter = bus.get_proxy_object(BLUEZ, adapter_path, intro)
    try:
        gatt_mgr = adapter.get_interface(GATT_MANAGER_IFACE)
        adv_mgr = adapter.get_interface(LE_ADVERTISING_MANAGER_IFACE)
    except InterfaceNotFoundError as exc:
        raise ConfigurationError(f"Adapter {adapter_path} cannot act as a peripheral: {exc}") from exc
    return gatt_mgr, adv_mgr
