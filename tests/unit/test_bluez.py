from types import SimpleNamespace

import pytest
from dbus_next.constants import MessageType

from gatt_peripheral.bluez import find_adapter_path
from gatt_peripheral.constants import ADAPTER_IFACE, GATT_MANAGER_IFACE, LE_ADVERTISING_MANAGER_IFACE
from gatt_peripheral.errors import ConfigurationError


class ReplyBus:
    def __init__(self, reply):
        self.reply = reply
        self.sent = []

    async def call(self, message):
        self.sent.append(message)
        return self.reply


def _reply(objects):
    return SimpleNamespace(message_type=MessageType.METHOD_RETURN, body=[objects], error_name=None)


@pytest.mark.asyncio
async def test_first_capable_adapter_is_used() -> None:
    bus = ReplyBus(_reply({
        "/org/bluez": {},
        "/org/bluez/hci1": {ADAPTER_IFACE: {}, GATT_MANAGER_IFACE: {}, LE_ADVERTISING_MANAGER_IFACE: {}},
        "/org/bluez/hci0": {ADAPTER_IFACE: {}, GATT_MANAGER_IFACE: {}},
    }))

    assert await find_adapter_path(bus) == "/org/bluez/hci1"
    assert bus.sent[0].member == "GetManagedObjects"
    assert bus.sent[0].path == "/"


@pytest.mark.asyncio
async def test_no_capable_adapter() -> None:
    bus = ReplyBus(_reply({"/org/bluez/hci0": {ADAPTER_IFACE: {}}}))

    with pytest.raises(ConfigurationError):
        await find_adapter_path(bus)


@pytest.mark.asyncio
async def test_error_reply() -> None:
    bus = ReplyBus(SimpleNamespace(
        message_type=MessageType.ERROR,
        body=["The name org.bluez was not provided by any .service files"],
        error_name="org.freedesktop.DBus.Error.ServiceUnknown",
    ))

    with pytest.raises(ConfigurationError, match="ServiceUnknown"):
        await find_adapter_path(bus)
