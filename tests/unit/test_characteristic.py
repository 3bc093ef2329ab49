"""Tests for characteristic access rules and notifications."""

from __future__ import annotations

import threading

import pytest
from dbus_next.signature import Variant

from gatt_peripheral.core import GATTCharacteristic, GATTService
from gatt_peripheral.errors import NotSupportedError
from gatt_peripheral.scheduler import NotificationScheduler, count_value
from tests.conftest import record_emissions

SERVICE_UUID = "12345678-1234-5678-1234-56789abcdef0"
CHAR_UUID = "12345678-1234-5678-1234-56789abcdef1"
SERVICE_PATH = "/org/bluez/example/service0"


def _make(flags, value=b"Hello BLE!", capacity=256) -> GATTCharacteristic:
    service = GATTService(SERVICE_PATH, SERVICE_UUID)
    characteristic = GATTCharacteristic(f"{SERVICE_PATH}/char0", CHAR_UUID, flags, service, value, capacity)
    service.add_characteristic(characteristic)
    return characteristic


@pytest.mark.parametrize(
    "flags",
    [[], ["write"], ["notify"], ["write", "notify"], ["write-without-response", "indicate"], ["broadcast"]],
)
def test_read_without_read_flag_is_not_supported(flags) -> None:
    """No read flag means ReadValue never returns data."""
    characteristic = _make(flags)

    with pytest.raises(NotSupportedError) as excinfo:
        characteristic.read_value({})

    assert excinfo.value.type == "org.bluez.Error.NotSupported"
    assert excinfo.value.member == "ReadValue"


def test_read_returns_initial_value() -> None:
    assert _make(["read"]).read_value({}) == b"Hello BLE!"


@pytest.mark.parametrize("flags", [["read"], ["read", "notify"], ["indicate"]])
def test_write_without_write_flag_is_not_supported(flags) -> None:
    characteristic = _make(flags)

    with pytest.raises(NotSupportedError):
        characteristic.write_value(b"new", {})

    assert characteristic.store.read() == b"Hello BLE!"


@pytest.mark.parametrize("flag", ["write", "write-without-response"])
def test_write_flag_accepts_writes(flag) -> None:
    characteristic = _make(["read", flag])

    result = characteristic.write_value(b"updated", {})

    assert result is None
    assert characteristic.read_value({}) == b"updated"


def test_oversized_write_value_stores_capacity_bytes() -> None:
    """A write 10 bytes over a 256 byte capacity stores exactly 256 bytes."""
    characteristic = _make(["read", "write"])

    characteristic.write_value(b"x" * 266, {})

    assert characteristic.read_value({}) == b"x" * 256


def test_write_value_does_not_notify_by_itself() -> None:
    characteristic = _make(["read", "write", "notify"])
    emitted = record_emissions(characteristic)
    characteristic.start_notify()

    characteristic.write_value(b"quiet", {})

    assert emitted == []


def test_write_value_accepts_device_option() -> None:
    characteristic = _make(["write"])
    options = {"device": Variant("o", "/org/bluez/hci0/dev_AA_BB_CC_DD_EE_FF")}

    characteristic.write_value(b"from phone", options)

    assert characteristic.store.read() == b"from phone"


@pytest.mark.parametrize("flags", [["read"], ["read", "write"]])
def test_subscribe_without_notify_or_indicate_is_not_supported(flags) -> None:
    characteristic = _make(flags)

    with pytest.raises(NotSupportedError):
        characteristic.start_notify()
    with pytest.raises(NotSupportedError):
        characteristic.stop_notify()

    assert characteristic.notifying is False


@pytest.mark.parametrize("flag", ["notify", "indicate"])
def test_start_and_stop_notify_toggle_subscription(flag) -> None:
    characteristic = _make(["read", flag])

    characteristic.start_notify()
    characteristic.start_notify()
    assert characteristic.notifying is True

    characteristic.stop_notify()
    assert characteristic.notifying is False


def test_notify_emits_value_only_when_subscribed() -> None:
    characteristic = _make(["read", "notify"])
    emitted = record_emissions(characteristic)

    characteristic.notify(b"first")
    characteristic.start_notify()
    characteristic.notify(b"second")

    assert emitted == [{"Value": b"second"}]
    assert characteristic.read_value({}) == b"second"


def test_notify_emits_the_stored_truncated_value() -> None:
    characteristic = _make(["read", "notify"], value=b"", capacity=4)
    emitted = record_emissions(characteristic)
    characteristic.start_notify()

    characteristic.notify(b"abcdefgh")

    assert emitted == [{"Value": b"abcd"}]


def test_properties_expose_typed_values() -> None:
    characteristic = _make(["read", "notify"])

    props = characteristic.properties()

    assert props == {
        "UUID": CHAR_UUID,
        "Service": SERVICE_PATH,
        "Flags": ["read", "notify"],
        "Value": b"Hello BLE!",
        "Notifying": False,
        "Descriptors": [],
    }


def test_service_lists_its_characteristics_in_order() -> None:
    service = GATTService(SERVICE_PATH, SERVICE_UUID)
    first = GATTCharacteristic(f"{SERVICE_PATH}/char0", CHAR_UUID, ["read"], service)
    second = GATTCharacteristic(f"{SERVICE_PATH}/char1", CHAR_UUID, ["read"], service)
    service.add_characteristic(first)
    service.add_characteristic(second)

    assert service.get_property("Characteristics") == [first.path, second.path]
    assert service.get_property("Primary") is True


def test_scheduled_notifications_and_remote_writes_do_not_interleave() -> None:
    """Every pushed value is a whole produced value, even while a central writes."""
    characteristic = _make(["read", "write", "notify"], value=b"", capacity=16)
    characteristic.start_notify()
    emitted = record_emissions(characteristic)
    scheduler = NotificationScheduler(characteristic, interval=60)
    remote = b"R" * 40

    def produce():
        for _ in range(300):
            scheduler.tick()

    def write():
        for _ in range(300):
            characteristic.write_value(remote, {})

    threads = [threading.Thread(target=produce), threading.Thread(target=write)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert [e["Value"] for e in emitted] == [count_value(n) for n in range(1, 301)]
    assert characteristic.read_value() in (count_value(300), remote[:16])
