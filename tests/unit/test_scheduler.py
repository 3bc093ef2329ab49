"""Tests for the periodic value producer."""

from __future__ import annotations

import asyncio

import pytest

from gatt_peripheral.constants import GATT_CHRC_IFACE
from gatt_peripheral.core import Dispatcher
from gatt_peripheral.scheduler import NotificationScheduler, count_value
from tests.conftest import record_emissions

CHAR_PATH = "/org/bluez/example/service0/char0"


def test_count_value() -> None:
    assert count_value(7) == b"Count: 7"


def test_interval_must_be_positive(heart_rate_tree) -> None:
    with pytest.raises(ValueError):
        NotificationScheduler(heart_rate_tree.scheduled[0], interval=0)


def test_heart_rate_read_subscribe_tick(heart_rate_tree, bus) -> None:
    heart_rate_tree.expose(bus)
    dispatcher = Dispatcher(heart_rate_tree)
    characteristic = heart_rate_tree.lookup(CHAR_PATH)
    emitted = record_emissions(characteristic)
    scheduler = NotificationScheduler(characteristic, interval=60)

    assert dispatcher.invoke(CHAR_PATH, GATT_CHRC_IFACE, "ReadValue", ({},)) == b"Hello BLE!"

    dispatcher.invoke(CHAR_PATH, GATT_CHRC_IFACE, "StartNotify")
    scheduler.tick()

    assert emitted == [{"Value": b"Count: 1"}]
    assert dispatcher.invoke(CHAR_PATH, GATT_CHRC_IFACE, "ReadValue", ({},)) == b"Count: 1"


def test_tick_without_subscriber_updates_value_silently(heart_rate_tree) -> None:
    characteristic = heart_rate_tree.scheduled[0]
    emitted = record_emissions(characteristic)
    scheduler = NotificationScheduler(characteristic, interval=60)

    scheduler.tick()
    scheduler.tick()

    assert emitted == []
    assert characteristic.read_value() == b"Count: 2"


def test_stop_notify_ends_emissions(heart_rate_tree) -> None:
    characteristic = heart_rate_tree.scheduled[0]
    emitted = record_emissions(characteristic)
    scheduler = NotificationScheduler(characteristic, interval=60)

    characteristic.start_notify()
    scheduler.tick()
    characteristic.stop_notify()
    scheduler.tick()

    assert emitted == [{"Value": b"Count: 1"}]


def test_custom_producer(heart_rate_tree) -> None:
    characteristic = heart_rate_tree.scheduled[0]
    scheduler = NotificationScheduler(characteristic, interval=60, producer=lambda n: bytes([0, 60 + n]))

    assert scheduler.tick() == b"\x00\x3d"


@pytest.mark.asyncio
async def test_start_and_stop(heart_rate_tree) -> None:
    characteristic = heart_rate_tree.scheduled[0]
    emitted = record_emissions(characteristic)
    characteristic.start_notify()
    scheduler = NotificationScheduler(characteristic, interval=0.01)

    scheduler.start()
    assert scheduler.running
    await asyncio.sleep(0.1)
    await scheduler.stop()

    assert not scheduler.running
    assert scheduler.counter >= 1
    assert emitted[0] == {"Value": b"Count: 1"}
    count = scheduler.counter
    await asyncio.sleep(0.05)
    assert scheduler.counter == count


@pytest.mark.asyncio
async def test_stop_before_start_is_harmless(heart_rate_tree) -> None:
    scheduler = NotificationScheduler(heart_rate_tree.scheduled[0])

    await scheduler.stop()

    assert not scheduler.running
