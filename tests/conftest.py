"""Fakes standing in for the D-Bus connection and the BlueZ managers."""

from __future__ import annotations

import asyncio
from typing import Optional

import pytest

from gatt_peripheral.core import ObjectTree
from gatt_peripheral.profile import BUILTIN_PROFILES


class FakeBus:
    """Records export/unexport the way dbus_next.aio.MessageBus would see them."""

    def __init__(self, refuse: Optional[str] = None):
        self.exported: dict = {}
        self.log: list = []
        self.refuse = refuse
        self.disconnected = False
        self.handlers: list = []

    def export(self, path, interface) -> None:
        if path == self.refuse:
            raise ValueError(f"refusing to export {path}")
        if path in self.exported:
            raise ValueError(f"An interface is already exported at {path}")
        self.exported[path] = interface
        self.log.append(("export", path))

    def unexport(self, path, interface=None) -> None:
        self.exported.pop(path, None)
        self.log.append(("unexport", path))

    def add_message_handler(self, handler) -> None:
        self.handlers.append(handler)

    def remove_message_handler(self, handler) -> None:
        self.handlers.remove(handler)

    def deliver(self, msg):
        """First reply a user handler produces, as MessageBus._process_message would send it."""
        for handler in self.handlers:
            reply = handler(msg)
            if reply:
                return reply
        return None

    def disconnect(self) -> None:
        self.disconnected = True


class FakeGattManager:
    def __init__(self, calls: list, register_error: Exception | None = None,
                 unregister_error: Exception | None = None, register_delay: float = 0):
        self.calls = calls
        self.register_error = register_error
        self.unregister_error = unregister_error
        self.register_delay = register_delay

    async def call_register_application(self, path, options):
        self.calls.append(("RegisterApplication", path))
        if self.register_delay:
            await asyncio.sleep(self.register_delay)
        if self.register_error is not None:
            raise self.register_error

    async def call_unregister_application(self, path):
        self.calls.append(("UnregisterApplication", path))
        if self.unregister_error is not None:
            raise self.unregister_error


class FakeAdvertisingManager:
    def __init__(self, calls: list, register_error: Exception | None = None,
                 unregister_error: Exception | None = None, unregister_hang: bool = False):
        self.calls = calls
        self.register_error = register_error
        self.unregister_error = unregister_error
        self.unregister_hang = unregister_hang

    async def call_register_advertisement(self, path, options):
        self.calls.append(("RegisterAdvertisement", path))
        if self.register_error is not None:
            raise self.register_error

    async def call_unregister_advertisement(self, path):
        self.calls.append(("UnregisterAdvertisement", path))
        if self.unregister_hang:
            await asyncio.sleep(3600)
        await asyncio.sleep(0)
        self.calls.append(("UnregisterAdvertisement done", path))
        if self.unregister_error is not None:
            raise self.unregister_error


@pytest.fixture
def bus() -> FakeBus:
    return FakeBus()


@pytest.fixture
def calls() -> list:
    return []


@pytest.fixture
def simple_tree() -> ObjectTree:
    return ObjectTree.from_profile(BUILTIN_PROFILES["simple"])


@pytest.fixture
def heart_rate_tree() -> ObjectTree:
    return ObjectTree.from_profile(BUILTIN_PROFILES["heart-rate"])


def record_emissions(characteristic) -> list:
    """Replace emit_properties_changed on one characteristic with a recorder."""
    emitted: list = []

    def _emit(changed, invalidated=None):
        emitted.append(dict(changed))

    characteristic.emit_properties_changed = _emit
    return emitted
