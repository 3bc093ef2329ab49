"""Expose a Linux machine as a BLE GATT peripheral through BlueZ over D-Bus."""

from .core import Advertisement, Dispatcher, GATTApplication, GATTCharacteristic, GATTService, ObjectTree, ValueStore
from .errors import ConfigurationError, GattError, InvalidValueLengthError, NotSupportedError, RegistrationError
from .profile import Profile, load_profile
from .scheduler import NotificationScheduler
from .server import LifecycleState, PeripheralServer

__version__ = "0.1.0"

__all__ = [
    "Advertisement",
    "ConfigurationError",
    "Dispatcher",
    "GATTApplication",
    "GATTCharacteristic",
    "GATTService",
    "GattError",
    "InvalidValueLengthError",
    "LifecycleState",
    "NotSupportedError",
    "NotificationScheduler",
    "ObjectTree",
    "PeripheralServer",
    "Profile",
    "RegistrationError",
    "ValueStore",
    "load_profile",
]
