from typing import Optional

from dbus_next.errors import DBusError


class GattError(DBusError):
    """Fault answered to a remote caller as a D-Bus error reply."""

    error_name = "org.bluez.Error.Failed"

    def __init__(self, text: str = "", member: Optional[str] = None):
        super().__init__(self.error_name, text or self.error_name)
        self.member = member


class NotSupportedError(GattError):
    error_name = "org.bluez.Error.NotSupported"


class InvalidValueLengthError(GattError):
    error_name = "org.bluez.Error.InvalidValueLength"


class InvalidArgumentsError(GattError):
    error_name = "org.bluez.Error.InvalidArguments"


class UnknownObjectError(GattError):
    error_name = "org.freedesktop.DBus.Error.UnknownObject"


class UnknownInterfaceError(GattError):
    error_name = "org.freedesktop.DBus.Error.UnknownInterface"


class UnknownPropertyError(GattError):
    error_name = "org.freedesktop.DBus.Error.UnknownProperty"


class ConfigurationError(Exception):
    """Malformed object tree or environment; fatal at startup."""


class RegistrationError(Exception):
    """BlueZ rejected RegisterApplication or RegisterAdvertisement."""

    def __init__(self, call: str, message: str):
        super().__init__(f"{call} failed: {message}")
        self.call = call
        self.message = message
