import re
import uuid
from typing import Any, Dict, Optional

from .constants import BASE_UUID_SUFFIX
from .errors import ConfigurationError

__all__ = ["normalize_uuid", "uuid_to_name", "is_valid_address", "path_to_address", "device_address"]

KNOWN_UUIDS = {
    "0000180d-0000-1000-8000-00805f9b34fb": "Heart Rate",
    "0000180f-0000-1000-8000-00805f9b34fb": "Battery",
    "0000180a-0000-1000-8000-00805f9b34fb": "Device Info",
    "6e400001-b5a3-f393-e0a9-e50e24dcca9e": "Nordic UART",
}

_ADDRESS_RE = re.compile(r"^[0-9A-Fa-f]{2}(:[0-9A-Fa-f]{2}){5}$")


def normalize_uuid(value: str) -> str:
    """Return the canonical lowercase dashed form of a UUID.

    16 bit ("180D") and 32 bit ("0000180D") short forms are expanded against
    the Bluetooth base UUID.
    """
    text = str(value).strip().lower()
    if text.startswith("0x"):
        text = text[2:]
    if len(text) == 4:
        text = "0000" + text + BASE_UUID_SUFFIX
    elif len(text) == 8:
        text = text + BASE_UUID_SUFFIX
    try:
        return str(uuid.UUID(text))
    except ValueError as exc:
        raise ConfigurationError(f"Invalid UUID {value!r}") from exc


def uuid_to_name(value: str) -> str:
    try:
        return KNOWN_UUIDS.get(normalize_uuid(value), "Unknown")
    except ConfigurationError:
        return "Unknown"


def is_valid_address(address: Optional[str]) -> bool:
    """True for a colon separated 48 bit address such as AA:BB:CC:DD:EE:FF."""
    if not address:
        return False
    return bool(_ADDRESS_RE.match(address))


def path_to_address(device_path: Optional[str]) -> Optional[str]:
    """Convert a BlueZ device object path (.../dev_AA_BB_...) to an address."""
    if not device_path:
        return None
    last = str(device_path).split("/")[-1]
    if not last.startswith("dev_"):
        return None
    address = last[4:].replace("_", ":").upper()
    return address if is_valid_address(address) else None


def device_address(options: Optional[Dict[str, Any]]) -> Optional[str]:
    """Address of the remote central from ReadValue/WriteValue options."""
    if not options:
        return None
    device = options.get("device")
    if device is None:
        return None
    return path_to_address(getattr(device, "value", device))
