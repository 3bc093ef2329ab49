import binascii
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .constants import (
    ADVERTISEMENT_INCLUDES,
    ADVERTISEMENT_TYPES,
    CHARACTERISTIC_FLAGS,
)
from .core.store import check_capacity
from .errors import ConfigurationError
from .uuids import normalize_uuid

logger = logging.getLogger(__name__)

SIMPLE_SERVICE_UUID = "12345678-1234-5678-1234-56789abcdef0"
SIMPLE_CHARACTERISTIC_UUID = "12345678-1234-5678-1234-56789abcdef1"
HEART_RATE_SERVICE_UUID = "0000180d-0000-1000-8000-00805f9b34fb"
HEART_RATE_MEASUREMENT_UUID = "00002a37-0000-1000-8000-00805f9b34fb"


@dataclass(frozen=True)
class CharacteristicSpec:
    uuid: str
    flags: Tuple[str, ...]
    initial_value: bytes = b""
    # None takes the capacity the tree is built with
    capacity: Optional[int] = None
    # driven by the notification scheduler
    scheduled: bool = False


@dataclass(frozen=True)
class ServiceSpec:
    uuid: str
    characteristics: Tuple[CharacteristicSpec, ...] = ()
    primary: bool = True


@dataclass(frozen=True)
class AdvertisementSpec:
    local_name: str
    ad_type: str = "peripheral"
    # None advertises every service in the profile
    service_uuids: Optional[Tuple[str, ...]] = None
    includes: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Profile:
    name: str
    services: Tuple[ServiceSpec, ...]
    advertisement: AdvertisementSpec = field(default_factory=lambda: AdvertisementSpec("GATT-Peripheral"))


BUILTIN_PROFILES: Dict[str, Profile] = {
    "simple": Profile(
        name="simple",
        services=(
            ServiceSpec(
                SIMPLE_SERVICE_UUID,
                (CharacteristicSpec(SIMPLE_CHARACTERISTIC_UUID, ("read", "write"), b"Hello BLE!"),),
            ),
        ),
        advertisement=AdvertisementSpec("Simple-Peripheral", includes=("tx-power",)),
    ),
    "notify": Profile(
        name="notify",
        services=(
            ServiceSpec(
                SIMPLE_SERVICE_UUID,
                (CharacteristicSpec(SIMPLE_CHARACTERISTIC_UUID, ("read", "notify"), b"Count: 0", scheduled=True),),
            ),
        ),
        advertisement=AdvertisementSpec("BLE-Notify"),
    ),
    "heart-rate": Profile(
        name="heart-rate",
        services=(
            ServiceSpec(
                HEART_RATE_SERVICE_UUID,
                (CharacteristicSpec(HEART_RATE_MEASUREMENT_UUID, ("read", "notify"), b"Hello BLE!", scheduled=True),),
            ),
        ),
        advertisement=AdvertisementSpec("BLE-HeartRate"),
    ),
}


def _decode_value(raw: Dict[str, Any]) -> bytes:
    if "value_hex" in raw:
        try:
            return binascii.unhexlify(str(raw["value_hex"]).replace(" ", ""))
        except (binascii.Error, ValueError) as exc:
            raise ConfigurationError(f"invalid value_hex {raw['value_hex']!r}") from exc
    value = raw.get("value", "")
    if not isinstance(value, str):
        raise ConfigurationError("characteristic value must be a string")
    return value.encode("utf-8")


def _parse_characteristic(raw: Dict[str, Any]) -> CharacteristicSpec:
    if not isinstance(raw, dict) or "uuid" not in raw:
        raise ConfigurationError("characteristic needs a uuid")
    flags = raw.get("flags", ["read"])
    if not isinstance(flags, list) or not flags or not all(isinstance(f, str) for f in flags):
        raise ConfigurationError("characteristic flags must be a non-empty list of strings")
    unknown = [f for f in flags if f not in CHARACTERISTIC_FLAGS]
    if unknown:
        raise ConfigurationError(f"unknown characteristic flags: {', '.join(unknown)}")
    capacity = raw.get("capacity")
    if capacity is not None:
        check_capacity(capacity)
    value = _decode_value(raw)
    if capacity is not None and len(value) > capacity:
        raise ConfigurationError(f"initial value of {len(value)} bytes exceeds capacity {capacity}")
    return CharacteristicSpec(
        uuid=normalize_uuid(raw["uuid"]),
        flags=tuple(flags),
        initial_value=value,
        capacity=capacity,
        scheduled=bool(raw.get("scheduled", False)),
    )


def _parse_service(raw: Dict[str, Any]) -> ServiceSpec:
    if not isinstance(raw, dict) or "uuid" not in raw:
        raise ConfigurationError("service needs a uuid")
    characteristics = raw.get("characteristics", [])
    if not isinstance(characteristics, list):
        raise ConfigurationError("service characteristics must be a list")
    return ServiceSpec(
        uuid=normalize_uuid(raw["uuid"]),
        characteristics=tuple(_parse_characteristic(c) for c in characteristics),
        primary=bool(raw.get("primary", True)),
    )


def _parse_advertisement(raw: Dict[str, Any], name: str) -> AdvertisementSpec:
    if not isinstance(raw, dict):
        raise ConfigurationError("advertisement must be a JSON object")
    ad_type = raw.get("type", "peripheral")
    if ad_type not in ADVERTISEMENT_TYPES:
        raise ConfigurationError(f"advertisement type must be one of {', '.join(ADVERTISEMENT_TYPES)}")
    includes = raw.get("includes", [])
    if not isinstance(includes, list) or not all(isinstance(i, str) for i in includes):
        raise ConfigurationError("advertisement includes must be a list of strings")
    includes = tuple(includes)
    unknown = [i for i in includes if i not in ADVERTISEMENT_INCLUDES]
    if unknown:
        raise ConfigurationError(f"unknown advertisement includes: {', '.join(unknown)}")
    service_uuids = raw.get("service_uuids")
    if service_uuids is not None:
        if not isinstance(service_uuids, list):
            raise ConfigurationError("advertisement service_uuids must be a list")
        service_uuids = tuple(normalize_uuid(u) for u in service_uuids)
    return AdvertisementSpec(
        local_name=str(raw.get("local_name", name)),
        ad_type=ad_type,
        service_uuids=service_uuids,
        includes=includes,
    )


def parse_profile(data: Dict[str, Any], name: str = "custom") -> Profile:
    """Build a Profile from its JSON form, raising ConfigurationError on any defect."""
    if not isinstance(data, dict):
        raise ConfigurationError("profile must be a JSON object")
    name = str(data.get("name", name))
    services = data.get("services", [])
    if not isinstance(services, list):
        raise ConfigurationError("profile services must be a list")
    services = tuple(_parse_service(s) for s in services)
    if not services:
        raise ConfigurationError(f"profile {name} defines no services")
    if sum(1 for s in services for c in s.characteristics if c.scheduled) > 1:
        raise ConfigurationError("at most one characteristic can be scheduled")
    return Profile(
        name=name,
        services=services,
        advertisement=_parse_advertisement(data.get("advertisement", {}), name),
    )


def load_profile(name_or_path: str) -> Profile:
    """Return a built-in profile by name, or parse the JSON file at that path."""
    if name_or_path in BUILTIN_PROFILES:
        return BUILTIN_PROFILES[name_or_path]
    path = Path(name_or_path)
    if not path.is_file():
        raise ConfigurationError(
            f"unknown profile {name_or_path!r} (built-in: {', '.join(sorted(BUILTIN_PROFILES))})"
        )
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"cannot read profile {path}: {exc}") from exc
    logger.info("Loaded profile from %s", path)
    return parse_profile(data, name=path.stem)
