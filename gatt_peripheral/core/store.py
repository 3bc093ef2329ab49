import logging
import threading

from ..constants import DEFAULT_VALUE_CAPACITY, MAX_VALUE_CAPACITY
from ..errors import ConfigurationError, InvalidValueLengthError

logger = logging.getLogger(__name__)

TRUNCATE = "truncate"
REJECT = "reject"
OVERFLOW_POLICIES = (TRUNCATE, REJECT)


def check_capacity(capacity) -> int:
    if isinstance(capacity, bool) or not isinstance(capacity, int) or not 0 < capacity <= MAX_VALUE_CAPACITY:
        raise ConfigurationError(f"capacity must be within 1..{MAX_VALUE_CAPACITY}, got {capacity!r}")
    return capacity


class ValueStore:
    """
    Bounded byte buffer backing a single characteristic.

    Reads, writes and notification snapshots all take ``lock``. It is
    re-entrant so a caller can hold it across a write and a read of
    related state (the characteristic's subscription flag).

    Oversized writes follow ``overflow``: ``truncate`` keeps the first
    ``capacity`` bytes, ``reject`` raises InvalidValueLengthError and leaves
    the stored value untouched.
    """

    def __init__(self, initial_value: bytes = b"", capacity: int = DEFAULT_VALUE_CAPACITY, overflow: str = TRUNCATE):
        check_capacity(capacity)
        if overflow not in OVERFLOW_POLICIES:
            raise ConfigurationError(f"unknown overflow policy {overflow!r}")
        if len(initial_value) > capacity:
            raise ConfigurationError(
                f"initial value is {len(initial_value)} bytes, capacity is {capacity}"
            )
        self.capacity = capacity
        self.overflow = overflow
        self.lock = threading.RLock()
        self._value = bytes(initial_value)

    def read(self) -> bytes:
        with self.lock:
            return self._value

    def write(self, value) -> bytes:
        """Store ``value`` and return exactly what was stored."""
        data = bytes(value)
        if len(data) > self.capacity:
            if self.overflow == REJECT:
                raise InvalidValueLengthError(
                    f"Value of {len(data)} bytes exceeds capacity of {self.capacity}"
                )
            logger.warning("Truncating %d byte write to %d bytes", len(data), self.capacity)
            data = data[:self.capacity]
        with self.lock:
            self._value = data
        return data

    def __len__(self) -> int:
        with self.lock:
            return len(self._value)
