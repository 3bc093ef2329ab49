import asyncio
import logging
import threading
from contextlib import suppress
from typing import Callable, Optional

from . import config
from .errors import GattError

logger = logging.getLogger(__name__)


def count_value(counter: int) -> bytes:
    return f"Count: {counter}".encode("utf-8")


class NotificationScheduler:
    """
    Periodically produces a new value for one characteristic.

    Each tick bumps the counter, writes ``producer(counter)`` through the
    characteristic's value store and pushes it if a central subscribed.
    tick() can also be called directly when an external event should
    produce a value.
    """

    def __init__(self, characteristic, interval: float = config.NOTIFY_INTERVAL, producer: Callable[[int], bytes] = count_value):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.characteristic = characteristic
        self.interval = interval
        self.producer = producer
        self.counter = 0
        self._counter_lock = threading.Lock()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def tick(self) -> bytes:
        with self._counter_lock:
            self.counter += 1
            counter = self.counter
        value = self.characteristic.notify(self.producer(counter))
        logger.debug("Counter: %d", counter)
        return value

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.ensure_future(self._run())

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                self.tick()
            except GattError as exc:
                logger.warning("Scheduled update of %s failed: %s", self.characteristic.path, exc)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
