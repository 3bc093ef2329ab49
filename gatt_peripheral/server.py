import asyncio
import functools
import logging
import signal
from enum import Enum
from typing import Dict, List, Optional, Set

from dbus_next.errors import DBusError

from . import config
from .core.dispatch import Dispatcher
from .errors import ConfigurationError, RegistrationError
from .scheduler import NotificationScheduler

logger = logging.getLogger(__name__)

REGISTER_APPLICATION = "RegisterApplication"
REGISTER_ADVERTISEMENT = "RegisterAdvertisement"
UNREGISTER_APPLICATION = "UnregisterApplication"
UNREGISTER_ADVERTISEMENT = "UnregisterAdvertisement"

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class LifecycleState(Enum):
    UNREGISTERED = "unregistered"
    OBJECTS_EXPOSED = "objects-exposed"
    APPLICATION_REGISTERED = "application-registered"
    ADVERTISING = "advertising"
    SHUTTING_DOWN = "shutting-down"
    TORN_DOWN = "torn-down"


class PeripheralServer:
    """
    Owns everything the running peripheral needs: the bus, the object tree,
    the BlueZ manager proxies, the scheduler and the registration state.

    run() walks the lifecycle exactly once:

        Unregistered -> ObjectsExposed -> ApplicationRegistered
            -> Advertising -> ShuttingDown -> TornDown

    Both registration calls are issued without waiting for each other; their
    replies arrive in _on_registration_reply. A rejected registration is
    fatal and ends the run with exit status 1. Unregistration is best effort
    and never changes the exit status.

    While the objects are exposed, every method call addressed to them is
    answered by the dispatcher through a bus message handler.
    """

    def __init__(
        self,
        bus,
        tree,
        gatt_manager,
        adv_manager,
        scheduler: Optional[NotificationScheduler] = None,
        unregister_timeout: float = config.UNREGISTER_TIMEOUT,
    ):
        self.bus = bus
        self.tree = tree
        self.gatt_manager = gatt_manager
        self.adv_manager = adv_manager
        self.scheduler = scheduler
        self.unregister_timeout = unregister_timeout
        self.dispatcher = Dispatcher(tree)

        self.state = LifecycleState.UNREGISTERED
        self.exit_status = 0
        self.errors: List[Exception] = []
        self._registrations: Dict[str, asyncio.Future] = {}
        self._registered: Set[str] = set()
        self._failed: Set[str] = set()
        self._shutdown = asyncio.Event()
        self._handler_installed = False

    def _transition(self, state: LifecycleState) -> None:
        logger.debug("Lifecycle %s -> %s", self.state.value, state.value)
        self.state = state

    @property
    def registered(self) -> Set[str]:
        return set(self._registered)

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown.is_set()

    def request_shutdown(self, exit_status: int = 0) -> None:
        """Schedule an orderly shutdown. Safe to call from a signal handler in any state."""
        self.exit_status = max(self.exit_status, exit_status)
        if not self._shutdown.is_set():
            logger.info("Shutting down...")
            self._shutdown.set()

    def install_signal_handlers(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        loop = loop or asyncio.get_running_loop()
        for sig in SHUTDOWN_SIGNALS:
            loop.add_signal_handler(sig, self.request_shutdown)

    def remove_signal_handlers(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        loop = loop or asyncio.get_running_loop()
        for sig in SHUTDOWN_SIGNALS:
            loop.remove_signal_handler(sig)

    def expose(self) -> None:
        self.tree.expose(self.bus)
        self.bus.add_message_handler(self.dispatcher.handle_message)
        self._handler_installed = True
        self._transition(LifecycleState.OBJECTS_EXPOSED)
        logger.info("GATT objects exported under %s", self.tree.path)

    def register(self) -> None:
        app_path = self.tree.application.path
        self._issue(REGISTER_APPLICATION, self.gatt_manager.call_register_application(app_path, {}))
        self._transition(LifecycleState.APPLICATION_REGISTERED)

        adv_path = self.tree.advertisement.path
        self._issue(REGISTER_ADVERTISEMENT, self.adv_manager.call_register_advertisement(adv_path, {}))
        self._transition(LifecycleState.ADVERTISING)

    def _issue(self, call: str, coro) -> None:
        logger.info("Issuing %s", call)
        future = asyncio.ensure_future(coro)
        future.add_done_callback(functools.partial(self._on_registration_reply, call))
        self._registrations[call] = future

    def _on_registration_reply(self, call: str, future: asyncio.Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is None:
            self._registered.add(call)
            if call == REGISTER_ADVERTISEMENT:
                logger.info("Peripheral is now advertising as '%s'", self.tree.advertisement.local_name)
            else:
                logger.info("GATT application registered")
            return

        error = RegistrationError(call, getattr(exc, "text", None) or str(exc))
        self._failed.add(call)
        self.errors.append(error)
        logger.error("%s", error)
        self.request_shutdown(exit_status=1)

    async def run(self) -> int:
        try:
            try:
                self.expose()
            except ConfigurationError as exc:
                logger.error("Failed to export GATT objects: %s", exc)
                self.errors.append(exc)
                self.exit_status = 1
                return self.exit_status

            if not self._shutdown.is_set():
                self.register()
                if self.scheduler is not None:
                    self.scheduler.start()
                await self._shutdown.wait()
        finally:
            await self.shutdown()
        return self.exit_status

    def _should_unregister(self, call: str) -> bool:
        return call in self._registrations and call not in self._failed

    async def shutdown(self) -> None:
        if self.state in (LifecycleState.SHUTTING_DOWN, LifecycleState.TORN_DOWN):
            return
        self._transition(LifecycleState.SHUTTING_DOWN)

        if self.scheduler is not None:
            await self.scheduler.stop()

        pending = [f for f in self._registrations.values() if not f.done()]
        for future in pending:
            future.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        if self._should_unregister(REGISTER_ADVERTISEMENT):
            await self._unregister(
                UNREGISTER_ADVERTISEMENT,
                self.adv_manager.call_unregister_advertisement(self.tree.advertisement.path),
            )
        if self._should_unregister(REGISTER_APPLICATION):
            await self._unregister(
                UNREGISTER_APPLICATION,
                self.gatt_manager.call_unregister_application(self.tree.application.path),
            )

        if self._handler_installed:
            self.bus.remove_message_handler(self.dispatcher.handle_message)
            self._handler_installed = False
        self.tree.withdraw(self.bus)
        self._transition(LifecycleState.TORN_DOWN)
        logger.info("Shutdown complete.")

    async def _unregister(self, call: str, coro) -> None:
        try:
            await asyncio.wait_for(coro, self.unregister_timeout)
        except asyncio.TimeoutError:
            logger.warning("%s timed out after %.1fs", call, self.unregister_timeout)
        except DBusError as exc:
            logger.warning("%s failed: %s %s", call, exc.type, exc.text)
        except Exception as exc:
            logger.warning("%s failed: %s", call, exc)
        else:
            logger.info("%s done", call)
