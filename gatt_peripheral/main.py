import argparse
import asyncio
import logging

from dbus_next.aio import MessageBus
from dbus_next.constants import BusType
from dbus_next.errors import DBusError

from . import config
from .bluez import find_adapter_path, get_managers
from .constants import MAX_VALUE_CAPACITY
from .core import ObjectTree
from .core.store import OVERFLOW_POLICIES
from .errors import ConfigurationError
from .profile import BUILTIN_PROFILES, load_profile
from .scheduler import NotificationScheduler
from .server import PeripheralServer
from .uuids import uuid_to_name

logger = logging.getLogger(__name__)


def _positive_float(text: str) -> float:
    value = float(text)
    if value <= 0:
        raise argparse.ArgumentTypeError("must be positive")
    return value


def _capacity(text: str) -> int:
    value = int(text)
    if not 0 < value <= MAX_VALUE_CAPACITY:
        raise argparse.ArgumentTypeError(f"must be within 1..{MAX_VALUE_CAPACITY}")
    return value


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="gatt-peripheral",
        description="Expose this machine as a BLE GATT peripheral through BlueZ.",
    )
    parser.add_argument(
        "--profile",
        default=config.PROFILE,
        help=f"built-in profile ({', '.join(sorted(BUILTIN_PROFILES))}) or path to a JSON profile",
    )
    parser.add_argument("--adapter", default=config.ADAPTER_PATH, help="adapter object path, e.g. /org/bluez/hci0")
    parser.add_argument("--app-path", default=config.APP_PATH, help="object path of the GATT application")
    parser.add_argument("--name", default=config.LOCAL_NAME, help="advertised local name")
    parser.add_argument("--overflow", choices=OVERFLOW_POLICIES, default=config.OVERFLOW_POLICY)
    parser.add_argument("--capacity", type=_capacity, default=config.VALUE_CAPACITY,
                        help="value capacity in bytes for characteristics that do not set one")
    parser.add_argument("--interval", type=_positive_float, default=config.NOTIFY_INTERVAL,
                        help="seconds between scheduled notifications")
    parser.add_argument("--log-level", default=config.DEFAULT_LOGGING_LEVEL)
    return parser.parse_args(argv)


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format=config.DEFAULT_LOGGING_FORMAT)
    logging.getLogger("dbus_next.message_bus").setLevel(logging.CRITICAL)


def build_tree(args: argparse.Namespace) -> ObjectTree:
    profile = load_profile(args.profile)
    return ObjectTree.from_profile(
        profile,
        app_path=args.app_path,
        overflow=args.overflow,
        local_name=args.name or None,
        capacity=args.capacity,
    )


async def run(args: argparse.Namespace) -> int:
    tree = build_tree(args)
    scheduler = None
    if tree.scheduled:
        scheduler = NotificationScheduler(tree.scheduled[0], interval=args.interval)

    bus = await MessageBus(bus_type=BusType.SYSTEM).connect()
    try:
        adapter_path = args.adapter or await find_adapter_path(bus)
        gatt_mgr, adv_mgr = await get_managers(bus, adapter_path)

        for service in tree.services:
            logger.info("Service %s (%s)", service.uuid, uuid_to_name(service.uuid))

        server = PeripheralServer(bus, tree, gatt_mgr, adv_mgr, scheduler=scheduler)
        server.install_signal_handlers()
        try:
            return await server.run()
        finally:
            server.remove_signal_handlers()
    finally:
        bus.disconnect()


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)
    try:
        return asyncio.run(run(args))
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return 1
    except DBusError as exc:
        logger.error("D-Bus error: %s %s", exc.type, exc.text)
        return 1
    except KeyboardInterrupt:
        return 0
