import logging
from typing import Any, List, Optional, Sequence, Tuple

from dbus_next.constants import MessageType
from dbus_next.message import Message
from dbus_next.signature import Variant

from ..constants import DBUS_PROP_IFACE
from ..errors import GattError, InvalidArgumentsError, NotSupportedError, UnknownInterfaceError
from .members import PropertiesMethod
from .node import GATTNode

logger = logging.getLogger(__name__)

# left to dbus_next's own handlers
PASSTHROUGH_INTERFACES = (
    "org.freedesktop.DBus.Introspectable",
    "org.freedesktop.DBus.Peer",
)


class Dispatcher:
    """
    Transport independent entry point: routes an (object path, interface,
    member) triple to the node's handler.

    Property access goes through org.freedesktop.DBus.Properties Get/GetAll
    the same way it does on the bus. Every property is read-only, so Set is
    answered with NotSupported.

    handle_message() is installed on the bus with add_message_handler, so
    every method call to an exposed node, GetManagedObjects included, is
    answered here rather than by dbus_next's defaults.
    """

    def __init__(self, tree):
        self.tree = tree

    def invoke(self, path: str, interface: str, member: str, arguments: Sequence[Any] = ()) -> Any:
        node = self.tree.lookup(path)
        logger.debug("Dispatch %s %s.%s", path, interface, member)
        if interface == DBUS_PROP_IFACE:
            return self._properties_call(node, member, arguments)
        self._check_interface(node, interface, member)
        return node.call(member, *arguments)

    def get_property(self, path: str, interface: str, name: str) -> Any:
        return self.invoke(path, DBUS_PROP_IFACE, PropertiesMethod.GET.dbus_name, (interface, name))

    def get_all(self, path: str, interface: str) -> Any:
        return self.invoke(path, DBUS_PROP_IFACE, PropertiesMethod.GET_ALL.dbus_name, (interface,))

    def handle_message(self, msg: Message) -> Optional[Message]:
        if msg.message_type != MessageType.METHOD_CALL or msg.interface in PASSTHROUGH_INTERFACES:
            return None
        if not self.tree.is_exposed(msg.path):
            return None
        node = self.tree.lookup(msg.path)
        interface = msg.interface or node.name
        try:
            signature, body = self._reply(node, interface, msg.member, msg.body)
        except GattError as exc:
            logger.debug("%s %s.%s -> %s", msg.path, interface, msg.member, exc.type)
            return Message.new_error(msg, exc.type, exc.text)
        return Message.new_method_return(msg, signature, body)

    def _reply(self, node: GATTNode, interface: str, member: str, arguments: Sequence[Any]) -> Tuple[str, List[Any]]:
        result = self.invoke(node.path, interface, member, arguments)
        if interface == DBUS_PROP_IFACE:
            if PropertiesMethod.lookup(member) is PropertiesMethod.GET:
                return "v", [Variant(node.property_signature(arguments[1]), result)]
            return "a{sv}", [{name: Variant(node.property_signature(name), value) for name, value in result.items()}]
        method = node.METHODS.lookup(member)
        if not method.signature:
            return "", []
        return method.signature, [result]

    def _check_interface(self, node: GATTNode, interface: str, member: str) -> None:
        if interface != node.name:
            raise UnknownInterfaceError(f"{node.path} does not implement {interface}", member=member)

    def _properties_call(self, node: GATTNode, member: str, arguments: Sequence[Any]) -> Any:
        method = PropertiesMethod.lookup(member)
        if method is PropertiesMethod.GET:
            interface, name = self._unpack(member, arguments, 2)
            self._check_interface(node, interface, name)
            return node.get_property(name)
        if method is PropertiesMethod.GET_ALL:
            (interface,) = self._unpack(member, arguments, 1)
            self._check_interface(node, interface, member)
            return node.properties()
        if method is PropertiesMethod.SET:
            raise NotSupportedError("Properties are read-only", member=member)
        raise NotSupportedError(f"Method {member} not supported", member=member)

    @staticmethod
    def _unpack(member: str, arguments: Sequence[Any], count: int) -> Sequence[Any]:
        if len(arguments) != count:
            raise InvalidArgumentsError(
                f"{member} takes {count} argument(s), got {len(arguments)}", member=member
            )
        return arguments
