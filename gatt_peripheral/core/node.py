import inspect
from typing import Any, Callable, Dict, Type

from dbus_next.service import ServiceInterface
from dbus_next.signature import Variant

from ..errors import InvalidArgumentsError, NotSupportedError, UnknownPropertyError
from .members import Member


class GATTNode(ServiceInterface):
    """
    Base for every object exported in the GATT tree.

    Subclasses name their closed member sets in PROPERTIES and METHODS and
    map every member to a handler. The ``@dbus_property`` / ``@method``
    wrappers only describe the interface for introspection and
    PropertiesChanged; they must name exactly the same members. Both are
    checked when the node is built, not when a central happens to call it.
    """

    PROPERTIES: Type[Member]
    METHODS: Type[Member]

    def __init__(self, interface: str, path: str):
        super().__init__(interface)
        self.path = path
        self._getters = self._property_getters()
        self._handlers = self._method_handlers()
        for members, table in ((self.PROPERTIES, self._getters), (self.METHODS, self._handlers)):
            missing = [m.dbus_name for m in members if m not in table]
            if missing:
                raise TypeError(f"{type(self).__name__} has no handler for {', '.join(missing)}")
        self._check_exported_members()

    def _check_exported_members(self) -> None:
        described = self.introspect()
        for members, exported in (
            (self.PROPERTIES, {p.name: p.signature for p in described.properties}),
            (self.METHODS, {m.name for m in described.methods}),
        ):
            expected = {m.dbus_name for m in members}
            if expected != set(exported):
                raise TypeError(
                    f"{type(self).__name__} exports {sorted(exported)} but declares {sorted(expected)}"
                )
            if isinstance(exported, dict):
                wrong = [m.dbus_name for m in members if exported[m.dbus_name] != m.signature]
                if wrong:
                    raise TypeError(f"{type(self).__name__} signature mismatch for {', '.join(wrong)}")

    def _property_getters(self) -> Dict[Member, Callable[[], Any]]:
        return {}

    def _method_handlers(self) -> Dict[Member, Callable[..., Any]]:
        return {}

    def property_signature(self, name: str) -> str:
        prop = self.PROPERTIES.lookup(name)
        if prop is None:
            raise UnknownPropertyError(f"No property {name} on {self.name}", member=name)
        return prop.signature

    def get_property(self, name: str) -> Any:
        prop = self.PROPERTIES.lookup(name)
        if prop is None:
            raise UnknownPropertyError(f"No property {name} on {self.name}", member=name)
        return self._getters[prop]()

    def properties(self) -> Dict[str, Any]:
        return {prop.dbus_name: getter() for prop, getter in self._getters.items()}

    def managed_properties(self) -> Dict[str, Variant]:
        """Properties wrapped for an a{sv} reply."""
        return {prop.dbus_name: Variant(prop.signature, getter()) for prop, getter in self._getters.items()}

    def call(self, name: str, *args) -> Any:
        method = self.METHODS.lookup(name)
        if method is None:
            raise NotSupportedError(f"Method {name} not supported", member=name)
        handler = self._handlers[method]
        try:
            inspect.signature(handler).bind(*args)
        except TypeError as exc:
            raise InvalidArgumentsError(f"{name}: {exc}", member=name) from exc
        return handler(*args)
