import logging
import threading
from typing import Dict, Iterable, List, Optional

from dbus_next.validators import is_object_path_valid

from ..constants import APP_PATH, DEFAULT_VALUE_CAPACITY
from ..errors import ConfigurationError, UnknownObjectError
from .advertisement import Advertisement
from .application import GATTApplication
from .characteristic import GATTCharacteristic
from .node import GATTNode
from .service import GATTService
from .store import TRUNCATE, check_capacity

logger = logging.getLogger(__name__)


class ObjectTree:
    """
    The application, its services and characteristics, and the
    advertisement, addressed by object path.

    Paths are derived from the parent path and the local index
    (``<app>/service<i>/char<j>``), so a given profile always yields the
    same tree. ``_exposed`` tracks what is currently exported on the bus;
    GetManagedObjects only ever reports exposed nodes.
    """

    def __init__(self, app_path: str = APP_PATH):
        self._lock = threading.RLock()
        self._nodes: Dict[str, GATTNode] = {}
        self._exposed: Dict[str, GATTNode] = {}
        self.services: List[GATTService] = []
        self.scheduled: List[GATTCharacteristic] = []
        self.advertisement: Optional[Advertisement] = None
        self.application = GATTApplication(app_path, self)
        self._add(self.application)

    @classmethod
    def from_profile(
        cls,
        profile,
        app_path: str = APP_PATH,
        overflow: str = TRUNCATE,
        local_name: Optional[str] = None,
        capacity: int = DEFAULT_VALUE_CAPACITY,
    ) -> "ObjectTree":
        """Build the tree for ``profile``; ``capacity`` applies where a characteristic sets none."""
        check_capacity(capacity)
        tree = cls(app_path)
        for svc_spec in profile.services:
            service = tree.add_service(svc_spec.uuid, svc_spec.primary)
            for ch_spec in svc_spec.characteristics:
                characteristic = tree.add_characteristic(
                    service,
                    ch_spec.uuid,
                    ch_spec.flags,
                    initial_value=ch_spec.initial_value,
                    capacity=ch_spec.capacity if ch_spec.capacity is not None else capacity,
                    overflow=overflow,
                )
                if ch_spec.scheduled:
                    tree.scheduled.append(characteristic)
        adv = profile.advertisement
        tree.set_advertisement(
            local_name or adv.local_name,
            adv.service_uuids if adv.service_uuids is not None else [s.uuid for s in tree.services],
            ad_type=adv.ad_type,
            includes=adv.includes,
        )
        return tree

    @property
    def path(self) -> str:
        return self.application.path

    def _add(self, node: GATTNode) -> None:
        if not is_object_path_valid(node.path):
            raise ConfigurationError(f"Invalid object path {node.path!r}")
        with self._lock:
            if node.path in self._nodes:
                raise ConfigurationError(f"Path collision at {node.path}")
            self._nodes[node.path] = node

    def add_service(self, uuid: str, primary: bool = True) -> GATTService:
        service = GATTService(f"{self.path}/service{len(self.services)}", uuid, primary)
        self._add(service)
        self.services.append(service)
        return service

    def add_characteristic(
        self,
        service: GATTService,
        uuid: str,
        flags: Iterable[str],
        initial_value: bytes = b"",
        capacity: int = DEFAULT_VALUE_CAPACITY,
        overflow: str = TRUNCATE,
    ) -> GATTCharacteristic:
        if self._nodes.get(service.path) is not service:
            raise ConfigurationError(f"Service {service.path} is not part of this tree")
        path = f"{service.path}/char{len(service.characteristics)}"
        characteristic = GATTCharacteristic(path, uuid, flags, service, initial_value, capacity, overflow)
        self._add(characteristic)
        service.add_characteristic(characteristic)
        return characteristic

    def set_advertisement(self, local_name: str, service_uuids: Iterable[str], ad_type: str = 'peripheral', includes: Iterable[str] = ()) -> Advertisement:
        if self.advertisement is not None:
            raise ConfigurationError("Advertisement already defined")
        advertisement = Advertisement(f"{self.path}/advertisement0", local_name, service_uuids, ad_type, includes)
        self._add(advertisement)
        self.advertisement = advertisement
        return advertisement

    def lookup(self, path: str) -> GATTNode:
        with self._lock:
            node = self._nodes.get(path)
        if node is None:
            raise UnknownObjectError(f"No object at {path}")
        return node

    def characteristics(self) -> List[GATTCharacteristic]:
        return [c for s in self.services for c in s.characteristics]

    def exposure_order(self) -> List[GATTNode]:
        nodes: List[GATTNode] = [self.application]
        for service in self.services:
            nodes.append(service)
            nodes.extend(service.characteristics)
        if self.advertisement is not None:
            nodes.append(self.advertisement)
        return nodes

    def withdrawal_order(self) -> List[GATTNode]:
        nodes: List[GATTNode] = []
        if self.advertisement is not None:
            nodes.append(self.advertisement)
        nodes.append(self.application)
        nodes.extend(self.services)
        nodes.extend(self.characteristics())
        return nodes

    def is_exposed(self, path: str) -> bool:
        with self._lock:
            return path in self._exposed

    def expose(self, bus) -> None:
        """Export every node; on any failure roll back and raise ConfigurationError."""
        with self._lock:
            for node in self.exposure_order():
                try:
                    bus.export(node.path, node)
                except Exception as exc:
                    for done in reversed(list(self._exposed.values())):
                        bus.unexport(done.path, done)
                    self._exposed.clear()
                    raise ConfigurationError(f"Failed to export {node.path}: {exc}") from exc
                self._exposed[node.path] = node
                logger.debug("Exported %s (%s)", node.path, node.name)

    def withdraw(self, bus) -> None:
        with self._lock:
            for node in self.withdrawal_order():
                if self._exposed.pop(node.path, None) is None:
                    continue
                try:
                    bus.unexport(node.path, node)
                except Exception as exc:
                    logger.warning("Failed to unexport %s: %s", node.path, exc)

    def managed_objects(self):
        with self._lock:
            managed = {}
            for service in self.services:
                if service.path in self._exposed:
                    managed[service.path] = {service.name: service.managed_properties()}
                for characteristic in service.characteristics:
                    if characteristic.path in self._exposed:
                        managed[characteristic.path] = {
                            characteristic.name: characteristic.managed_properties()
                        }
            return managed
