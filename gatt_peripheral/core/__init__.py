from .advertisement import Advertisement
from .application import GATTApplication
from .characteristic import GATTCharacteristic
from .dispatch import Dispatcher
from .service import GATTService
from .store import ValueStore
from .tree import ObjectTree

__all__ = [
    "Advertisement",
    "Dispatcher",
    "GATTApplication",
    "GATTCharacteristic",
    "GATTService",
    "ObjectTree",
    "ValueStore",
]
