from dbus_next.service import method

from ..constants import DBUS_OM_IFACE
from .members import ApplicationMethod, ApplicationProperty
from .node import GATTNode


class GATTApplication(GATTNode):
    """
    Implements org.freedesktop.DBus.ObjectManager at the application path.
    BlueZ calls GetManagedObjects() to discover all services/characteristics.
    """

    PROPERTIES = ApplicationProperty
    METHODS = ApplicationMethod

    def __init__(self, path, tree):
        self.tree = tree
        super().__init__(DBUS_OM_IFACE, path)

    @property
    def services(self):
        return self.tree.services

    def _method_handlers(self):
        return {ApplicationMethod.GET_MANAGED_OBJECTS: self.get_managed_objects}

    @method()
    def GetManagedObjects(self) -> 'a{oa{sa{sv}}}':
        return self.get_managed_objects()

    def get_managed_objects(self):
        """
        Return a dict:
        {
          object_path: {
            interface_name: {
              prop_name: Variant,
              ...
            }
          },
          ...
        }
        covering only the services and characteristics currently exported.
        """
        return self.tree.managed_objects()
