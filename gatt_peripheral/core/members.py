from enum import Enum
from typing import Optional


class Member(Enum):
    """A D-Bus method or property: its wire name and signature."""

    def __init__(self, dbus_name: str, signature: str):
        self.dbus_name = dbus_name
        self.signature = signature

    @classmethod
    def lookup(cls, dbus_name: str) -> Optional["Member"]:
        for member in cls:
            if member.dbus_name == dbus_name:
                return member
        return None


class ApplicationProperty(Member):
    pass


class ApplicationMethod(Member):
    GET_MANAGED_OBJECTS = ("GetManagedObjects", "a{oa{sa{sv}}}")


class ServiceProperty(Member):
    UUID = ("UUID", "s")
    PRIMARY = ("Primary", "b")
    CHARACTERISTICS = ("Characteristics", "ao")
    INCLUDES = ("Includes", "ao")


class ServiceMethod(Member):
    pass


class CharacteristicProperty(Member):
    UUID = ("UUID", "s")
    SERVICE = ("Service", "o")
    FLAGS = ("Flags", "as")
    VALUE = ("Value", "ay")
    NOTIFYING = ("Notifying", "b")
    DESCRIPTORS = ("Descriptors", "ao")


class CharacteristicMethod(Member):
    READ_VALUE = ("ReadValue", "ay")
    WRITE_VALUE = ("WriteValue", "")
    START_NOTIFY = ("StartNotify", "")
    STOP_NOTIFY = ("StopNotify", "")


class AdvertisementProperty(Member):
    TYPE = ("Type", "s")
    SERVICE_UUIDS = ("ServiceUUIDs", "as")
    LOCAL_NAME = ("LocalName", "s")
    INCLUDES = ("Includes", "as")


class AdvertisementMethod(Member):
    RELEASE = ("Release", "")


class PropertiesMethod(Member):
    GET = ("Get", "v")
    GET_ALL = ("GetAll", "a{sv}")
    SET = ("Set", "")
