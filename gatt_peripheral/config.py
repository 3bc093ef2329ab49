import os

from . import constants

ADAPTER_PATH = os.getenv("GATT_ADAPTER_PATH", "")
APP_PATH = os.getenv("GATT_APP_PATH", constants.APP_PATH)
PROFILE = os.getenv("GATT_PROFILE", "simple")
LOCAL_NAME = os.getenv("GATT_LOCAL_NAME", "")

VALUE_CAPACITY = int(os.getenv("GATT_VALUE_CAPACITY", str(constants.DEFAULT_VALUE_CAPACITY)))
OVERFLOW_POLICY = os.getenv("GATT_OVERFLOW_POLICY", "truncate")

NOTIFY_INTERVAL = float(os.getenv("GATT_NOTIFY_INTERVAL", "2.0"))
UNREGISTER_TIMEOUT = float(os.getenv("GATT_UNREGISTER_TIMEOUT", "5.0"))

DEFAULT_LOGGING_FORMAT = os.getenv("GATT_LOG_FORMAT", "[%(levelname)s] %(message)s")
DEFAULT_LOGGING_LEVEL = os.getenv("GATT_LOG_LEVEL", "INFO")
