BLUEZ = 'org.bluez'
APP_PATH = '/org/bluez/example'

DBUS_OM_IFACE = 'org.freedesktop.DBus.ObjectManager'
DBUS_PROP_IFACE = 'org.freedesktop.DBus.Properties'
ADAPTER_IFACE = 'org.bluez.Adapter1'
GATT_MANAGER_IFACE = 'org.bluez.GattManager1'
LE_ADVERTISING_MANAGER_IFACE = 'org.bluez.LEAdvertisingManager1'
GATT_SERVICE_IFACE = 'org.bluez.GattService1'
GATT_CHRC_IFACE = 'org.bluez.GattCharacteristic1'
LE_ADVERTISEMENT_IFACE = 'org.bluez.LEAdvertisement1'

# 16 and 32 bit UUIDs are offsets into the Bluetooth base UUID
BASE_UUID_SUFFIX = '-0000-1000-8000-00805f9b34fb'

DEFAULT_VALUE_CAPACITY = 256
MAX_VALUE_CAPACITY = 512  # ATT maximum attribute value length

CHARACTERISTIC_FLAGS = frozenset([
    'broadcast',
    'read',
    'write-without-response',
    'write',
    'notify',
    'indicate',
    'authenticated-signed-writes',
    'extended-properties',
    'reliable-write',
    'writable-auxiliaries',
    'encrypt-read',
    'encrypt-write',
    'encrypt-authenticated-read',
    'encrypt-authenticated-write',
    'secure-read',
    'secure-write',
    'authorize',
])
READ_FLAGS = ('read',)
WRITE_FLAGS = ('write', 'write-without-response')
NOTIFY_FLAGS = ('notify', 'indicate')

ADVERTISEMENT_TYPES = ('peripheral', 'broadcast')
ADVERTISEMENT_INCLUDES = frozenset(['tx-power', 'appearance', 'local-name'])
