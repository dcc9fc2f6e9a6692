DOMAIN = "govee_thermometer"

CONF_API_KEY = "api_key"

MANUFACTURER = "Govee"

API_BASE_URL = "https://openapi.api.govee.com"
DEVICES_PATH = "/router/api/v1/user/devices"
STATE_PATH = "/router/api/v1/device/state"
API_KEY_HEADER = "Govee-API-Key"

# Capability instance names reported by the state endpoint.
TEMPERATURE_INSTANCE = "sensorTemperature"
HUMIDITY_INSTANCE = "sensorHumidity"

# Older responses carry no instance names; readings sit at these positions.
LEGACY_TEMPERATURE_INDEX = 1
LEGACY_HUMIDITY_INDEX = 2

# Raw readings are hundredths of a degree / percent.
READING_SCALE = 100

# Host platforms mark a device unresponsive after a few seconds, so keep this short.
REQUEST_TIMEOUT_S = 8.0
REQUEST_RETRIES = 1
RETRY_BACKOFF_S = 1.0

PLATFORMS: list[str] = ["sensor"]

# The cloud API is rate limited per key; one state call per device per minute is plenty.
DEFAULT_SCAN_INTERVAL_SECONDS = 60

SIGNAL_NEW_DEVICES = f"{DOMAIN}_new_devices_{{}}"

SERVICE_REFRESH_DEVICES = "refresh_devices"
