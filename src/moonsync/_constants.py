"""Internal constants shared across the library."""

# ------------------------------------------------------------------
# Socket error codes
# ------------------------------------------------------------------

ERROR_REQUEST_REJECTED = 400
ERROR_SERVICE_UNAVAILABLE = 503

# ------------------------------------------------------------------
# Printer readiness
# ------------------------------------------------------------------

READY_STATE = "ready"
ERROR_STATE = "error"

# ------------------------------------------------------------------
# Object classification
# ------------------------------------------------------------------

MACRO_CATEGORY = "gcode_macro"
EXCLUDED_SUBSCRIPTION_MARKERS: tuple[str, ...] = ("menu", MACRO_CATEGORY)

#: Compound-key categories grouped into plural buckets at subscribe time.
SENSOR_CATEGORIES: tuple[str, ...] = (
    "temperature_fan",
    "temperature_probe",
    "temperature_sensor",
    "heater_fan",
)

#: Key prefixes that always feed the chart pipeline (heaters are added at runtime).
CHART_PREFIXES: tuple[str, ...] = ("temperature_fan", "temperature_probe")

CHART_FIELDS: tuple[str, ...] = ("temperature", "target")
TARGET_LABEL_SUFFIX = "Target"

# ------------------------------------------------------------------
# Outbound JSON-RPC methods
# ------------------------------------------------------------------

METHOD_PRINTER_INFO = "printer.info"
METHOD_OBJECTS_LIST = "printer.objects.list"
METHOD_OBJECTS_SUBSCRIBE = "printer.objects.subscribe"
METHOD_TEMPERATURE_STORE = "server.temperature_store"
METHOD_GCODE_SCRIPT = "printer.gcode.script"
METHOD_FILES_METADATA = "server.files.metadata"
METHOD_PRINT_CANCEL = "printer.print.cancel"
METHOD_PRINT_PAUSE = "printer.print.pause"
METHOD_PRINT_RESUME = "printer.print.resume"

# ------------------------------------------------------------------
# Persisted storage keys
# ------------------------------------------------------------------

INSTANCES_STORAGE_KEY = "appInstances"
CARD_STATE_STORAGE_KEY = "appCardState"
CARD_LAYOUT_STORAGE_KEY = "appCardLayout"

DEFAULT_INSTANCE_NAME = "Printer"
NEW_PRESET_ID = -1
