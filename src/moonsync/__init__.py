"""moonsync - Klipper/Moonraker printer state synchronization engine."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("moonsync")
except PackageNotFoundError:
    __version__ = "0+local"
from moonsync.charts import ChartPoint, ChartSeries, ChartStore, SeriesPair
from moonsync.config import SyncConfig
from moonsync.engine import SyncEngine
from moonsync.exceptions import (
    MalformedEventError,
    MoonsyncConfigError,
    MoonsyncError,
    MoonsyncEventError,
    MoonsyncStorageError,
    MoonsyncTransportError,
    UnknownEventError,
)
from moonsync.lifecycle import ConnectionStatus
from moonsync.models import EventName, Instance, Macro, parse_event
from moonsync.sequencer import InitPhase
from moonsync.storage import JsonFileStorage, KeyValueStorage, MemoryStorage
from moonsync.transport import MoonrakerSocket

__all__ = [
    "__version__",
    "ChartPoint",
    "ChartSeries",
    "ChartStore",
    "ConnectionStatus",
    "EventName",
    "InitPhase",
    "Instance",
    "JsonFileStorage",
    "KeyValueStorage",
    "Macro",
    "MalformedEventError",
    "MemoryStorage",
    "MoonrakerSocket",
    "MoonsyncConfigError",
    "MoonsyncError",
    "MoonsyncEventError",
    "MoonsyncStorageError",
    "MoonsyncTransportError",
    "SeriesPair",
    "SyncConfig",
    "SyncEngine",
    "UnknownEventError",
    "parse_event",
]
