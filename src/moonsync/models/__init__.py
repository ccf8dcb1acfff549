"""Typed models for moonsync.

Re-exports the inbound event schemas and the persisted models.
"""

from moonsync.models.events import (
    EVENT_SCHEMAS,
    EventName,
    FilelistChanged,
    FilesMetadata,
    GcodeResponse,
    GcodeScriptResult,
    InboundEvent,
    KlippyDisconnected,
    KlippyReady,
    MetadataUpdate,
    ObjectList,
    PrintCancelled,
    PrinterInfo,
    PrintPaused,
    PrintResumed,
    RequestContext,
    SensorHistory,
    SocketClosed,
    SocketError,
    SocketOpened,
    StatusUpdate,
    SubscriptionAck,
    TemperatureStore,
    parse_event,
)
from moonsync.models.instance import Instance
from moonsync.models.macro import Macro

__all__ = [
    "EVENT_SCHEMAS",
    "EventName",
    "FilelistChanged",
    "FilesMetadata",
    "GcodeResponse",
    "GcodeScriptResult",
    "InboundEvent",
    "Instance",
    "KlippyDisconnected",
    "KlippyReady",
    "Macro",
    "MetadataUpdate",
    "ObjectList",
    "PrintCancelled",
    "PrintPaused",
    "PrintResumed",
    "PrinterInfo",
    "RequestContext",
    "SensorHistory",
    "SocketClosed",
    "SocketError",
    "SocketOpened",
    "StatusUpdate",
    "SubscriptionAck",
    "TemperatureStore",
    "parse_event",
]
