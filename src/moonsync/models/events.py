"""Typed inbound channel events.

Every event the transport delivers carries a name and a payload.  Each name
maps to exactly one schema; :func:`parse_event` is the only place where
untyped payloads become events.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Any, ClassVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from moonsync.exceptions import MalformedEventError, UnknownEventError
from moonsync.models._base import EventModel
from moonsync.normalize import fill_readings


class EventName(StrEnum):
    OPEN = "open"
    CLOSE = "close"
    ERROR = "error"
    PRINTER_INFO = "printer_info"
    OBJECT_LIST = "object_list"
    SUBSCRIBED = "subscribed"
    TEMPERATURE_STORE = "temperature_store"
    STATUS_UPDATE = "status_update"
    GCODE_RESPONSE = "gcode_response"
    GCODE_SCRIPT = "gcode_script"
    KLIPPY_DISCONNECTED = "klippy_disconnected"
    KLIPPY_READY = "klippy_ready"
    FILES_METADATA = "files_metadata"
    FILELIST_CHANGED = "filelist_changed"
    METADATA_UPDATE = "metadata_update"
    PRINT_CANCELLED = "print_cancelled"
    PRINT_PAUSED = "print_paused"
    PRINT_RESUMED = "print_resumed"


class RequestContext(BaseModel):
    """The outgoing request an error or result refers to."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    method: str = ""
    wait: str | None = None

    @field_validator("wait", mode="before")
    @classmethod
    def _empty_wait_is_none(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        return str(value)


class SocketOpened(EventModel):
    name: ClassVar[EventName] = EventName.OPEN


class SocketClosed(EventModel):
    name: ClassVar[EventName] = EventName.CLOSE

    code: int | None = None
    reason: str = ""


class SocketError(EventModel):
    name: ClassVar[EventName] = EventName.ERROR

    code: int | None = None
    message: str = ""
    request: RequestContext | None = Field(
        default=None,
        validation_alias=AliasChoices("request", "__request__"),
    )


class PrinterInfo(EventModel):
    """Controller identity and Klippy readiness."""

    name: ClassVar[EventName] = EventName.PRINTER_INFO

    state: str = ""
    state_message: str | None = Field(
        default=None,
        validation_alias=AliasChoices("state_message", "message"),
    )


class ObjectList(EventModel):
    name: ClassVar[EventName] = EventName.OBJECT_LIST

    objects: list[str] = Field(default_factory=list)


class SubscriptionAck(EventModel):
    name: ClassVar[EventName] = EventName.SUBSCRIBED

    status: dict[str, Any] = Field(default_factory=dict)
    eventtime: float | None = None


class SensorHistory(BaseModel):
    """One sensor's reading history.

    Missing lists and unusable readings are normalized rather than rejected.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    temperatures: list[float] = Field(default_factory=list)
    targets: list[float] | None = None

    @field_validator("temperatures", mode="before")
    @classmethod
    def _fill_temperatures(cls, value: Any) -> list[float]:
        return fill_readings(value)

    @field_validator("targets", mode="before")
    @classmethod
    def _fill_targets(cls, value: Any) -> list[float] | None:
        if value is None:
            return None
        return fill_readings(value)


class TemperatureStore(EventModel):
    """Per-sensor temperature history, keyed by full object name."""

    name: ClassVar[EventName] = EventName.TEMPERATURE_STORE

    sensors: dict[str, SensorHistory] = Field(default_factory=dict)

    @field_validator("sensors", mode="before")
    @classmethod
    def _drop_unusable_sensors(cls, value: Any) -> Any:
        if not isinstance(value, Mapping):
            return {}
        return {
            str(key): sensor
            for key, sensor in value.items()
            if isinstance(sensor, (Mapping, SensorHistory))
        }


class StatusUpdate(EventModel):
    name: ClassVar[EventName] = EventName.STATUS_UPDATE

    status: dict[str, Any] = Field(default_factory=dict)
    eventtime: float | None = None


class GcodeResponse(EventModel):
    name: ClassVar[EventName] = EventName.GCODE_RESPONSE

    line: str = ""


class GcodeScriptResult(EventModel):
    name: ClassVar[EventName] = EventName.GCODE_SCRIPT

    result: Any = None
    request: RequestContext | None = Field(
        default=None,
        validation_alias=AliasChoices("request", "__request__"),
    )


class KlippyDisconnected(EventModel):
    name: ClassVar[EventName] = EventName.KLIPPY_DISCONNECTED


class KlippyReady(EventModel):
    name: ClassVar[EventName] = EventName.KLIPPY_READY


class FilesMetadata(EventModel):
    name: ClassVar[EventName] = EventName.FILES_METADATA


class FilelistChanged(EventModel):
    name: ClassVar[EventName] = EventName.FILELIST_CHANGED

    action: str = ""
    item: dict[str, Any] = Field(default_factory=dict)


class MetadataUpdate(EventModel):
    name: ClassVar[EventName] = EventName.METADATA_UPDATE


class PrintCancelled(EventModel):
    name: ClassVar[EventName] = EventName.PRINT_CANCELLED


class PrintPaused(EventModel):
    name: ClassVar[EventName] = EventName.PRINT_PAUSED


class PrintResumed(EventModel):
    name: ClassVar[EventName] = EventName.PRINT_RESUMED


InboundEvent = (
    SocketOpened
    | SocketClosed
    | SocketError
    | PrinterInfo
    | ObjectList
    | SubscriptionAck
    | TemperatureStore
    | StatusUpdate
    | GcodeResponse
    | GcodeScriptResult
    | KlippyDisconnected
    | KlippyReady
    | FilesMetadata
    | FilelistChanged
    | MetadataUpdate
    | PrintCancelled
    | PrintPaused
    | PrintResumed
)

EVENT_SCHEMAS: dict[EventName, type[EventModel]] = {
    model.name: model
    for model in (
        SocketOpened,
        SocketClosed,
        SocketError,
        PrinterInfo,
        ObjectList,
        SubscriptionAck,
        TemperatureStore,
        StatusUpdate,
        GcodeResponse,
        GcodeScriptResult,
        KlippyDisconnected,
        KlippyReady,
        FilesMetadata,
        FilelistChanged,
        MetadataUpdate,
        PrintCancelled,
        PrintPaused,
        PrintResumed,
    )
}


def parse_event(name: str, payload: dict[str, Any] | None = None) -> EventModel:
    """Validate *payload* against the schema registered for *name*.

    Raises
    ------
    UnknownEventError
        No schema is registered for *name*.
    MalformedEventError
        The payload does not fit the schema.
    """
    try:
        event_name = EventName(name)
    except ValueError as exc:
        raise UnknownEventError(f"Unknown event {name!r}", name=name) from exc

    schema = EVENT_SCHEMAS[event_name]
    try:
        return schema.model_validate(payload or {})
    except ValidationError as exc:
        raise MalformedEventError(f"Malformed {name!r} payload: {exc}", name=name) from exc
