"""Outbound requests and their JSON-RPC shape.

The engine only depends on :class:`RequestSender`; how requests reach the
controller is the transport's concern.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from moonsync._constants import (
    METHOD_FILES_METADATA,
    METHOD_GCODE_SCRIPT,
    METHOD_OBJECTS_LIST,
    METHOD_OBJECTS_SUBSCRIBE,
    METHOD_PRINT_CANCEL,
    METHOD_PRINT_PAUSE,
    METHOD_PRINT_RESUME,
    METHOD_PRINTER_INFO,
    METHOD_TEMPERATURE_STORE,
)
from moonsync.models.events import EventName


class RequestSender(Protocol):
    """Fire-and-forget requests issued by the engine.

    Responses come back later as inbound events.
    """

    def printer_info(self) -> None: ...

    def printer_objects_list(self) -> None: ...

    def printer_objects_subscribe(self, objects: Mapping[str, list[str] | None]) -> None: ...

    def server_temperature_store(self) -> None: ...


#: Which inbound event a successful response to each method becomes.
RESPONSE_EVENTS: dict[str, EventName] = {
    METHOD_PRINTER_INFO: EventName.PRINTER_INFO,
    METHOD_OBJECTS_LIST: EventName.OBJECT_LIST,
    METHOD_OBJECTS_SUBSCRIBE: EventName.SUBSCRIBED,
    METHOD_TEMPERATURE_STORE: EventName.TEMPERATURE_STORE,
    METHOD_GCODE_SCRIPT: EventName.GCODE_SCRIPT,
    METHOD_FILES_METADATA: EventName.FILES_METADATA,
    METHOD_PRINT_CANCEL: EventName.PRINT_CANCELLED,
    METHOD_PRINT_PAUSE: EventName.PRINT_PAUSED,
    METHOD_PRINT_RESUME: EventName.PRINT_RESUMED,
}

#: Server-initiated notification methods.
NOTIFICATION_EVENTS: dict[str, EventName] = {
    "notify_status_update": EventName.STATUS_UPDATE,
    "notify_gcode_response": EventName.GCODE_RESPONSE,
    "notify_klippy_disconnected": EventName.KLIPPY_DISCONNECTED,
    "notify_klippy_ready": EventName.KLIPPY_READY,
    "notify_filelist_changed": EventName.FILELIST_CHANGED,
    "notify_metadata_update": EventName.METADATA_UPDATE,
}


def build_request(method: str, params: Mapping[str, Any] | None, request_id: int) -> dict[str, Any]:
    """Build a JSON-RPC 2.0 request object."""
    request: dict[str, Any] = {"jsonrpc": "2.0", "method": method, "id": request_id}
    if params:
        request["params"] = dict(params)
    return request


def subscribe_params(objects: Mapping[str, list[str] | None]) -> dict[str, Any]:
    """Params for ``printer.objects.subscribe``; ``None`` asks for every field."""
    return {"objects": dict(objects)}
