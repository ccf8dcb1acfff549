"""Moonraker websocket transport.

Speaks JSON-RPC 2.0 over an aiohttp websocket and turns every frame into a
``(name, payload)`` pair for :meth:`moonsync.engine.SyncEngine.handle`.
"""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

import aiohttp

from moonsync._constants import (
    METHOD_OBJECTS_LIST,
    METHOD_OBJECTS_SUBSCRIBE,
    METHOD_PRINTER_INFO,
    METHOD_TEMPERATURE_STORE,
)
from moonsync.exceptions import MoonsyncTransportError
from moonsync.models.events import EventName
from moonsync.outbound import NOTIFICATION_EVENTS, RESPONSE_EVENTS, build_request, subscribe_params

_logger = logging.getLogger(__name__)

EventCallback = Callable[[str, dict[str, Any]], None]


@dataclass(frozen=True, slots=True)
class PendingRequest:
    """An outgoing request awaiting its response frame."""

    method: str
    wait: str | None = None


def _first_param(params: Any) -> Any:
    if isinstance(params, list) and params:
        return params[0]
    return None


def _shape_result(event: EventName, result: Any, request: PendingRequest) -> dict[str, Any]:
    context = {"method": request.method, "wait": request.wait}
    if event == EventName.TEMPERATURE_STORE:
        return {"sensors": result if isinstance(result, dict) else {}}
    if event == EventName.GCODE_SCRIPT:
        return {"result": result, "request": context}
    return dict(result) if isinstance(result, dict) else {}


def _shape_notification(event: EventName, params: Any) -> dict[str, Any]:
    first = _first_param(params)
    if event == EventName.STATUS_UPDATE:
        eventtime = params[1] if isinstance(params, list) and len(params) > 1 else None
        return {"status": first if isinstance(first, dict) else {}, "eventtime": eventtime}
    if event == EventName.GCODE_RESPONSE:
        return {"line": first if isinstance(first, str) else ""}
    if isinstance(first, dict):
        return dict(first)
    return {}


def decode_frame(frame: Mapping[str, Any], pending: dict[int, PendingRequest]) -> tuple[str, dict[str, Any]] | None:
    """Translate one JSON-RPC frame into an inbound event.

    Responses are matched (and removed) from *pending* by id.  Returns
    ``None`` for frames that carry nothing for the engine.
    """
    request_id = frame.get("id")
    if request_id is not None:
        request = pending.pop(request_id, None)
        if request is None:
            _logger.debug("Response for unknown request id=%s", request_id)
            return None

        error = frame.get("error")
        if isinstance(error, dict):
            return (
                EventName.ERROR.value,
                {
                    "code": error.get("code"),
                    "message": str(error.get("message", "")),
                    "request": {"method": request.method, "wait": request.wait},
                },
            )

        event = RESPONSE_EVENTS.get(request.method)
        if event is None:
            return None
        return event.value, _shape_result(event, frame.get("result"), request)

    method = frame.get("method")
    if isinstance(method, str):
        event = NOTIFICATION_EVENTS.get(method)
        if event is None:
            _logger.debug("Ignoring notification method=%s", method)
            return None
        return event.value, _shape_notification(event, frame.get("params"))
    return None


class MoonrakerSocket:
    """Websocket channel to a Moonraker server.

    Implements :class:`moonsync.outbound.RequestSender`.

    Usage::

        async with MoonrakerSocket(url, on_event=engine.handle) as socket:
            await socket.run()
    """

    def __init__(
        self,
        socket_url: str,
        *,
        on_event: EventCallback,
        session: aiohttp.ClientSession | None = None,
        heartbeat: float = 30.0,
    ) -> None:
        self._socket_url = socket_url
        self._on_event = on_event
        self._external_session = session is not None
        self._http_session = session
        self._heartbeat = heartbeat
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._ids = itertools.count(1)
        self._pending: dict[int, PendingRequest] = {}
        self._send_tasks: set[asyncio.Task[None]] = set()

    @property
    def connected(self) -> bool:
        return self._ws is not None and not self._ws.closed

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> MoonrakerSocket:
        await self.connect()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def connect(self) -> None:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        try:
            self._ws = await self._http_session.ws_connect(self._socket_url, heartbeat=self._heartbeat)
        except aiohttp.ClientError as exc:
            self._emit(EventName.ERROR.value, {"code": None, "message": str(exc)})
            raise MoonsyncTransportError(f"Connect to {self._socket_url} failed: {exc}") from exc
        _logger.debug("Websocket connected url=%s", self._socket_url)
        self._emit(EventName.OPEN.value, {})

    async def close(self) -> None:
        ws = self._ws
        self._ws = None
        if ws is not None and not ws.closed:
            await ws.close()
        for task in list(self._send_tasks):
            task.cancel()
        self._send_tasks.clear()
        self._pending.clear()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    async def run(self) -> None:
        """Read frames until the socket closes."""
        ws = self._ws
        if ws is None:
            raise MoonsyncTransportError("Socket not connected")

        async for msg in ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                self._handle_text(msg.data)
            elif msg.type == aiohttp.WSMsgType.ERROR:
                self._emit(EventName.ERROR.value, {"code": None, "message": str(ws.exception())})
                break

        self._emit(EventName.CLOSE.value, {"code": ws.close_code, "reason": ""})

    def _handle_text(self, text: str) -> None:
        try:
            frame = json.loads(text)
        except json.JSONDecodeError:
            _logger.warning("Discarding non-JSON frame: %s", text[:200])
            return
        if not isinstance(frame, dict):
            _logger.warning("Discarding non-object frame: %s", text[:200])
            return
        decoded = decode_frame(frame, self._pending)
        if decoded is not None:
            self._emit(*decoded)

    def _emit(self, name: str, payload: dict[str, Any]) -> None:
        try:
            self._on_event(name, payload)
        except Exception:
            _logger.warning("on_event callback failed for %s", name, exc_info=True)

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    def send(self, method: str, params: Mapping[str, Any] | None = None, *, wait: str | None = None) -> int:
        """Queue a request; the response arrives later as an event."""
        ws = self._ws
        if ws is None or ws.closed:
            raise MoonsyncTransportError(f"Cannot send {method}: socket not connected")
        request_id = next(self._ids)
        self._pending[request_id] = PendingRequest(method=method, wait=wait)
        task = asyncio.get_running_loop().create_task(self._send_json(ws, build_request(method, params, request_id)))
        self._send_tasks.add(task)
        task.add_done_callback(self._send_tasks.discard)
        return request_id

    async def _send_json(self, ws: aiohttp.ClientWebSocketResponse, request: dict[str, Any]) -> None:
        try:
            await ws.send_json(request)
        except (aiohttp.ClientError, ConnectionError) as exc:
            self._pending.pop(request["id"], None)
            _logger.debug("Send failed method=%s", request["method"], exc_info=True)
            self._emit(EventName.ERROR.value, {"code": None, "message": str(exc)})

    def printer_info(self) -> None:
        self.send(METHOD_PRINTER_INFO)

    def printer_objects_list(self) -> None:
        self.send(METHOD_OBJECTS_LIST)

    def printer_objects_subscribe(self, objects: Mapping[str, list[str] | None]) -> None:
        self.send(METHOD_OBJECTS_SUBSCRIBE, subscribe_params(objects))

    def server_temperature_store(self) -> None:
        self.send(METHOD_TEMPERATURE_STORE)
