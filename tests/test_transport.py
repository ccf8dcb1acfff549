from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest
from aiohttp import test_utils, web

from moonsync.outbound import build_request, subscribe_params
from moonsync.transport import MoonrakerSocket, PendingRequest, decode_frame


def test_response_maps_to_method_event() -> None:
    pending = {7: PendingRequest(method="printer.info")}
    decoded = decode_frame({"jsonrpc": "2.0", "id": 7, "result": {"state": "ready"}}, pending)

    assert decoded == ("printer_info", {"state": "ready"})
    assert pending == {}


def test_temperature_store_result_is_wrapped() -> None:
    pending = {1: PendingRequest(method="server.temperature_store")}
    result = {"extruder": {"temperatures": [20.0], "targets": [0.0]}}

    assert decode_frame({"id": 1, "result": result}, pending) == ("temperature_store", {"sensors": result})


def test_error_carries_request_context() -> None:
    pending = {3: PendingRequest(method="printer.gcode.script", wait="gcode")}
    decoded = decode_frame({"id": 3, "error": {"code": 400, "message": "Unknown command"}}, pending)

    assert decoded == (
        "error",
        {
            "code": 400,
            "message": "Unknown command",
            "request": {"method": "printer.gcode.script", "wait": "gcode"},
        },
    )


def test_gcode_script_result_keeps_request() -> None:
    pending = {4: PendingRequest(method="printer.gcode.script", wait="gcode")}
    decoded = decode_frame({"id": 4, "result": "ok"}, pending)

    assert decoded == (
        "gcode_script",
        {"result": "ok", "request": {"method": "printer.gcode.script", "wait": "gcode"}},
    )


def test_status_notification() -> None:
    frame = {"jsonrpc": "2.0", "method": "notify_status_update", "params": [{"extruder": {"temperature": 1}}, 12.5]}
    assert decode_frame(frame, {}) == ("status_update", {"status": {"extruder": {"temperature": 1}}, "eventtime": 12.5})


def test_gcode_and_klippy_notifications() -> None:
    assert decode_frame({"method": "notify_gcode_response", "params": ["// hello"]}, {}) == (
        "gcode_response",
        {"line": "// hello"},
    )
    assert decode_frame({"method": "notify_klippy_ready"}, {}) == ("klippy_ready", {})
    assert decode_frame({"method": "notify_filelist_changed", "params": [{"action": "create_file"}]}, {}) == (
        "filelist_changed",
        {"action": "create_file"},
    )


def test_unknown_frames_are_ignored() -> None:
    assert decode_frame({"method": "notify_proc_stat_update", "params": [{}]}, {}) is None
    assert decode_frame({"id": 99, "result": {}}, {}) is None
    assert decode_frame({"jsonrpc": "2.0"}, {}) is None


def test_build_request() -> None:
    assert build_request("printer.info", None, 1) == {"jsonrpc": "2.0", "method": "printer.info", "id": 1}
    assert build_request("printer.objects.subscribe", subscribe_params({"extruder": None}), 2) == {
        "jsonrpc": "2.0",
        "method": "printer.objects.subscribe",
        "id": 2,
        "params": {"objects": {"extruder": None}},
    }


@pytest.mark.asyncio
async def test_socket_round_trip_against_local_server() -> None:
    received: list[dict[str, Any]] = []

    async def websocket_handler(request: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse()
        await ws.prepare(request)
        async for msg in ws:
            frame = json.loads(msg.data)
            received.append(frame)
            await ws.send_json({"jsonrpc": "2.0", "id": frame["id"], "result": {"state": "ready"}})
            await ws.send_json({"jsonrpc": "2.0", "method": "notify_klippy_ready"})
            await ws.close()
        return ws

    app = web.Application()
    app.router.add_get("/websocket", websocket_handler)

    events: list[tuple[str, dict[str, Any]]] = []
    async with test_utils.TestServer(app) as server:
        url = str(server.make_url("/websocket"))
        async with MoonrakerSocket(url, on_event=lambda name, payload: events.append((name, payload))) as socket:
            socket.printer_info()
            await asyncio.wait_for(socket.run(), timeout=5)

    assert received[0]["method"] == "printer.info"
    assert [name for name, _ in events] == ["open", "printer_info", "klippy_ready", "close"]
    assert events[1][1] == {"state": "ready"}
