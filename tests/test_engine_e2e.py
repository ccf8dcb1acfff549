from __future__ import annotations

import asyncio
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime

import pytest

from moonsync.config import SyncConfig
from moonsync.engine import SyncEngine
from moonsync.lifecycle import ConnectionStatus
from moonsync.sequencer import InitPhase
from moonsync.storage import MemoryStorage

_DELAY = 0.02


def _dt() -> datetime:
    return datetime(2026, 1, 1, tzinfo=UTC)


@dataclass
class FakeMoonraker:
    """Records outbound requests; tests answer them through ``engine.handle``."""

    calls: list[str] = field(default_factory=list)
    subscribed: list[dict[str, list[str] | None]] = field(default_factory=list)

    def count(self, call: str) -> int:
        return self.calls.count(call)

    def printer_info(self) -> None:
        self.calls.append("printer_info")

    def printer_objects_list(self) -> None:
        self.calls.append("printer_objects_list")

    def printer_objects_subscribe(self, objects: Mapping[str, list[str] | None]) -> None:
        self.calls.append("printer_objects_subscribe")
        self.subscribed.append(dict(objects))

    def server_temperature_store(self) -> None:
        self.calls.append("server_temperature_store")


def _engine(storage: MemoryStorage | None = None) -> tuple[SyncEngine, FakeMoonraker, MemoryStorage]:
    backing = storage if storage is not None else MemoryStorage()
    sender = FakeMoonraker()
    config = SyncConfig(retry_delay=_DELAY, chart_window=5, history_length=10, console_retention=4)
    engine = SyncEngine(config, sender, storage=backing, clock=_dt)
    engine.start(
        api_url="http://voron.local",
        socket_url="ws://voron.local/websocket",
        ui_settings={"general": {"instanceName": "Voron"}},
        file_config={"dashboard": {"hiddenMacros": ["_HOME"]}},
    )
    return engine, sender, backing


def _initialize(engine: SyncEngine) -> None:
    engine.handle("open")
    engine.handle("printer_info", {"state": "ready", "hostname": "voron"})
    engine.handle(
        "temperature_store",
        {"sensors": {"extruder": {"temperatures": [200.0, 201.0], "targets": [210.0, 210.0]}}},
    )
    engine.handle(
        "object_list",
        {"objects": ["extruder", "heaters", "temperature_fan fan0", "gcode_macro PRINT", "gcode_macro _HOME"]},
    )
    engine.handle(
        "subscribed",
        {
            "status": {
                "heaters": {"available_heaters": ["extruder"]},
                "extruder": {"temperature": 202.0, "target": 210.0},
                "temperature_fan fan0": {"temperature": 40.0, "target": 45.0, "speed": 0.3},
            },
            "eventtime": 1.0,
        },
    )


@pytest.mark.asyncio
async def test_full_initialization_flow() -> None:
    engine, sender, storage = _engine()

    _initialize(engine)

    assert engine.lifecycle.status == ConnectionStatus.CONNECTED
    assert engine.sequencer.phase == InitPhase.STREAMING
    assert sender.calls == [
        "printer_info",
        "server_temperature_store",
        "printer_objects_list",
        "printer_objects_subscribe",
    ]
    assert sender.subscribed == [{"extruder": None, "heaters": None, "temperature_fan fan0": None}]
    assert {m.name: m.visible for m in engine.state.macros} == {"PRINT": True, "_HOME": False}
    assert engine.state.sensor_groups == {"temperature_fans": ["fan0"]}

    extruder = engine.state.charts.get("extruder")
    assert extruder is not None
    assert extruder.value.values() == [200.0, 200.0, 200.0, 201.0, 202.0]
    assert extruder.target.values() == [210.0] * 5
    fan = engine.state.charts.get("temperature_fan.fan0")
    assert fan is not None
    assert fan.value.values() == [40.0]

    stored = json.loads(storage.get("appInstances") or "[]")
    assert stored == [
        {"apiUrl": "http://voron.local", "socketUrl": "ws://voron.local/websocket", "name": "Voron", "active": True}
    ]


@pytest.mark.asyncio
async def test_notifications_after_streaming() -> None:
    engine, _, _ = _engine()
    _initialize(engine)

    engine.handle("status_update", {"status": {"extruder": {"temperature": 205.0}}, "eventtime": 2.0})
    engine.handle("status_update", {"status": {"gcode_macro PRINT": {"x": 1}, "fan": {"speed": 1.0}}})

    assert engine.state.get("extruder") == {"temperature": 205.0, "target": 210.0}
    assert engine.state.get("fan") == {"speed": 1.0}
    assert engine.state.charts.get("extruder").value.values()[-1] == 205.0  # type: ignore[union-attr]
    assert engine.state.charts.get("extruder").target.values()[-1] == 210.0  # type: ignore[union-attr]


@pytest.mark.asyncio
async def test_console_and_gcode_results() -> None:
    engine, _, _ = _engine()
    _initialize(engine)
    engine.add_wait("gcode")

    for i in range(3):
        engine.handle("gcode_response", {"line": f"// line {i}"})
    engine.handle("gcode_script", {"result": "ok", "request": {"method": "printer.gcode.script", "wait": "gcode"}})
    engine.handle("gcode_response", {"line": "multi\nline"})

    assert engine.state.console == ["Recv: // line 1", "Recv: // line 2", "Recv: Ok", "Recv: multi<br>line"]
    assert not engine.state.has_wait("gcode")


@pytest.mark.asyncio
async def test_service_unavailable_restarts_initialization() -> None:
    engine, sender, _ = _engine()
    _initialize(engine)

    engine.handle("error", {"code": 503, "message": "Klippy Host not connected"})
    engine.handle("error", {"code": 503, "message": "Klippy Host not connected"})
    assert engine.state.info["state"] == "error"
    assert engine.state.macros == []
    assert len(engine.state.charts) == 0
    assert engine.sequencer.phase == InitPhase.IDLE

    # A not-ready reply inside the retry window still leaves exactly one pending retry.
    engine.handle("printer_info", {"state": "startup"})
    assert engine.retry_timer.pending

    await asyncio.sleep(_DELAY * 5)

    assert sender.count("printer_info") == 2
    assert engine.sequencer.phase == InitPhase.QUERYING


@pytest.mark.asyncio
async def test_reconnect_reuses_instance_entry() -> None:
    storage = MemoryStorage(
        {
            "appInstances": json.dumps(
                [
                    {"apiUrl": "http://other", "socketUrl": "ws://other", "name": "Other", "active": True},
                    {"apiUrl": "http://voron.local", "socketUrl": "ws://voron.local/websocket", "name": "Old"},
                ]
            )
        }
    )
    engine, _, _ = _engine(storage)
    _initialize(engine)
    engine.handle("open")
    engine.handle("printer_info", {"state": "ready"})

    stored = json.loads(storage.get("appInstances") or "[]")
    assert [(entry["apiUrl"], entry["name"], entry["active"]) for entry in stored] == [
        ("http://other", "Other", False),
        ("http://voron.local", "Voron", True),
    ]


@pytest.mark.asyncio
async def test_klippy_disconnect_and_ready() -> None:
    engine, sender, _ = _engine()
    _initialize(engine)

    engine.handle("klippy_disconnected")
    assert engine.state.info == {"state": "error"}
    assert engine.sequencer.phase == InitPhase.IDLE

    engine.handle("klippy_ready")
    assert sender.calls[-1] == "printer_info"
    assert engine.sequencer.phase == InitPhase.QUERYING


def test_unknown_and_malformed_events_are_dropped() -> None:
    engine, sender, _ = _engine()
    before = engine.state.printer

    engine.handle("bogus", {"extruder": {}})
    engine.handle("object_list", {"objects": 5})

    assert engine.state.printer == before
    assert sender.calls == []


def test_files_metadata_merges_current_file() -> None:
    engine, _, _ = _engine()
    engine.handle("files_metadata", {"filename": "cube.gcode", "estimated_time": 120})

    assert engine.state.get("current_file") == {"filename": "cube.gcode", "estimated_time": 120}


@pytest.mark.asyncio
async def test_close_cancels_pending_retry() -> None:
    engine, sender, _ = _engine()
    engine.handle("open")
    engine.handle("printer_info", {"state": "startup"})

    engine.close()
    await asyncio.sleep(_DELAY * 3)

    assert sender.count("printer_info") == 1


def test_persisted_card_blobs_are_loaded_on_start() -> None:
    storage = MemoryStorage({"appCardState": json.dumps({"a": 1}), "appCardLayout": json.dumps(["x"])})
    engine, _, _ = _engine(storage)

    assert engine.settings.card_state == {"a": 1}
    assert engine.settings.card_layout == ["x"]
    assert engine.settings.api_url == "http://voron.local"
    assert engine.settings.hidden_macros == ["_HOME"]


@pytest.mark.asyncio
async def test_socket_close_during_startup_stops_retrying() -> None:
    engine, sender, _ = _engine()
    engine.handle("open")
    engine.handle("printer_info", {"state": "startup"})
    assert engine.retry_timer.pending

    engine.handle("close", {"code": 1006, "reason": "gone"})
    await asyncio.sleep(_DELAY * 5)

    assert sender.count("printer_info") == 1
    assert engine.lifecycle.status == ConnectionStatus.DISCONNECTED


@pytest.mark.asyncio
async def test_temperature_store_with_gaps_still_advances() -> None:
    engine, sender, _ = _engine()
    engine.handle("open")
    engine.handle("printer_info", {"state": "ready"})
    engine.handle(
        "temperature_store",
        {
            "sensors": {
                "extruder": {"temperatures": [200.0, None, 201.0], "targets": [None, 210.0, 210.0]},
                "temperature_sensor chamber": {"temperatures": None},
            }
        },
    )

    assert engine.sequencer.phase == InitPhase.LISTING_OBJECTS
    assert sender.calls[-1] == "printer_objects_list"
    extruder = engine.state.charts.get("extruder")
    assert extruder is not None
    assert extruder.value.values() == [200.0] * 4 + [201.0]
    assert extruder.target.values() == [210.0] * 5
    chamber = engine.state.charts.get("temperature_sensor.chamber")
    assert chamber is not None
    assert chamber.value.values() == [0.0] * 5
