from __future__ import annotations

import pytest

from moonsync.exceptions import MalformedEventError, UnknownEventError
from moonsync.models.events import (
    GcodeScriptResult,
    PrinterInfo,
    SocketError,
    StatusUpdate,
    TemperatureStore,
    parse_event,
)


def test_unknown_event_name() -> None:
    with pytest.raises(UnknownEventError) as excinfo:
        parse_event("bogus", {})
    assert excinfo.value.name == "bogus"


def test_malformed_payload() -> None:
    with pytest.raises(MalformedEventError):
        parse_event("object_list", {"objects": "extruder"})


def test_error_accepts_request_alias() -> None:
    event = parse_event(
        "error",
        {"code": 400, "message": "bad", "__request__": {"method": "printer.gcode.script", "wait": "gcode"}},
    )

    assert isinstance(event, SocketError)
    assert event.request is not None
    assert event.request.wait == "gcode"


def test_empty_wait_is_none() -> None:
    event = parse_event("error", {"code": 400, "request": {"wait": ""}})
    assert isinstance(event, SocketError)
    assert event.request is not None
    assert event.request.wait is None


def test_printer_info_keeps_raw_payload() -> None:
    event = parse_event("printer_info", {"state": "ready", "hostname": "voron", "state_message": "ok"})

    assert isinstance(event, PrinterInfo)
    assert event.state == "ready"
    assert event.state_message == "ok"
    assert event.raw["hostname"] == "voron"


def test_temperature_store_without_targets() -> None:
    event = parse_event(
        "temperature_store",
        {"sensors": {"temperature_sensor chamber": {"temperatures": [20, 21], "powers": [0, 0]}}},
    )

    assert isinstance(event, TemperatureStore)
    sensor = event.sensors["temperature_sensor chamber"]
    assert sensor.temperatures == [20.0, 21.0]
    assert sensor.targets is None


def test_missing_payload_uses_defaults() -> None:
    event = parse_event("status_update")
    assert isinstance(event, StatusUpdate)
    assert event.status == {}


def test_gcode_script_result() -> None:
    event = parse_event("gcode_script", {"result": "ok", "request": {"method": "printer.gcode.script"}})
    assert isinstance(event, GcodeScriptResult)
    assert event.result == "ok"


def test_temperature_store_fills_missing_readings() -> None:
    event = parse_event(
        "temperature_store",
        {
            "sensors": {
                "extruder": {"temperatures": [200.0, None, 201.0], "targets": [210.0, None, 0]},
                "temperature_sensor chamber": {"temperatures": None},
                "broken": 5,
            }
        },
    )

    assert isinstance(event, TemperatureStore)
    assert set(event.sensors) == {"extruder", "temperature_sensor chamber"}
    assert event.sensors["extruder"].temperatures == [200.0, 200.0, 201.0]
    assert event.sensors["extruder"].targets == [210.0, 210.0, 0.0]
    assert event.sensors["temperature_sensor chamber"].temperatures == []
    assert event.sensors["temperature_sensor chamber"].targets is None


def test_temperature_store_without_sensor_mapping() -> None:
    event = parse_event("temperature_store", {"sensors": None})
    assert isinstance(event, TemperatureStore)
    assert event.sensors == {}
