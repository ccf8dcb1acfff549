from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from moonsync.state.store import PrinterStateStore
from moonsync.subscriptions import SubscriptionRegistry, classify_objects, group_sensors, wants_subscription


@dataclass
class RecordingSender:
    subscriptions: list[dict[str, list[str] | None]] = field(default_factory=list)

    def printer_info(self) -> None:
        pass

    def printer_objects_list(self) -> None:
        pass

    def printer_objects_subscribe(self, objects: Mapping[str, list[str] | None]) -> None:
        self.subscriptions.append(dict(objects))

    def server_temperature_store(self) -> None:
        pass


def _state() -> PrinterStateStore:
    return PrinterStateStore(chart_window=10, console_retention=10)


def test_macros_are_registered_and_not_subscribed() -> None:
    state = _state()
    sender = RecordingSender()
    registry = SubscriptionRegistry(state, sender)

    plan = registry.register_objects(
        ["extruder", "temperature_fan fan0", "gcode_macro START_PRINT"],
        hidden_macros=[],
    )

    assert sender.subscriptions == [{"extruder": None, "temperature_fan fan0": None}]
    assert [macro.name for macro in plan.macros] == ["START_PRINT"]
    assert state.macros[0].visible is True
    assert state.get("extruder") == {}
    assert state.get("temperature_fan fan0") == {}
    assert state.printer["temperature_fan"] == {"fan0": {}}


def test_hidden_macros_are_registered_invisible() -> None:
    plan = classify_objects(["gcode_macro START_PRINT", "gcode_macro END_PRINT"], hidden_macros=["END_PRINT"])

    visibility = {macro.name: macro.visible for macro in plan.macros}
    assert visibility == {"START_PRINT": True, "END_PRINT": False}
    assert plan.subscriptions == {}


def test_menu_objects_are_not_subscribed() -> None:
    assert wants_subscription("extruder")
    assert not wants_subscription("menu __main")
    assert not wants_subscription("gcode_macro PARK")


def test_sensor_grouping_uses_plural_buckets() -> None:
    groups = group_sensors(
        [
            "extruder",
            "temperature_fan fan0",
            "temperature_fan fan1",
            "temperature_sensor chamber",
            "fan",
        ]
    )

    assert groups == {
        "temperature_fans": ["fan0", "fan1"],
        "temperature_sensors": ["chamber"],
    }


def test_acknowledge_replaces_sensor_groups() -> None:
    state = _state()
    registry = SubscriptionRegistry(state, RecordingSender())
    state.set_sensor_groups({"temperature_probes": ["old"]})

    registry.acknowledge({"temperature_probe eddy": {"temperature": 30.0}})

    assert state.sensor_groups == {"temperature_probes": ["eddy"]}


def test_invalid_object_key_is_skipped_but_still_subscribed() -> None:
    state = _state()
    sender = RecordingSender()
    registry = SubscriptionRegistry(state, sender)

    registry.register_objects(["extruder", "category ", "heater_bed"])

    assert state.get("extruder") == {}
    assert state.get("heater_bed") == {}
    assert "category" not in state.printer
    assert sender.subscriptions == [{"extruder": None, "category ": None, "heater_bed": None}]
