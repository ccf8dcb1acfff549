"""In-memory printer state container.

This is the only component allowed to mutate volatile printer state.  The
engine owns one instance and hands it to every component that needs it.
"""

from __future__ import annotations

import copy
import logging
import re
from collections import deque
from collections.abc import Iterable, Mapping
from typing import Any

from moonsync.charts import ChartStore
from moonsync.models.macro import Macro
from moonsync.state.paths import StatePath

_logger = logging.getLogger(__name__)

_LINE_BREAKS = re.compile(r"\r\n|\r|\n")

_INFO_PATH = StatePath(("info",))
_HEATERS_PATH = StatePath(("heaters", "available_heaters"))


class PrinterStateStore:
    """Volatile printer state: objects, waits, macros, sensor groups, console and charts."""

    def __init__(self, *, chart_window: int, console_retention: int) -> None:
        self._chart_window = chart_window
        self._console_retention = console_retention
        self._printer: dict[str, Any] = {}
        self._waits: set[str] = set()
        self._macros: dict[str, Macro] = {}
        self._sensor_groups: dict[str, list[str]] = {}
        self._console: deque[str] = deque(maxlen=console_retention)
        self._charts = ChartStore(chart_window)

    # ------------------------------------------------------------------
    # Printer objects
    # ------------------------------------------------------------------

    @property
    def printer(self) -> dict[str, Any]:
        """Deep copy of the merged printer state."""
        return copy.deepcopy(self._printer)

    def get(self, object_key: str, default: Any = None) -> Any:
        return StatePath.from_object_key(object_key).get(self._printer, default)

    def merge(self, object_key: str, value: Any) -> None:
        """Deep-merge *value* at the location of *object_key*."""
        StatePath.from_object_key(object_key).merge(self._printer, value)

    def ensure_object(self, object_key: str) -> None:
        """Make sure a (possibly nested) entry exists for *object_key*."""
        StatePath.from_object_key(object_key).setdefault(self._printer, {})

    @property
    def info(self) -> dict[str, Any]:
        value = _INFO_PATH.get(self._printer, {})
        return copy.deepcopy(value) if isinstance(value, dict) else {}

    def merge_info(self, info: Mapping[str, Any]) -> None:
        _INFO_PATH.merge(self._printer, dict(info))

    @property
    def available_heaters(self) -> list[str]:
        heaters = _HEATERS_PATH.get(self._printer, [])
        if not isinstance(heaters, list):
            return []
        return [heater for heater in heaters if isinstance(heater, str) and heater]

    # ------------------------------------------------------------------
    # Waits
    # ------------------------------------------------------------------

    @property
    def waits(self) -> frozenset[str]:
        return frozenset(self._waits)

    def has_wait(self, wait: str) -> bool:
        return wait in self._waits

    def add_wait(self, wait: str) -> None:
        self._waits.add(wait)

    def remove_wait(self, wait: str) -> bool:
        """Remove *wait*; returns ``False`` when it was not pending."""
        if wait not in self._waits:
            return False
        self._waits.discard(wait)
        return True

    # ------------------------------------------------------------------
    # Macros and sensor groups
    # ------------------------------------------------------------------

    @property
    def macros(self) -> list[Macro]:
        return list(self._macros.values())

    def add_macro(self, macro: Macro) -> None:
        self._macros[macro.name] = macro

    def update_macro(self, name: str, **changes: Any) -> Macro | None:
        existing = self._macros.get(name)
        if existing is None:
            return None
        updated = existing.model_copy(update=changes)
        self._macros[name] = updated
        return updated

    @property
    def sensor_groups(self) -> dict[str, list[str]]:
        return {bucket: list(members) for bucket, members in self._sensor_groups.items()}

    def set_sensor_groups(self, groups: Mapping[str, Iterable[str]]) -> None:
        """Replace the sensor grouping wholesale."""
        self._sensor_groups = {bucket: list(members) for bucket, members in groups.items()}

    # ------------------------------------------------------------------
    # Console
    # ------------------------------------------------------------------

    @property
    def console(self) -> list[str]:
        return list(self._console)

    def add_console_entry(self, line: str) -> None:
        self._console.append(_LINE_BREAKS.sub("<br>", line))

    # ------------------------------------------------------------------
    # Charts
    # ------------------------------------------------------------------

    @property
    def charts(self) -> ChartStore:
        return self._charts

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Return every volatile field to its default."""
        _logger.debug("Resetting printer state")
        self._printer = {}
        self._waits = set()
        self._macros = {}
        self._sensor_groups = {}
        self._console = deque(maxlen=self._console_retention)
        self._charts = ChartStore(self._chart_window)
