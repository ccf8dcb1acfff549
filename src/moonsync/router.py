"""Notification routing.

Fans each key of a status batch into the generic state merge and, for
temperature-bearing objects, into the chart pipeline.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

from moonsync._constants import CHART_FIELDS, CHART_PREFIXES, MACRO_CATEGORY
from moonsync.normalize import safe_float
from moonsync.state.store import PrinterStateStore

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class NotificationRouter:
    """Applies status batches to printer state and live charts.

    Parameters
    ----------
    state
        Shared printer state.
    clock
        Timestamp source for live chart points.
    """

    def __init__(
        self,
        state: PrinterStateStore,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._state = state
        self._clock = clock

    def is_chart_key(self, object_key: str) -> bool:
        prefixes = (*CHART_PREFIXES, *self._state.available_heaters)
        return object_key.startswith(prefixes)

    def route(self, batch: Mapping[str, Any]) -> None:
        """Apply a notification batch key by key, in payload order."""
        for key, value in batch.items():
            # Macros were registered when the object list arrived.
            if MACRO_CATEGORY in key:
                continue

            try:
                self._state.merge(key, value)
            except ValueError:
                _logger.warning("Skipping status entry with invalid key=%r", key)
                continue

            if not isinstance(value, Mapping) or not any(name in value for name in CHART_FIELDS):
                continue
            if not self.is_chart_key(key):
                continue
            self._append_chart_point(key)

    def _append_chart_point(self, key: str) -> None:
        merged = self._state.get(key, {})
        if not isinstance(merged, Mapping):
            return
        temperature = safe_float(merged.get("temperature"))
        if temperature is None:
            _logger.debug("Skipping chart point without temperature key=%s", key)
            return
        target = safe_float(merged.get("target"))
        self._state.charts.append(
            key,
            at=self._clock(),
            temperature=temperature,
            target=target if target is not None else 0.0,
        )
