"""Value coercion helpers for controller payloads."""

from __future__ import annotations

import math
from typing import Any


def safe_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result):
        return None
    return result


def fill_readings(values: Any) -> list[float]:
    """Coerce a reading list to floats, filling gaps from neighbouring readings.

    Unusable entries take the previous reading; leading ones take the first
    usable reading, or ``0.0`` when there is none.
    """
    if not isinstance(values, (list, tuple)):
        return []
    readings = [safe_float(value) for value in values]
    first = next((reading for reading in readings if reading is not None), 0.0)
    filled: list[float] = []
    previous = first
    for reading in readings:
        if reading is not None:
            previous = reading
        filled.append(previous)
    return filled
