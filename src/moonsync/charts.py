"""Fixed-length temperature series for live charting.

Two modes feed the same :class:`ChartStore`:

* **historical seed**: the controller's temperature store is padded to the
  expected full length and its tail is stamped backwards from the capture
  instant, one second per entry.
* **live append**: each notification carrying a temperature or target adds
  one point per series at arrival time; the oldest point falls off once the
  window is full.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from moonsync._constants import TARGET_LABEL_SUFFIX
from moonsync.models.events import SensorHistory
from moonsync.state.paths import StatePath

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ChartPoint:
    at: datetime
    value: float


@dataclass
class ChartSeries:
    """A labelled series that never holds more than ``window`` points."""

    label: str
    window: int
    points: deque[ChartPoint] = field(default_factory=deque)
    radius: int = 0

    def __post_init__(self) -> None:
        self.points = deque(self.points, maxlen=self.window)

    def __len__(self) -> int:
        return len(self.points)

    def append(self, point: ChartPoint) -> None:
        self.points.append(point)

    def values(self) -> list[float]:
        return [point.value for point in self.points]


@dataclass
class SeriesPair:
    """Value and target series for one sensor."""

    key: str
    value: ChartSeries
    target: ChartSeries


def series_key(object_key: str) -> str:
    """Chart store key for a printer object (``"temperature_fan fan0"`` -> ``"temperature_fan.fan0"``)."""
    return StatePath.from_object_key(object_key).dotted


def chart_label(object_key: str) -> str:
    """Display label: the member name of a compound key, else the key itself."""
    return StatePath.from_object_key(object_key).leaf


def _empty_pair(object_key: str, window: int) -> SeriesPair:
    label = chart_label(object_key)
    return SeriesPair(
        key=series_key(object_key),
        value=ChartSeries(label=label, window=window),
        target=ChartSeries(label=f"{label}{TARGET_LABEL_SUFFIX}", window=window),
    )


def pad_history(
    temperatures: Sequence[float],
    targets: Sequence[float] | None,
    full_length: int,
) -> tuple[list[float], list[float]]:
    """Left-pad a sensor history to *full_length* entries.

    Temperatures are padded with their first reading and targets with zero.
    A missing target list counts as all zeros; targets are aligned to the
    temperature count first.  Histories already at or above *full_length*
    are returned unchanged.
    """
    temps = list(temperatures)
    if targets is None:
        tgts = [0.0] * len(temps)
    else:
        tgts = list(targets)
        if len(tgts) < len(temps):
            tgts = [0.0] * (len(temps) - len(tgts)) + tgts
        elif len(tgts) > len(temps):
            tgts = tgts[len(tgts) - len(temps) :]

    missing = full_length - len(temps)
    if missing > 0:
        first = temps[0] if temps else 0.0
        temps = [first] * missing + temps
        tgts = [0.0] * missing + tgts
    return temps, tgts


def seed_history(
    history: Mapping[str, SensorHistory],
    *,
    captured_at: datetime,
    window: int,
    full_length: int,
) -> dict[str, SeriesPair]:
    """Build one series pair per sensor, each exactly *window* points long.

    Entry ``i`` of a padded history of length ``n`` is stamped
    ``captured_at - (n - i)`` seconds, so consecutive points are one second
    apart and the newest point is the closest to *captured_at*.
    """
    pairs: dict[str, SeriesPair] = {}
    for object_key, sensor in history.items():
        try:
            pair = _empty_pair(object_key, window)
        except ValueError:
            _logger.warning("Skipping history for invalid sensor key=%r", object_key)
            continue
        temps, tgts = pad_history(sensor.temperatures, sensor.targets, max(full_length, window))
        count = len(temps)
        for index in range(count - window, count):
            at = captured_at - timedelta(seconds=count - index)
            pair.value.append(ChartPoint(at=at, value=temps[index]))
            pair.target.append(ChartPoint(at=at, value=tgts[index]))
        pairs[pair.key] = pair
        _logger.debug(
            "Seeded chart key=%s provided=%d padded=%d",
            pair.key,
            len(sensor.temperatures),
            count - len(sensor.temperatures),
        )
    return pairs


class ChartStore:
    """All series pairs, keyed by normalized object key."""

    def __init__(self, window: int) -> None:
        self._window = window
        self._pairs: dict[str, SeriesPair] = {}

    @property
    def window(self) -> int:
        return self._window

    def __len__(self) -> int:
        return len(self._pairs)

    def __contains__(self, key: object) -> bool:
        return key in self._pairs

    def keys(self) -> list[str]:
        return list(self._pairs)

    def get(self, key: str) -> SeriesPair | None:
        return self._pairs.get(key)

    def pairs(self) -> Iterable[SeriesPair]:
        return self._pairs.values()

    def seed(self, pairs: Mapping[str, SeriesPair]) -> None:
        """Install seeded pairs, replacing any existing series with the same key."""
        self._pairs.update(pairs)

    def append(self, object_key: str, *, at: datetime, temperature: float, target: float) -> SeriesPair:
        """Append one live point to each series of *object_key*."""
        key = series_key(object_key)
        pair = self._pairs.get(key)
        if pair is None:
            pair = _empty_pair(object_key, self._window)
            self._pairs[key] = pair
        pair.value.append(ChartPoint(at=at, value=temperature))
        pair.target.append(ChartPoint(at=at, value=target))
        return pair

    def clear(self) -> None:
        self._pairs.clear()
