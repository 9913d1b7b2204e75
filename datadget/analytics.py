"""
Growth, trend and summary analytics over a widget's history.

Every function here is pure: it takes a series (oldest first) plus window
parameters and an optional reference ``now`` in epoch milliseconds, and
returns ``None`` / an empty result when there is not enough data. Samples
carrying an ``error`` never take part in the numbers.

The comparison point for growth is the *last* usable sample recorded at or
before ``now - hours_back``. With sparse sampling that point may be much
older than the lookback window.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Literal, Optional, Sequence

from datadget.clock import hours_ago
from datadget.models.widgets import HistorySample

Direction = Literal["up", "down", "stable"]

# Lookback periods shown for a widget, in hours: 1h, 24h, 7d, 30d
GROWTH_PERIODS = (1, 24, 168, 720)
CHART_HOURS = 168
NO_VALUE = "—"


# ── Data classes ─────────────────────────────────────────────────


@dataclass(frozen=True)
class ChartPoint:
    timestamp: int
    value: float


@dataclass
class HistorySummary:
    min: Optional[float] = None
    max: Optional[float] = None
    average: Optional[float] = None
    latest: Optional[float] = None
    data_points: int = 0


@dataclass
class ValueChange:
    """Latest value compared with the lookback comparison point."""

    current: float
    previous: float
    absolute_change: float
    percentage_change: Optional[float]
    direction: Direction


@dataclass
class DerivedSnapshot:
    """Everything the UI and the widget extension show for one widget."""

    growth: dict[int, Optional[float]] = field(default_factory=dict)
    trend_short: Optional[Direction] = None
    trend: Optional[Direction] = None
    change: Optional[ValueChange] = None
    summary: HistorySummary = field(default_factory=HistorySummary)
    chart: list[ChartPoint] = field(default_factory=list)

    @property
    def growth_24h(self) -> Optional[float]:
        return self.growth.get(24)


# ── Number parsing ───────────────────────────────────────────────


def parse_number(value: object) -> Optional[float]:
    """Parse a recorded value as a finite float.

    Handles both decimal conventions: ``"12,5"`` is 12.5, and when both
    separators appear the rightmost one is the decimal mark, so
    ``"1,234.5"`` and ``"1.234,5"`` are both 1234.5. Several commas and no
    dot (``"1,234,567"``) are read as thousands grouping.
    """
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    if not text or "_" in text:
        return None

    if "," in text and "." in text:
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif text.count(",") > 1:
        text = text.replace(",", "")
    else:
        text = text.replace(",", ".")

    try:
        number = float(text)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


def _valid_points(series: Sequence[HistorySample]) -> list[ChartPoint]:
    points = []
    for sample in series:
        if sample.is_error:
            continue
        number = parse_number(sample.value)
        if number is not None:
            points.append(ChartPoint(sample.timestamp, number))
    return points


def _comparison_pair(
    series: Sequence[HistorySample],
    hours_back: float,
    now: Optional[int],
) -> Optional[tuple[float, float]]:
    """``(latest, previous)`` values for growth-style comparisons."""
    if len(series) < 2:
        return None

    latest = series[-1]
    if latest.is_error:
        return None

    cutoff = hours_ago(hours_back, now)
    previous = None
    for sample in series:
        if sample.timestamp > cutoff:
            break
        if not sample.is_error:
            previous = sample
    if previous is None:
        return None

    latest_value = parse_number(latest.value)
    previous_value = parse_number(previous.value)
    if latest_value is None or previous_value is None:
        return None
    return latest_value, previous_value


def _direction(delta: float) -> Direction:
    if delta > 0:
        return "up"
    if delta < 0:
        return "down"
    return "stable"


# ── Analytics ────────────────────────────────────────────────────


def growth_percentage(
    series: Sequence[HistorySample],
    hours_back: float = 24,
    now: Optional[int] = None,
) -> Optional[float]:
    """Percent change from the lookback comparison point to the latest value.

    ``None`` when the series is shorter than two samples, the latest sample
    is a failure, nothing usable was recorded before the cutoff, or the
    comparison value is zero.
    """
    pair = _comparison_pair(series, hours_back, now)
    if pair is None:
        return None
    latest, previous = pair
    if previous == 0:
        return None
    return (latest - previous) / previous * 100


def trend(series: Sequence[HistorySample], points_to_check: int = 5) -> Optional[Direction]:
    """Majority direction of the steps between the last few usable values."""
    if len(series) < 2:
        return None

    values = [p.value for p in _valid_points(series)[-points_to_check:]]
    if len(values) < 2:
        return None

    increases = 0
    decreases = 0
    for before, after in zip(values, values[1:]):
        if after > before:
            increases += 1
        elif after < before:
            decreases += 1

    if increases > decreases:
        return "up"
    if decreases > increases:
        return "down"
    return "stable"


def chart_series(
    series: Sequence[HistorySample],
    hours_back: float = CHART_HOURS,
    now: Optional[int] = None,
) -> list[ChartPoint]:
    """Usable samples inside the window, as numbers, oldest first."""
    cutoff = hours_ago(hours_back, now)
    return [p for p in _valid_points(series) if p.timestamp >= cutoff]


def summary(
    series: Sequence[HistorySample],
    hours_back: float = CHART_HOURS,
    now: Optional[int] = None,
) -> HistorySummary:
    points = chart_series(series, hours_back, now)
    if not points:
        return HistorySummary()

    values = [p.value for p in points]
    return HistorySummary(
        min=min(values),
        max=max(values),
        average=sum(values) / len(values),
        latest=values[-1],
        data_points=len(values),
    )


def value_change(
    series: Sequence[HistorySample],
    hours_back: float = 24,
    now: Optional[int] = None,
) -> Optional[ValueChange]:
    """Like ``growth_percentage`` but with the raw values and direction.

    A zero comparison value still yields a result; only its
    ``percentage_change`` is ``None``.
    """
    pair = _comparison_pair(series, hours_back, now)
    if pair is None:
        return None
    current, previous = pair
    delta = current - previous
    return ValueChange(
        current=current,
        previous=previous,
        absolute_change=delta,
        percentage_change=None if previous == 0 else delta / previous * 100,
        direction=_direction(delta),
    )


def downsample(points: Sequence[ChartPoint], max_points: int) -> list[ChartPoint]:
    """Keep the *max_points* most recent points."""
    if max_points <= 0:
        return []
    return list(points[-max_points:])


def build_snapshot(series: Sequence[HistorySample], now: Optional[int] = None) -> DerivedSnapshot:
    return DerivedSnapshot(
        growth={hours: growth_percentage(series, hours, now) for hours in GROWTH_PERIODS},
        trend_short=trend(series, 3),
        trend=trend(series, 5),
        change=value_change(series, 24, now),
        summary=summary(series, CHART_HOURS, now),
        chart=chart_series(series, CHART_HOURS, now),
    )


# ── Formatting ───────────────────────────────────────────────────


def format_growth_percentage(percentage: Optional[float]) -> str:
    """``+12.3%`` / ``-4.0%``, or an em dash when there is no value."""
    if percentage is None:
        return NO_VALUE
    sign = "+" if percentage >= 0 else ""
    return f"{sign}{percentage:.1f}%"


def _round_half_up(x: float) -> int:
    return math.floor(x + 0.5)


def time_range_label(hours: float) -> str:
    """Short label for a lookback window: ``12h``, ``3d``, ``2w``, ``1mo``."""
    if hours < 24:
        return f"{hours:g}h"
    if hours < 168:
        return f"{_round_half_up(hours / 24)}d"
    if hours < 720:
        return f"{_round_half_up(hours / 168)}w"
    return f"{_round_half_up(hours / 720)}mo"


def format_value(value: object, prefix: str = "", suffix: str = "") -> str:
    return f"{prefix or ''}{value}{suffix or ''}"
