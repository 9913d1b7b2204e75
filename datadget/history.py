"""
Bounded per-widget history of fetched values.

``HistoryStore`` wraps the ``history`` list of one widget's data source and
mutates it in place, so the widget document stays the single owner of its
samples. Failed cycles are kept in the series (with ``error`` set) so the
failure history stays visible; analytics skips them.
"""

from __future__ import annotations

import os

from datadget.clock import MS_PER_DAY, now_ms, to_iso
from datadget.models.widgets import HistorySample, Widget

HISTORY_MAX_SAMPLES = int(os.environ.get("HISTORY_MAX_SAMPLES", "100"))
HISTORY_MAX_AGE_DAYS = int(os.environ.get("HISTORY_MAX_AGE_DAYS", "30"))


class HistoryStore:
    """Append-bounded view over one widget's series.

    Args:
        samples: The list to operate on. It is modified in place.
        cap: Maximum number of samples kept; the oldest are dropped first.
    """

    def __init__(self, samples: list[HistorySample], cap: int | None = None):
        self.samples = samples
        self.cap = cap if cap is not None else HISTORY_MAX_SAMPLES

    @classmethod
    def for_widget(cls, widget: Widget, cap: int | None = None) -> "HistoryStore":
        return cls(widget.data_source.history, cap=cap)

    def __len__(self) -> int:
        return len(self.samples)

    def append(self, sample: HistorySample) -> None:
        self.samples.append(sample)
        overflow = len(self.samples) - self.cap
        if overflow > 0:
            del self.samples[:overflow]

    def prune_older_than(self, cutoff: int) -> int:
        """Drop every sample recorded before *cutoff*; returns how many."""
        kept = [s for s in self.samples if s.timestamp >= cutoff]
        removed = len(self.samples) - len(kept)
        if removed:
            self.samples[:] = kept
        return removed

    def query(self, since: int) -> list[HistorySample]:
        return [s for s in self.samples if s.timestamp >= since]

    def clear(self) -> None:
        self.samples.clear()


def age_cutoff(now: int | None = None, max_age_days: int | None = None) -> int:
    """Timestamp before which samples are considered expired."""
    now = now_ms() if now is None else now
    days = HISTORY_MAX_AGE_DAYS if max_age_days is None else max_age_days
    return now - days * MS_PER_DAY


def export_history(widget: Widget, now: int | None = None) -> dict:
    """Order-preserving export of a widget's full series."""
    now = now_ms() if now is None else now
    history = widget.data_source.history
    return {
        "entityId": widget.id,
        "exportedAt": to_iso(now),
        "dataPoints": len(history),
        "history": [
            {
                "timestamp": sample.timestamp,
                "date": to_iso(sample.timestamp),
                "value": sample.value,
                "error": sample.error,
            }
            for sample in history
        ],
    }
