"""Shared date axis for cost graphs."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date

DATE_FORMAT = "%Y-%m-%d"
MAX_LABELS = 8


@dataclass(frozen=True)
class Tick:
    """A tick mark on the x axis. Empty label means marker only."""

    position: float
    label: str


class DateAxis:
    """
    Set of distinct dates observed across all series of one graph.

    Not thread-safe on its own: the owning SeriesStore serializes access.
    """

    def __init__(self) -> None:
        self._dates: set[date] = set()
        self._cache: list[date] | None = None

    @classmethod
    def from_dates(cls, dates: list[date]) -> "DateAxis":
        axis = cls()
        for day in dates:
            axis.record_date(day)
        return axis

    def record_date(self, day: date) -> None:
        """Add a date to the axis and drop the sorted cache."""
        self._dates.add(day)
        self._cache = None

    def sorted_dates(self) -> list[date]:
        """Return the observed dates in ascending order."""
        if self._cache is None:
            self._cache = sorted(self._dates)
        return self._cache

    def __len__(self) -> int:
        return len(self._dates)

    def tick_labels(
        self,
        vmin: float,
        vmax: float,
        max_label_count: int = MAX_LABELS,
    ) -> list[Tick]:
        """
        Build decimated ticks for the visible range.

        Every date index inside [vmin, vmax] gets a tick so bars keep their
        position markers, but only every ``stride``-th tick (counted from
        vmin) carries a label.

        Args:
            vmin: Lower bound of the visible x range.
            vmax: Upper bound of the visible x range.
            max_label_count: Upper bound on the number of non-empty labels.

        Returns:
            Ticks in ascending position order.
        """
        dates = self.sorted_dates()
        if not dates:
            return []

        stride = max(1, math.ceil(len(dates) / max(1, max_label_count)))
        ticks = []
        for i, day in enumerate(dates):
            if not vmin <= i <= vmax:
                continue
            label = day.strftime(DATE_FORMAT) if int(i - vmin) % stride == 0 else ""
            ticks.append(Tick(position=float(i), label=label))
        return ticks
