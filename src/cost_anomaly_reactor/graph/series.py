"""Sparse per-series cost accumulation."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import date

from cost_anomaly_reactor.graph.axis import DateAxis


@dataclass
class MaterializedSeries:
    """Dense series vectors aligned to one ordered list of dates."""

    dates: list[date]
    values: dict[str, list[float]] = field(default_factory=dict)


class SeriesStore:
    """
    Mapping of series label to a sparse date -> cost mapping.

    Points are keyed by (label, date); inserting the same key twice keeps the
    last cost. One lock guards both the points and the date axis cache, so
    parallel fetch workers may call add_point concurrently.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._points: dict[str, dict[date, float]] = {}
        self.axis = DateAxis()

    def add_point(self, day: date, cost: float, label: str) -> None:
        """Insert or overwrite the cost of ``label`` on ``day``."""
        with self._lock:
            self._points.setdefault(label, {})[day] = float(cost)
            self.axis.record_date(day)

    def labels(self) -> list[str]:
        with self._lock:
            return list(self._points)

    def sorted_dates(self) -> list[date]:
        with self._lock:
            return list(self.axis.sorted_dates())

    def materialize(self) -> dict[str, list[float]]:
        """
        Expand every series to a dense vector over the shared axis.

        Dates without a recorded point are filled with 0.0.

        Returns:
            Mapping of label to costs ordered like ``sorted_dates()``.
        """
        return self.snapshot().values

    def snapshot(self) -> MaterializedSeries:
        """Materialize dates and values under a single lock acquisition."""
        with self._lock:
            dates = list(self.axis.sorted_dates())
            values = {
                label: [points.get(day, 0.0) for day in dates]
                for label, points in self._points.items()
            }
        return MaterializedSeries(dates=dates, values=values)

    def __len__(self) -> int:
        with self._lock:
            return len(self._points)
