"""Cost graph facade: accumulate daily costs, render a stacked bar PNG."""

from __future__ import annotations

from datetime import date

from cost_anomaly_reactor.graph.axis import DateAxis
from cost_anomaly_reactor.graph.reducer import MAX_SERIES, ReducedSeries, SeriesReducer
from cost_anomaly_reactor.graph.renderer import ChartRenderer, RenderedGraph
from cost_anomaly_reactor.graph.series import SeriesStore


class CostGraph:
    """
    Daily cost chart for one root cause.

    Usage:
        graph = CostGraph()
        graph.add_point(date(2021, 5, 17), 1.25, "us-east-1")
        rendered = graph.render("EC2", "Cost (USD)")
        rendered.data, rendered.size
    """

    def __init__(
        self,
        renderer: ChartRenderer | None = None,
        max_series: int = MAX_SERIES,
    ):
        self.store = SeriesStore()
        self.reducer = SeriesReducer(max_series=max_series)
        self.renderer = renderer or ChartRenderer()

    def add_point(self, day: date, cost: float, label: str) -> None:
        """Record ``cost`` for ``label`` on ``day`` (last write wins)."""
        self.store.add_point(day, cost, label)

    def reduced_series(self) -> tuple[DateAxis, list[ReducedSeries]]:
        """Snapshot the store and return its axis and reduced series."""
        snapshot = self.store.snapshot()
        axis = DateAxis.from_dates(snapshot.dates)
        return axis, self.reducer.reduce(snapshot.values, length=len(snapshot.dates))

    def render(self, title: str, y_label: str) -> RenderedGraph:
        """
        Render the accumulated points.

        An empty graph still yields a decodable PNG, flagged ``empty``.

        Raises:
            RenderFailure: If the image cannot be produced.
        """
        axis, reduced = self.reduced_series()
        return self.renderer.render(reduced, axis, title, y_label)
