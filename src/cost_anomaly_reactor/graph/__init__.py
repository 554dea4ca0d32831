"""Stacked daily cost chart rendering."""

from cost_anomaly_reactor.graph.axis import DateAxis, Tick
from cost_anomaly_reactor.graph.cost_graph import CostGraph
from cost_anomaly_reactor.graph.reducer import OTHERS_LABEL, ReducedSeries, SeriesReducer
from cost_anomaly_reactor.graph.renderer import ChartRenderer, RenderedGraph, RenderFailure
from cost_anomaly_reactor.graph.series import MaterializedSeries, SeriesStore

__all__ = [
    "CostGraph",
    "DateAxis",
    "Tick",
    "SeriesStore",
    "MaterializedSeries",
    "SeriesReducer",
    "ReducedSeries",
    "OTHERS_LABEL",
    "ChartRenderer",
    "RenderedGraph",
    "RenderFailure",
]
