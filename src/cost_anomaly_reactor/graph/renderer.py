"""Stacked daily bar chart rendering."""

from __future__ import annotations

import io
from dataclasses import dataclass

import numpy as np
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure

from cost_anomaly_reactor.graph.axis import MAX_LABELS, DateAxis
from cost_anomaly_reactor.graph.reducer import ReducedSeries

WIDTH_PX = 800
HEIGHT_PX = 400
DPI = 100
BAR_WIDTH_POINTS = 20.0
LEGEND_FONT_SIZE = 8
# Extra x positions after the last bar when a legend is drawn
LEGEND_MARGIN = 2

PALETTE = [
    "#3399ff",
    "#ff6666",
    "#2ecc71",
    "#8a2be2",
    "#ffb300",
    "#330cb4",
    "#008000",
    "#ff6600",
    "#7e00b9",
    "#8c510a",
]
FALLBACK_COLOR = "#0080ff"

# Fixed axes box in figure fractions, so bar width in data units is known
# before drawing.
_LEFT, _RIGHT, _BOTTOM, _TOP = 0.09, 0.97, 0.14, 0.88


class RenderFailure(Exception):
    """The chart could not be laid out or encoded."""


@dataclass
class RenderedGraph:
    """Encoded chart image."""

    data: bytes
    size: int
    empty: bool = False

    def reader(self) -> io.BytesIO:
        """Return a fresh file-like view of the image."""
        return io.BytesIO(self.data)


def series_color(index: int) -> str:
    """Palette color for the series at ``index``; fallback past the palette."""
    if 0 <= index < len(PALETTE):
        return PALETTE[index]
    return FALLBACK_COLOR


class ChartRenderer:
    """
    Render a reduced series set as a fixed-size stacked bar PNG.

    The first series is the base layer and every following series is stacked
    on the cumulative height of the ones before it. Image size and bar width
    do not depend on the number of dates.
    """

    def __init__(
        self,
        width_px: int = WIDTH_PX,
        height_px: int = HEIGHT_PX,
        dpi: int = DPI,
        bar_width_points: float = BAR_WIDTH_POINTS,
        max_labels: int = MAX_LABELS,
    ):
        self.width_px = width_px
        self.height_px = height_px
        self.dpi = dpi
        self.bar_width_points = bar_width_points
        self.max_labels = max_labels

    def _validate(self) -> None:
        if self.bar_width_points <= 0:
            raise RenderFailure(f"bar width must be positive, got {self.bar_width_points}")
        if self.width_px <= 0 or self.height_px <= 0:
            raise RenderFailure(f"invalid image size {self.width_px}x{self.height_px}")
        if self.dpi <= 0:
            raise RenderFailure(f"invalid dpi {self.dpi}")

    def _bar_width(self, x_span: float) -> float:
        """Convert the fixed bar width in points to x data units."""
        axes_width_px = (_RIGHT - _LEFT) * self.width_px
        bar_px = self.bar_width_points / 72.0 * self.dpi
        return bar_px / axes_width_px * x_span

    def build_figure(
        self,
        reduced: list[ReducedSeries],
        axis: DateAxis,
        title: str,
        y_label: str,
    ) -> Figure:
        """
        Lay out the chart without encoding it.

        Args:
            reduced: Series in stacking order.
            axis: Shared date axis the series vectors are aligned to.
            title: Chart title.
            y_label: Y axis label, including the currency unit.

        Returns:
            The populated matplotlib Figure.
        """
        self._validate()

        fig = Figure(figsize=(self.width_px / self.dpi, self.height_px / self.dpi), dpi=self.dpi)
        FigureCanvasAgg(fig)
        fig.subplots_adjust(left=_LEFT, right=_RIGHT, bottom=_BOTTOM, top=_TOP)
        ax = fig.add_subplot(1, 1, 1)

        ax.set_title(title, pad=10)
        ax.set_xlabel("Date")
        ax.set_ylabel(y_label)

        count = len(axis)
        x_min = -0.5
        x_max = max(count, 1) - 0.5
        if len(reduced) > 1:
            x_max += LEGEND_MARGIN
        ax.set_xlim(x_min, x_max)

        positions = np.arange(count, dtype=float)
        width = self._bar_width(x_max - x_min)
        bottom = np.zeros(count)
        for index, series in enumerate(reduced):
            heights = np.asarray(series.values, dtype=float)
            if heights.shape != bottom.shape:
                raise RenderFailure(
                    f"series {series.label!r} has {heights.size} values for {count} dates"
                )
            ax.bar(
                positions,
                heights,
                width,
                bottom=bottom,
                color=series_color(index),
                linewidth=0,
                label=series.label,
            )
            bottom = bottom + heights

        ticks = axis.tick_labels(0, count - 1, self.max_labels)
        ax.set_xticks([t.position for t in ticks])
        ax.set_xticklabels([t.label for t in ticks], fontsize=8)

        if count == 0 or not reduced:
            ax.set_ylim(0, 1)

        if len(reduced) > 1:
            ax.legend(loc="upper right", fontsize=LEGEND_FONT_SIZE, frameon=False)

        return fig

    def render(
        self,
        reduced: list[ReducedSeries],
        axis: DateAxis,
        title: str,
        y_label: str,
    ) -> RenderedGraph:
        """
        Render and encode the chart as PNG.

        Raises:
            RenderFailure: If layout or encoding fails.
        """
        fig = self.build_figure(reduced, axis, title, y_label)
        buf = io.BytesIO()
        try:
            fig.savefig(buf, format="png", dpi=self.dpi, metadata={"Software": None})
        except (ValueError, RuntimeError, OSError) as e:
            raise RenderFailure(f"failed to encode graph: {e}") from e

        data = buf.getvalue()
        return RenderedGraph(data=data, size=len(data), empty=not reduced or len(axis) == 0)
