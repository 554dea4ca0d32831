"""Series ordering and top-N reduction."""

from __future__ import annotations

from dataclasses import dataclass

MAX_SERIES = 10
OTHERS_LABEL = "Others"


@dataclass
class ReducedSeries:
    """One entry of a reduced series set."""

    label: str
    values: list[float]
    total: float


class SeriesReducer:
    """
    Order series by total cost and fold the tail into an "Others" bucket.

    Series are sorted by total descending with ties broken by label, so the
    same input always yields the same order. When there are more than
    ``max_series`` series, the top ``max_series - 1`` are kept and the rest
    are summed element-wise into a final "Others" series. An input series
    already labelled "Others" is never kept on its own in that case; it is
    summed into the final bucket so the label appears once.
    """

    def __init__(self, max_series: int = MAX_SERIES):
        if max_series < 2:
            raise ValueError("max_series must be at least 2")
        self.max_series = max_series

    def reduce(self, values: dict[str, list[float]], length: int | None = None) -> list[ReducedSeries]:
        """
        Reduce dense series vectors.

        Args:
            values: Mapping of label to dense cost vector.
            length: Vector length, used to size "Others". Defaults to the
                length of the first vector.

        Returns:
            At most ``max_series`` entries, "Others" last when present.
        """
        if not values:
            return []

        totals = {label: sum(vector) for label, vector in values.items()}
        ordered = sorted(values, key=lambda label: (-totals[label], label))

        if len(ordered) <= self.max_series:
            return [ReducedSeries(label, list(values[label]), totals[label]) for label in ordered]

        # An input series named "Others" is folded into the synthetic bucket
        keep = [label for label in ordered if label != OTHERS_LABEL][: self.max_series - 1]
        rest = [label for label in ordered if label not in keep]

        if length is None:
            length = len(values[ordered[0]])
        others = [0.0] * length
        for label in rest:
            for i, cost in enumerate(values[label]):
                others[i] += cost

        reduced = [ReducedSeries(label, list(values[label]), totals[label]) for label in keep]
        reduced.append(ReducedSeries(OTHERS_LABEL, others, sum(totals[label] for label in rest)))
        return reduced
