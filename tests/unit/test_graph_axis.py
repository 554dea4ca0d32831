"""Tests for the shared date axis and tick decimation."""

from datetime import date, timedelta

from cost_anomaly_reactor.graph.axis import DateAxis, Tick


def make_axis(count: int, start: date = date(2021, 5, 1)) -> DateAxis:
    """Axis with ``count`` consecutive days."""
    return DateAxis.from_dates([start + timedelta(days=i) for i in range(count)])


class TestDateAxis:
    """Tests for DateAxis."""

    def test_dates_are_sorted_and_distinct(self):
        axis = DateAxis()
        for day in (date(2021, 5, 3), date(2021, 5, 1), date(2021, 5, 3), date(2021, 5, 2)):
            axis.record_date(day)

        assert axis.sorted_dates() == [date(2021, 5, 1), date(2021, 5, 2), date(2021, 5, 3)]
        assert len(axis) == 3

    def test_record_date_invalidates_sorted_cache(self):
        """A new earlier date shows up after the sorted list was cached."""
        axis = make_axis(3, start=date(2021, 5, 10))
        assert axis.sorted_dates()[0] == date(2021, 5, 10)

        axis.record_date(date(2021, 5, 1))

        assert axis.sorted_dates()[0] == date(2021, 5, 1)
        labels = [t.label for t in axis.tick_labels(0, 3)]
        assert labels[0] == "2021-05-01"


class TestTickLabels:
    """Tests for DateAxis.tick_labels."""

    def test_empty_axis_has_no_ticks(self):
        assert DateAxis().tick_labels(0, 10) == []

    def test_few_dates_all_labelled(self):
        ticks = make_axis(5).tick_labels(0, 4, max_label_count=8)

        assert len(ticks) == 5
        assert all(t.label for t in ticks)
        assert ticks[0] == Tick(position=0.0, label="2021-05-01")

    def test_thirty_dates_use_stride_four(self):
        ticks = make_axis(30).tick_labels(0, 29, max_label_count=8)

        labelled = [t for t in ticks if t.label]
        assert len(ticks) == 30
        assert len(labelled) <= 8
        assert [t.position for t in labelled] == [0.0, 4.0, 8.0, 12.0, 16.0, 20.0, 24.0, 28.0]

    def test_seventeen_dates_stride_three(self):
        """The 8 day window either side of a one day anomaly."""
        ticks = make_axis(17).tick_labels(0, 16, max_label_count=8)

        labelled = [int(t.position) for t in ticks if t.label]
        assert labelled == [0, 3, 6, 9, 12, 15]

    def test_stride_counts_from_vmin(self):
        ticks = make_axis(10).tick_labels(2, 5, max_label_count=5)

        assert [t.position for t in ticks] == [2.0, 3.0, 4.0, 5.0]
        assert [bool(t.label) for t in ticks] == [True, False, True, False]

    def test_zero_max_label_count_does_not_divide_by_zero(self):
        ticks = make_axis(3).tick_labels(0, 2, max_label_count=0)
        assert len(ticks) == 3
