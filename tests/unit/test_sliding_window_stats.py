"""Unit tests for the slot ring backing sub-alarm windows."""

import math

import pytest

from src.thresh.domain.exceptions import StatisticInitializationError, WindowRangeError
from src.thresh.domain.time import TimeResolution
from src.thresh.infrastructure.sliding_window_stats import SlidingWindowStats
from src.thresh.infrastructure.statistics import AverageStatistic, SumStatistic


def _values_are_empty(values: list[float]) -> bool:
    return all(math.isnan(value) for value in values)


@pytest.fixture
def window(drop_observer) -> SlidingWindowStats:
    """One second slots, three in the view and two ahead of it; view ends at 3."""
    return SlidingWindowStats(SumStatistic, TimeResolution.ABSOLUTE, 1, 3, 2, 3, drop_observer=drop_observer)


def test_initial_layout(window) -> None:
    assert window.slot_count == 5
    assert window.slot_width == 1
    assert window.view_end_timestamp == 3
    assert window.slot_end_timestamp == 3
    assert window.window_end_timestamp == 5
    assert window.window_start_timestamp == 0
    assert window.get_timestamps() == [1, 2, 3]
    assert _values_are_empty(window.get_window_values())
    assert window._ring.begin_index == 0
    assert window.last_view_index == 2


def test_write_then_read(window) -> None:
    window.add_value(2, 1)
    window.add_value(3, 1)
    window.add_value(7, 4)

    assert window.get_value(1) == 5
    assert window.get_value(4) == 7
    assert math.isnan(window.get_value(0))
    assert window.get_view_values()[1] == 5


def test_get_values_up_to(window) -> None:
    window.add_value(1, 0)
    window.add_value(2, 2)

    values = window.get_values_up_to(2)

    assert values[0] == 1
    assert math.isnan(values[1])
    assert values[2] == 2
    assert len(values) == 3


def test_slide_to_view_end_is_noop(window) -> None:
    window.add_value(4, 2)
    before = window.get_window_values()

    window.slide_view_to(3)
    window.slide_view_to(1)

    assert window.view_end_timestamp == 3
    assert window.get_timestamps() == [1, 2, 3]
    assert window.get_window_values()[2] == before[2]


def test_slide_erases_stepped_over_slots(window) -> None:
    window.add_value(1, 0)
    window.add_value(2, 3)

    window.slide_view_to(4)

    assert window.get_timestamps() == [2, 3, 4]
    assert window.window_end_timestamp == 6
    assert window._ring.begin_index == 1
    assert window.last_view_index == 3
    assert window.get_view_values()[2] == 2
    assert _values_are_empty(window.get_window_values()[3:])


def test_wraparound_after_full_rotation(window) -> None:
    for timestamp in range(5):
        window.add_value(1, timestamp)

    window.slide_view_to(8)

    assert _values_are_empty(window.get_window_values())
    assert window.get_timestamps() == [6, 7, 8]
    assert window.window_end_timestamp == 10
    assert window._ring.begin_index == 0

    window.add_value(9, 9)
    assert window.get_value(9) == 9
    assert window.get_window_values().count(9) == 1


def test_view_edge_wraps_around_the_ring(window) -> None:
    window.slide_view_to(6)

    assert window._ring.begin_index == 3
    assert window.last_view_index == 0
    assert window.get_timestamps() == [4, 5, 6]

    window.add_value(2, 5)
    assert window.get_view_values()[2] == 2


def test_slide_reuses_slots_and_statistics(window) -> None:
    slots = [(id(slot), id(slot.stat)) for slot in window._ring.iter_slots()]

    window.slide_view_to(7)

    assert sorted((id(slot), id(slot.stat)) for slot in window._ring.iter_slots()) == sorted(slots)


def test_slide_far_past_window(window) -> None:
    window.add_value(1, 2)

    window.slide_view_to(100)

    assert window.view_end_timestamp == 100
    assert window.get_timestamps() == [98, 99, 100]
    assert window.window_end_timestamp == 102
    assert _values_are_empty(window.get_window_values())


def test_slide_rounds_up_to_slot_end() -> None:
    window = SlidingWindowStats(AverageStatistic, TimeResolution.ABSOLUTE, 60, 3, 2, 60)

    window.slide_view_to(61)

    assert window.slot_end_timestamp == 120
    assert window.view_end_timestamp == 61
    assert window.get_timestamps() == [0, 60, 120]


def test_out_of_range_values_are_dropped(window, drop_observer) -> None:
    window.add_value(1, 5)
    window.add_value(1, -1)

    assert drop_observer.total == 2
    assert drop_observer.counts["future"] == 1
    assert drop_observer.counts["expired"] == 1
    assert drop_observer.last_dropped.timestamp == -1
    assert _values_are_empty(window.get_window_values())


@pytest.mark.parametrize("timestamp", [-1, 5, 50])
def test_get_value_outside_window_raises(window, timestamp) -> None:
    with pytest.raises(WindowRangeError) as exc_info:
        window.get_value(timestamp)

    assert exc_info.value.details["window_start"] == 0
    assert exc_info.value.details["window_end"] == 5


def test_get_values_up_to_outside_window_raises(window) -> None:
    with pytest.raises(WindowRangeError):
        window.get_values_up_to(5)


def test_index_of_time_outside_window_is_none(window) -> None:
    assert window.index_of_time(5) is None
    assert window.index_of_time(-1) is None
    assert window.index_of_time(0) == 0


def test_time_resolution_truncates_timestamps() -> None:
    window = SlidingWindowStats(SumStatistic, TimeResolution.MINUTES, 60, 1, 1, 125)

    assert window.view_end_timestamp == 120

    window.add_value(3, 61)
    assert window.get_value(60) == 3


@pytest.mark.parametrize(
    ("slot_width", "num_view_slots", "num_future_slots"),
    [(0, 1, 1), (60, 0, 1), (60, 1, -1)],
)
def test_invalid_dimensions_rejected(slot_width, num_view_slots, num_future_slots) -> None:
    with pytest.raises(ValueError):
        SlidingWindowStats(SumStatistic, TimeResolution.ABSOLUTE, slot_width, num_view_slots, num_future_slots, 0)


def test_failing_statistic_factory() -> None:
    def broken_statistic():
        raise RuntimeError("no backend")

    with pytest.raises(StatisticInitializationError) as exc_info:
        SlidingWindowStats(broken_statistic, TimeResolution.ABSOLUTE, 1, 1, 1, 0)

    assert exc_info.value.details["original_error_type"] == "RuntimeError"


def test_repr_shows_view_then_future(window) -> None:
    window.add_value(2, 0)

    assert repr(window) == "SlidingWindowStats [[1=2.0, 2=nan, 3=nan], 4=nan, 5=nan]"
