"""Evaluation of a single alarm sub-expression over its sliding window."""

import math

from loguru import logger

from src.thresh.domain.models import AlarmState, SubAlarm
from src.thresh.domain.protocols import DropObserver
from src.thresh.domain.time import TimeResolution
from src.thresh.infrastructure.sliding_window_stats import SlidingWindowStats
from src.thresh.infrastructure.statistics import statistic_type_for

DEFAULT_FUTURE_SLOTS = 2


class SubAlarmStats:
    """
    Aggregates metric values for one sub-alarm and decides its state.

    The window view holds one slot per observation period. On every tick the view
    is evaluated, then slid forward to the tick's timestamp minus the lateness
    allowance. Not thread safe: one instance must be driven by a single caller.
    """

    EMPTY_WINDOW_MULTIPLIER = 2

    def __init__(
        self,
        sub_alarm: SubAlarm,
        view_end_timestamp: int,
        time_resolution: TimeResolution = TimeResolution.ABSOLUTE,
        num_future_slots: int = DEFAULT_FUTURE_SLOTS,
        drop_observer: DropObserver | None = None,
        carry_state: bool = False,
    ):
        """
        Initialize stats for a sub-alarm.

        Args:
            sub_alarm: Sub-alarm whose state is evaluated
            view_end_timestamp: Timestamp the initial view ends at; the sub-alarm stays
                UNDETERMINED until evaluations reach it
            time_resolution: Resolution timestamps are adjusted to
            num_future_slots: Slots accepting values ahead of the view
            drop_observer: Notified when a value falls outside of the window
            carry_state: Keep the sub-alarm's current state while the window warms up
                instead of reporting UNDETERMINED
        """
        if num_future_slots < 1:
            raise ValueError(f"num_future_slots must be at least 1, got {num_future_slots}")

        expression = sub_alarm.expression
        self.sub_alarm = sub_alarm
        self.stats = SlidingWindowStats(
            statistic_type_for(expression.function),
            time_resolution,
            expression.period,
            expression.periods,
            num_future_slots,
            view_end_timestamp,
            drop_observer=drop_observer,
        )
        self.warm_up_end_timestamp = self.stats.slot_end_timestamp
        self.carry_state = carry_state
        self.empty_window_observation_threshold = self.EMPTY_WINDOW_MULTIPLIER * expression.periods
        self.empty_window_observations = 0

    @property
    def state(self) -> AlarmState:
        return self.sub_alarm.state

    def add_value(self, value: float, timestamp: int) -> None:
        self.stats.add_value(value, timestamp)

    def evaluate_and_slide_window(self, current_timestamp: int, lateness_allowance: int = 0) -> bool:
        """
        Evaluate the sub-alarm state, then slide the window.

        Args:
            current_timestamp: Tick timestamp in seconds, monotonic across calls
            lateness_allowance: Seconds to wait for late values before a period is judged

        Returns:
            True if the sub-alarm state changed
        """
        initial_state = self.sub_alarm.state
        evaluation_timestamp = current_timestamp - lateness_allowance
        try:
            self.sub_alarm.state = self._evaluate(evaluation_timestamp)
        finally:
            self.stats.slide_view_to(evaluation_timestamp)

        changed = self.sub_alarm.state != initial_state
        if changed:
            logger.debug(
                f"Sub-alarm {self.sub_alarm.id} went from {initial_state} to {self.sub_alarm.state} "
                f"at {current_timestamp}"
            )
        return changed

    def _evaluate(self, evaluation_timestamp: int) -> AlarmState:
        state = self.sub_alarm.state

        # The view has not covered its configured span since construction
        if evaluation_timestamp < self.warm_up_end_timestamp:
            return state if self.carry_state else AlarmState.UNDETERMINED

        # The newest view period is still open, it is judged on a later tick
        if self.stats.slot_end_timestamp > evaluation_timestamp:
            return state

        values = self.stats.get_view_values()
        populated = [value for value in values if not math.isnan(value)]

        if not populated:
            self.empty_window_observations += 1
            if self.empty_window_observations >= self.empty_window_observation_threshold:
                return AlarmState.UNDETERMINED
            return state

        self.empty_window_observations = 0
        expression = self.sub_alarm.expression
        if not all(expression.comparator.evaluate(value, expression.threshold) for value in populated):
            return AlarmState.OK
        if len(populated) == len(values):
            return AlarmState.ALARM

        # Violating so far, but every period must be observed to confirm ALARM
        return state

    def __repr__(self) -> str:
        return (
            f"SubAlarmStats(sub_alarm={self.sub_alarm.id}, state={self.sub_alarm.state}, "
            f"empty_window_observations={self.empty_window_observations}, stats={self.stats!r})"
        )
