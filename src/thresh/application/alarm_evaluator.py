"""Main AlarmEvaluator application service for streaming threshold evaluation."""

import pandas as pd
from loguru import logger

from src.config import ThreshConfig
from src.thresh.application.sub_alarm_stats import SubAlarmStats
from src.thresh.domain.exceptions import SubAlarmNotFoundError
from src.thresh.domain.expression import AlarmExpression
from src.thresh.domain.models import AlarmTransition, MetricSample, SubAlarm
from src.thresh.domain.protocols import DropObserver, TransitionSink
from src.thresh.infrastructure.logging import LoggingContext
from src.thresh.infrastructure.transition_sink import InMemoryTransitionSink


class AlarmEvaluator:
    """
    Evaluates alarm sub-expressions against a stream of metric samples.

    Keeps one SubAlarmStats per sub-alarm, routes incoming samples to every
    sub-alarm watching their metric and, on each tick, evaluates and slides all
    windows, writing state transitions to the sink.
    """

    def __init__(
        self,
        config: ThreshConfig | None = None,
        transition_sink: TransitionSink | None = None,
        drop_observer: DropObserver | None = None,
    ):
        """
        Initialize alarm evaluator.

        Args:
            config: Configuration for windows and evaluation ticks
            transition_sink: Where to store transitions (defaults to in-memory)
            drop_observer: Notified when a sample falls outside of a window
        """
        self.config = config or ThreshConfig()
        self.transition_sink = transition_sink if transition_sink is not None else InMemoryTransitionSink()
        self.drop_observer = drop_observer
        self._sub_alarm_stats: dict[str, SubAlarmStats] = {}

        logger.info(
            f"Initialized AlarmEvaluator with lateness_allowance={self.config.evaluation.lateness_allowance}s, "
            f"future_slots={self.config.window.future_slots}"
        )

    def __len__(self):
        return len(self._sub_alarm_stats)

    def __contains__(self, sub_alarm_id: str) -> bool:
        return sub_alarm_id in self._sub_alarm_stats

    def parse_expression(self, expression: str) -> AlarmExpression:
        """Parse a sub-expression using the configured default period."""
        return AlarmExpression.from_str(expression, default_period=self.config.evaluation.default_period)

    def add_sub_alarm(self, sub_alarm: SubAlarm, current_timestamp: int, carry_state: bool = False) -> SubAlarmStats:
        """
        Start evaluating a sub-alarm.

        The initial view ends one period after ``current_timestamp``, so the
        sub-alarm stays UNDETERMINED until its first period has been observed.

        Args:
            sub_alarm: Sub-alarm to evaluate
            current_timestamp: Current time in seconds
            carry_state: Keep the sub-alarm's state instead of UNDETERMINED until its
                first period has been observed

        Returns:
            The stats created for the sub-alarm
        """
        stats = SubAlarmStats(
            sub_alarm,
            current_timestamp + sub_alarm.expression.period,
            time_resolution=self.config.window.time_resolution,
            num_future_slots=self.config.window.future_slots,
            drop_observer=self.drop_observer,
            carry_state=carry_state,
        )
        if sub_alarm.id in self._sub_alarm_stats:
            logger.warning(f"Sub-alarm {sub_alarm.id} already registered, replacing its window")
        self._sub_alarm_stats[sub_alarm.id] = stats

        logger.info(f"Added sub-alarm {sub_alarm.id} of alarm {sub_alarm.alarm_id}: {sub_alarm.expression}")
        return stats

    def update_sub_alarm(self, sub_alarm_id: str, expression: AlarmExpression, current_timestamp: int) -> SubAlarmStats:
        """
        Replace a sub-alarm's expression.

        Expressions are immutable, so the sub-alarm gets a fresh window. Its
        current state is kept while the new window warms up, so an update alone
        never produces a transition.

        Raises:
            SubAlarmNotFoundError: If the sub-alarm is not registered
        """
        previous = self.get_sub_alarm_stats(sub_alarm_id).sub_alarm
        sub_alarm = SubAlarm(
            id=previous.id,
            alarm_id=previous.alarm_id,
            expression=expression,
            state=previous.state,
        )
        logger.info(f"Updating sub-alarm {sub_alarm_id}: {previous.expression} -> {expression}")
        return self.add_sub_alarm(sub_alarm, current_timestamp, carry_state=True)

    def remove_sub_alarm(self, sub_alarm_id: str) -> SubAlarm:
        """
        Stop evaluating a sub-alarm.

        Raises:
            SubAlarmNotFoundError: If the sub-alarm is not registered
        """
        stats = self._sub_alarm_stats.pop(sub_alarm_id, None)
        if stats is None:
            raise SubAlarmNotFoundError(sub_alarm_id)

        logger.info(f"Removed sub-alarm {sub_alarm_id}")
        return stats.sub_alarm

    def remove_alarm(self, alarm_id: str) -> list[SubAlarm]:
        """Stop evaluating every sub-alarm of an alarm."""
        sub_alarm_ids = [
            sub_alarm_id
            for sub_alarm_id, stats in self._sub_alarm_stats.items()
            if stats.sub_alarm.alarm_id == alarm_id
        ]
        return [self.remove_sub_alarm(sub_alarm_id) for sub_alarm_id in sub_alarm_ids]

    def get_sub_alarm_stats(self, sub_alarm_id: str) -> SubAlarmStats:
        stats = self._sub_alarm_stats.get(sub_alarm_id)
        if stats is None:
            raise SubAlarmNotFoundError(sub_alarm_id)
        return stats

    def add_metric(self, sample: MetricSample) -> int:
        """
        Route a sample to every sub-alarm watching its metric.

        Returns:
            Number of sub-alarms the sample was added to
        """
        matched = 0
        for stats in self._sub_alarm_stats.values():
            if stats.sub_alarm.expression.matches(sample):
                stats.add_value(sample.value, sample.timestamp)
                matched += 1

        if not matched:
            logger.debug(f"No sub-alarm watches metric {sample.name} {sample.dimensions}")
        return matched

    def evaluate(self, current_timestamp: int) -> list[AlarmTransition]:
        """
        Evaluate and slide every sub-alarm window.

        A failing sub-alarm is logged and skipped, the remaining ones are still evaluated.

        Args:
            current_timestamp: Tick time in seconds

        Returns:
            Transitions produced by this tick
        """
        lateness_allowance = self.config.evaluation.lateness_allowance
        transitions: list[AlarmTransition] = []

        for stats in self._sub_alarm_stats.values():
            sub_alarm = stats.sub_alarm
            with LoggingContext(alarm_id=sub_alarm.alarm_id, sub_alarm_id=sub_alarm.id):
                initial_state = sub_alarm.state
                view_values = stats.stats.get_view_values()
                try:
                    changed = stats.evaluate_and_slide_window(current_timestamp, lateness_allowance)
                except Exception as e:
                    logger.error(f"Failed to evaluate sub-alarm {sub_alarm.id} at {current_timestamp}: {e}")
                    continue

                if changed:
                    transitions.append(
                        AlarmTransition(
                            timestamp=current_timestamp,
                            alarm_id=sub_alarm.alarm_id,
                            sub_alarm_id=sub_alarm.id,
                            old_state=initial_state,
                            new_state=sub_alarm.state,
                            expression=str(sub_alarm.expression),
                            view_values=view_values,
                        )
                    )
                    logger.info(f"{sub_alarm.id}: {initial_state} -> {sub_alarm.state} at {current_timestamp}")

        if transitions:
            self.transition_sink.write_transitions(transitions)
        return transitions

    def replay_dataframe(self, df: pd.DataFrame, tick_interval: int | None = None, verbose: bool = False) -> pd.DataFrame:
        """
        Single-pass replay of recorded samples with ticks every ``tick_interval`` seconds.

        Args:
            df: Long-format DataFrame with 'name', 'value', 'timestamp' columns and
                an optional 'dimensions' column of dicts; timestamps are epoch
                seconds or datetimes
            tick_interval: Seconds between ticks (defaults to configured interval)
            verbose: Log progress every 1000 rows

        Returns:
            Transitions DataFrame from the sink
        """
        tick_interval = tick_interval or self.config.evaluation.tick_interval
        missing = {"name", "value", "timestamp"} - set(df.columns)
        if missing:
            raise ValueError(f"DataFrame is missing columns: {sorted(missing)}")

        if df.empty:
            return self.transition_sink.to_dataframe()

        timestamps = df["timestamp"]
        if not pd.api.types.is_numeric_dtype(timestamps):
            timestamps = pd.to_datetime(timestamps, utc=True).map(lambda ts: int(ts.timestamp()))
        df = df.assign(timestamp=timestamps.astype("int64")).sort_values("timestamp", kind="stable")

        logger.info(f"Starting replay of {len(df)} samples with ticks every {tick_interval}s...")

        next_tick = (int(df["timestamp"].iloc[0]) // tick_interval + 1) * tick_interval
        row_count = 0
        transition_count = 0

        for _, row in df.iterrows():
            timestamp = int(row["timestamp"])
            while timestamp >= next_tick:
                transition_count += len(self.evaluate(next_tick))
                next_tick += tick_interval

            dimensions = row["dimensions"] if "dimensions" in df.columns and isinstance(row["dimensions"], dict) else {}
            self.add_metric(MetricSample(row["name"], float(row["value"]), timestamp, dimensions))

            row_count += 1
            if verbose and row_count % 1000 == 0:
                logger.info(f"Replayed {row_count} samples, found {transition_count} transitions")

        transition_count += len(self.evaluate(next_tick))

        logger.info(f"✓ Completed replay: {row_count} samples, {transition_count} transitions")
        return self.transition_sink.to_dataframe()

    def get_statistics(self) -> dict:
        """Get statistics about evaluator state."""
        states: dict[str, int] = {}
        for stats in self._sub_alarm_stats.values():
            states[stats.state.value] = states.get(stats.state.value, 0) + 1

        return {
            "num_sub_alarms": len(self._sub_alarm_stats),
            "states": states,
            "lateness_allowance": self.config.evaluation.lateness_allowance,
            "total_transitions": len(self.transition_sink) if hasattr(self.transition_sink, "__len__") else None,
        }
