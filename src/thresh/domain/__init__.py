"""Domain layer for alarm threshold evaluation."""

from src.thresh.domain.exceptions import (
    InvalidAlarmExpressionError,
    StatisticInitializationError,
    SubAlarmNotFoundError,
    ThreshException,
    WindowRangeError,
)
from src.thresh.domain.expression import AlarmExpression
from src.thresh.domain.models import (
    AggregateFunction,
    AlarmState,
    AlarmTransition,
    Comparator,
    DroppedValue,
    MetricSample,
    SubAlarm,
)
from src.thresh.domain.protocols import DropObserver, Statistic, TransitionSink
from src.thresh.domain.time import TimeResolution

__all__ = [
    "AggregateFunction",
    "AlarmExpression",
    "AlarmState",
    "AlarmTransition",
    "Comparator",
    "DroppedValue",
    "MetricSample",
    "SubAlarm",
    "TimeResolution",
    "DropObserver",
    "Statistic",
    "TransitionSink",
    "ThreshException",
    "WindowRangeError",
    "StatisticInitializationError",
    "InvalidAlarmExpressionError",
    "SubAlarmNotFoundError",
]
