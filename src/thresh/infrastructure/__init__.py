"""Infrastructure layer for alarm threshold evaluation."""

from src.thresh.infrastructure.drop_observer import CountingDropObserver, LoggingDropObserver
from src.thresh.infrastructure.logging import LoggingContext, configure_structured_logging
from src.thresh.infrastructure.sliding_window_stats import SlidingWindowStats
from src.thresh.infrastructure.statistics import (
    AverageStatistic,
    CountStatistic,
    MaxStatistic,
    MinStatistic,
    SumStatistic,
    statistic_type_for,
)
from src.thresh.infrastructure.transition_sink import CSVTransitionSink, InMemoryTransitionSink

__all__ = [
    "CountingDropObserver",
    "LoggingDropObserver",
    "LoggingContext",
    "configure_structured_logging",
    "SlidingWindowStats",
    "AverageStatistic",
    "CountStatistic",
    "MaxStatistic",
    "MinStatistic",
    "SumStatistic",
    "statistic_type_for",
    "CSVTransitionSink",
    "InMemoryTransitionSink",
]
