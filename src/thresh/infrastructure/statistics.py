"""River-based implementations of the Statistic protocol."""

import math
from typing import Callable

from loguru import logger
from river import stats

from src.thresh.domain.exceptions import StatisticInitializationError
from src.thresh.domain.models import AggregateFunction
from src.thresh.domain.protocols import Statistic


class RiverStatistic(Statistic):
    """
    Running aggregate backed by a River univariate statistic.

    River statistics report a neutral value (0, inf) before the first update, so
    the observation count is tracked here to report NaN for empty slots.
    """

    function: AggregateFunction
    river_type: Callable[[], stats.base.Univariate]

    def __init__(self):
        self._stat = self.river_type()
        self._count = 0

    def add_value(self, value: float) -> None:
        self._stat.update(value)
        self._count += 1

    def value(self) -> float:
        if self._count == 0:
            return math.nan
        return float(self._stat.get())

    def reset(self) -> None:
        # River statistics have no reset, a fresh instance of the same type is equivalent
        self._stat = self.river_type()
        self._count = 0

    @property
    def count(self) -> int:
        return self._count

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.value()})"


class AverageStatistic(RiverStatistic):
    function = AggregateFunction.AVG
    river_type = stats.Mean


class SumStatistic(RiverStatistic):
    function = AggregateFunction.SUM
    river_type = stats.Sum


class MinStatistic(RiverStatistic):
    function = AggregateFunction.MIN
    river_type = stats.Min


class MaxStatistic(RiverStatistic):
    function = AggregateFunction.MAX
    river_type = stats.Max


class CountStatistic(RiverStatistic):
    function = AggregateFunction.COUNT
    river_type = stats.Count


STATISTIC_TYPES: dict[AggregateFunction, type[RiverStatistic]] = {
    stat_type.function: stat_type
    for stat_type in (AverageStatistic, SumStatistic, MinStatistic, MaxStatistic, CountStatistic)
}


def statistic_type_for(function: AggregateFunction | str) -> type[RiverStatistic]:
    """
    Resolve the statistic variant backing an aggregate function.

    Args:
        function: Aggregate function or its name (e.g. "avg")

    Returns:
        Statistic class to instantiate once per window slot

    Raises:
        StatisticInitializationError: If no variant exists for the function
    """
    try:
        return STATISTIC_TYPES[AggregateFunction(str(function).lower())]
    except (KeyError, ValueError) as e:
        logger.error(f"No statistic available for function '{function}'")
        raise StatisticInitializationError(str(function), e) from e
