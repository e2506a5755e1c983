import re
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from src.thresh.domain.exceptions import InvalidAlarmExpressionError
from src.thresh.domain.models import AggregateFunction, Comparator, MetricSample

DEFAULT_PERIOD = 60

_EXPRESSION_PATTERN = re.compile(
    r"^\s*(?P<function>\w+)\s*\(\s*(?P<metric>[^\s{},()]+)\s*"
    r"(?:\{(?P<dimensions>[^}]*)\})?\s*"
    r"(?:,\s*(?P<period>\d+)\s*)?\)\s*"
    r"(?P<operator>>=|<=|>|<|gte|gt|lte|lt)\s*"
    r"(?P<threshold>[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)"
    r"(?:\s+times\s+(?P<periods>\d+))?\s*$",
    re.IGNORECASE,
)


def _parse_dimensions(expression: str, dimensions_str: str | None) -> dict[str, str]:
    if not dimensions_str or not dimensions_str.strip():
        return {}

    dimensions = {}
    for pair in dimensions_str.split(","):
        key, sep, value = pair.partition("=")
        if not sep or not key.strip() or not value.strip():
            raise InvalidAlarmExpressionError(expression, f"invalid dimension '{pair.strip()}'")
        dimensions[key.strip()] = value.strip()

    return dimensions


class AlarmExpression(BaseModel):
    """
    Immutable alarm sub-expression, e.g. ``avg(cpu{host=a}, 60) > 3 times 3``.

    ``period`` is the width in seconds of one observation period and ``periods``
    the number of consecutive periods needed to confirm a status.
    """

    model_config = ConfigDict(frozen=True)

    function: AggregateFunction
    metric_name: str
    dimensions: dict[str, str] = Field(default_factory=dict)
    comparator: Comparator
    threshold: float
    period: int = Field(default=DEFAULT_PERIOD, gt=0)
    periods: int = Field(default=1, ge=1)

    @classmethod
    def from_str(cls, expression: str, default_period: int = DEFAULT_PERIOD) -> Self:
        match = _EXPRESSION_PATTERN.match(expression)
        if not match:
            raise InvalidAlarmExpressionError(
                expression, "expected function(metric[, period]) operator threshold [times n]"
            )

        try:
            function = AggregateFunction(match["function"].lower())
        except ValueError:
            raise InvalidAlarmExpressionError(
                expression,
                f"unknown function '{match['function']}', "
                f"expected one of {AggregateFunction.get_available_functions()}",
            ) from None

        try:
            return cls(
                function=function,
                metric_name=match["metric"],
                dimensions=_parse_dimensions(expression, match["dimensions"]),
                comparator=Comparator.from_token(match["operator"]),
                threshold=float(match["threshold"]),
                period=int(match["period"]) if match["period"] else default_period,
                periods=int(match["periods"]) if match["periods"] else 1,
            )
        except ValidationError as e:
            raise InvalidAlarmExpressionError(expression, str(e)) from e

    def matches(self, sample: MetricSample) -> bool:
        """Return True when the sample belongs to the metric this expression watches."""
        if sample.name != self.metric_name:
            return False
        return all(sample.dimensions.get(key) == value for key, value in self.dimensions.items())

    def __str__(self) -> str:
        metric = self.metric_name
        if self.dimensions:
            metric += "{" + ",".join(f"{k}={v}" for k, v in sorted(self.dimensions.items())) + "}"
        return f"{self.function}({metric}, {self.period}) {self.comparator} {self.threshold:g} times {self.periods}"
