"""Domain models for alarm threshold evaluation."""

import operator
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from src.thresh.domain.expression import AlarmExpression


class AlarmState(StrEnum):
    """Status of an alarm sub-expression."""

    OK = "OK"
    ALARM = "ALARM"
    UNDETERMINED = "UNDETERMINED"


class AggregateFunction(StrEnum):
    """Aggregate functions an alarm sub-expression can apply to a metric."""

    AVG = "avg"
    SUM = "sum"
    MIN = "min"
    MAX = "max"
    COUNT = "count"

    @classmethod
    def get_available_functions(cls) -> list[str]:
        return [function.value for function in cls]


class Comparator(StrEnum):
    """Threshold comparison operators."""

    GT = ">"
    GTE = ">="
    LT = "<"
    LTE = "<="

    @classmethod
    def from_token(cls, token: str) -> "Comparator":
        """Resolve a symbol (``>``) or keyword (``gt``) to a comparator."""
        token = token.strip().lower()
        keywords = {"gt": cls.GT, "gte": cls.GTE, "lt": cls.LT, "lte": cls.LTE}
        if token in keywords:
            return keywords[token]
        return cls(token)

    def evaluate(self, value: float, threshold: float) -> bool:
        """Return True when ``value`` satisfies the alarm condition against ``threshold``."""
        return _OPERATORS[self](value, threshold)


_OPERATORS = {
    Comparator.GT: operator.gt,
    Comparator.GTE: operator.ge,
    Comparator.LT: operator.lt,
    Comparator.LTE: operator.le,
}


@dataclass
class MetricSample:
    """A single metric measurement delivered by the ingestion layer."""

    name: str
    value: float
    timestamp: int  # seconds
    dimensions: dict[str, str] = field(default_factory=dict)


@dataclass
class SubAlarm:
    """Identity and current status of one alarm sub-expression."""

    id: str
    alarm_id: str
    expression: "AlarmExpression"
    state: AlarmState = AlarmState.UNDETERMINED


@dataclass(frozen=True)
class DroppedValue:
    """Diagnostic emitted when a value falls outside of a sliding window."""

    value: float
    timestamp: int
    window_start: int
    window_end: int

    @property
    def reason(self) -> str:
        return "expired" if self.timestamp < self.window_start else "future"


@dataclass
class AlarmTransition:
    """Represents a sub-alarm status change."""

    timestamp: int
    alarm_id: str
    sub_alarm_id: str
    old_state: AlarmState
    new_state: AlarmState
    expression: str
    view_values: list[float] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary for DataFrame/storage."""
        return {
            "timestamp": self.timestamp,
            "alarm_id": self.alarm_id,
            "sub_alarm_id": self.sub_alarm_id,
            "old_state": self.old_state.value,
            "new_state": self.new_state.value,
            "expression": self.expression,
            "view_values": self.view_values,
            **self.metadata,
        }
