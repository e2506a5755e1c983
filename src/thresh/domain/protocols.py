"""Protocols (interfaces) for the thresholding core."""

from typing import Protocol, runtime_checkable

import pandas as pd

from src.thresh.domain.models import AlarmTransition, DroppedValue


@runtime_checkable
class Statistic(Protocol):
    """Running aggregate held by one window slot."""

    def add_value(self, value: float) -> None:
        """Add an observation."""
        ...

    def value(self) -> float:
        """Current aggregate, NaN when no observation was added since the last reset."""
        ...

    def reset(self) -> None:
        """Return to the zero-observation state."""
        ...


class DropObserver(Protocol):
    """Interface notified whenever a window drops an out-of-range value."""

    def on_drop(self, dropped: DroppedValue) -> None:
        ...


class TransitionSink(Protocol):
    """Interface for storing/processing alarm state transitions."""

    def write_transition(self, transition: AlarmTransition) -> None:
        """Write a single transition."""
        ...

    def write_transitions(self, transitions: list[AlarmTransition]) -> None:
        """Write multiple transitions."""
        ...

    def to_dataframe(self) -> pd.DataFrame:
        """Convert stored transitions to DataFrame."""
        ...
