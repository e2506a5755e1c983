"""Observers for values dropped by sliding windows."""

from collections import Counter

from loguru import logger

from src.thresh.domain.models import DroppedValue
from src.thresh.domain.protocols import DropObserver


class LoggingDropObserver(DropObserver):
    """Logs every dropped value as a structured warning."""

    def on_drop(self, dropped: DroppedValue) -> None:
        logger.bind(
            timestamp=dropped.timestamp,
            window_start=dropped.window_start,
            window_end=dropped.window_end,
            reason=dropped.reason,
        ).warning(
            f"Timestamp {dropped.timestamp} is outside of window "
            f"[{dropped.window_start}, {dropped.window_end}), dropping value {dropped.value}"
        )


class CountingDropObserver(DropObserver):
    """Counts dropped values per reason, optionally forwarding them to another observer."""

    def __init__(self, delegate: DropObserver | None = None):
        self.delegate = delegate
        self.counts: Counter[str] = Counter()
        self.last_dropped: DroppedValue | None = None

    def on_drop(self, dropped: DroppedValue) -> None:
        self.counts[dropped.reason] += 1
        self.last_dropped = dropped
        if self.delegate is not None:
            self.delegate.on_drop(dropped)

    @property
    def total(self) -> int:
        return sum(self.counts.values())
