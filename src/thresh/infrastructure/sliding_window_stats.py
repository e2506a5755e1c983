"""Time based sliding window of running statistics over a fixed ring of slots."""

from collections.abc import Callable, Iterator
from dataclasses import dataclass

from loguru import logger

from src.thresh.domain.exceptions import StatisticInitializationError, WindowRangeError
from src.thresh.domain.models import DroppedValue
from src.thresh.domain.protocols import DropObserver, Statistic
from src.thresh.domain.time import TimeResolution
from src.thresh.infrastructure.drop_observer import LoggingDropObserver


@dataclass
class Slot:
    """One fixed-width time bucket ``[timestamp - slot_width, timestamp)``."""

    timestamp: int
    stat: Statistic

    def __repr__(self) -> str:
        return f"{self.timestamp}={self.stat.value()}"


class SlotRing:
    """
    Fixed-size ring of slots addressed by logical offset from the oldest slot.

    All logical to physical index translation lives here, so reads, writes and
    slides agree on where a slot sits.
    """

    def __init__(self, slots: list[Slot]):
        if not slots:
            raise ValueError("A slot ring needs at least one slot")
        self._slots = slots
        self._begin_index = 0

    def __len__(self) -> int:
        return len(self._slots)

    @property
    def begin_index(self) -> int:
        """Physical index of the oldest slot."""
        return self._begin_index

    def physical_index_of(self, logical_offset: int) -> int:
        return (self._begin_index + logical_offset) % len(self._slots)

    def logical_offset_of(self, physical_index: int) -> int:
        return (physical_index - self._begin_index) % len(self._slots)

    def slot_at(self, physical_index: int) -> Slot:
        return self._slots[physical_index]

    def __getitem__(self, logical_offset: int) -> Slot:
        return self._slots[self.physical_index_of(logical_offset)]

    def iter_slots(self, count: int | None = None) -> Iterator[Slot]:
        """Iterate over the oldest ``count`` slots (all by default), oldest first."""
        count = len(self._slots) if count is None else count
        for logical_offset in range(count):
            yield self[logical_offset]

    def rotate(self) -> Slot:
        """Make the oldest slot the newest one and return it."""
        oldest = self._slots[self._begin_index]
        self._begin_index = self.physical_index_of(1)
        return oldest


class SlidingWindowStats:
    """
    Time based sliding window holding statistics for a fixed number of fixed-width slots.

    The window is split in a view (the oldest ``num_view_slots`` slots) and
    ``num_future_slots`` trailing slots that accept values ahead of the view.
    Sliding reuses retired slots, the ring is never reallocated.

    Not thread safe: callers must serialize access per instance.
    """

    def __init__(
        self,
        statistic_type: Callable[[], Statistic],
        time_resolution: TimeResolution,
        slot_width: int,
        num_view_slots: int,
        num_future_slots: int,
        view_end_timestamp: int,
        drop_observer: DropObserver | None = None,
    ):
        """
        Initialize the window with a view ending at ``view_end_timestamp``.

        Making the view end one time unit before the current time lets added values
        slide all the way across the view as the window moves right.

        Args:
            statistic_type: Callable creating the statistic held by each slot
            time_resolution: Resolution timestamps are adjusted to
            slot_width: Width of a slot in seconds
            num_view_slots: Number of slots in the view
            num_future_slots: Number of slots beyond the view accepting values
            view_end_timestamp: Timestamp the view ends at
            drop_observer: Notified when a value falls outside of the window

        Raises:
            StatisticInitializationError: If a slot statistic cannot be created
        """
        if slot_width <= 0:
            raise ValueError(f"slot_width must be positive, got {slot_width}")
        if num_view_slots < 1:
            raise ValueError(f"num_view_slots must be at least 1, got {num_view_slots}")
        if num_future_slots < 0:
            raise ValueError(f"num_future_slots cannot be negative, got {num_future_slots}")

        self.time_resolution = time_resolution
        self.drop_observer = drop_observer if drop_observer is not None else LoggingDropObserver()
        self._slot_width = slot_width
        self._num_view_slots = num_view_slots
        self._num_future_slots = num_future_slots
        self.window_length = (num_view_slots + num_future_slots) * slot_width

        self.view_end_timestamp = time_resolution.adjust(view_end_timestamp)
        self.slot_end_timestamp = self.view_end_timestamp
        self.window_end_timestamp = self.view_end_timestamp + num_future_slots * slot_width

        num_slots = num_view_slots + num_future_slots
        first_slot_end = self.window_end_timestamp - (num_slots - 1) * slot_width
        self._ring = SlotRing(
            [
                self._create_slot(first_slot_end + i * slot_width, statistic_type)
                for i in range(num_slots)
            ]
        )

    @staticmethod
    def _create_slot(timestamp: int, statistic_type: Callable[[], Statistic]) -> Slot:
        try:
            return Slot(timestamp, statistic_type())
        except Exception as e:
            logger.error(f"Failed to initialize slot: {e}")
            raise StatisticInitializationError(getattr(statistic_type, "__name__", str(statistic_type)), e) from e

    @property
    def slot_count(self) -> int:
        return len(self._ring)

    @property
    def slot_width(self) -> int:
        return self._slot_width

    @property
    def num_view_slots(self) -> int:
        return self._num_view_slots

    @property
    def num_future_slots(self) -> int:
        return self._num_future_slots

    @property
    def window_start_timestamp(self) -> int:
        return self.window_end_timestamp - self.window_length

    @property
    def last_view_index(self) -> int:
        """Physical index of the slot at the view's right edge."""
        return self._ring.physical_index_of(self._num_view_slots - 1)

    def add_value(self, value: float, timestamp: int) -> None:
        """
        Add ``value`` to the slot covering ``timestamp``.

        Values outside of the window are dropped and reported to the drop observer.
        """
        timestamp = self.time_resolution.adjust(timestamp)
        index = self.index_of_time(timestamp)
        if index is None:
            self.drop_observer.on_drop(
                DroppedValue(
                    value=value,
                    timestamp=timestamp,
                    window_start=self.window_start_timestamp,
                    window_end=self.window_end_timestamp,
                )
            )
            return

        self._ring.slot_at(index).stat.add_value(value)

    def get_timestamps(self) -> list[int]:
        """Return the slot timestamps of the view, oldest to newest."""
        return [slot.timestamp for slot in self._ring.iter_slots(self._num_view_slots)]

    def get_value(self, timestamp: int) -> float:
        """
        Return the value of the slot covering ``timestamp``.

        Raises:
            WindowRangeError: If ``timestamp`` is outside of the window
        """
        timestamp = self.time_resolution.adjust(timestamp)
        return self._ring.slot_at(self._require_index_of_time(timestamp)).stat.value()

    def get_values_up_to(self, timestamp: int) -> list[float]:
        """
        Return the window values from the oldest slot up to and including the slot
        covering ``timestamp``. Empty slots are NaN.

        Raises:
            WindowRangeError: If ``timestamp`` is outside of the window
        """
        timestamp = self.time_resolution.adjust(timestamp)
        end_index = self._require_index_of_time(timestamp)
        length = self._ring.logical_offset_of(end_index) + 1
        return [slot.stat.value() for slot in self._ring.iter_slots(length)]

    def get_view_values(self) -> list[float]:
        """Return the values of the view, oldest to newest."""
        return [slot.stat.value() for slot in self._ring.iter_slots(self._num_view_slots)]

    def get_window_values(self) -> list[float]:
        """Return the values of the whole window, oldest to newest."""
        return [slot.stat.value() for slot in self._ring.iter_slots()]

    def slide_view_to(self, timestamp: int) -> None:
        """
        Slide the view so its right edge reaches ``timestamp``, erasing the values of
        every slot stepped over.
        """
        timestamp = self.time_resolution.adjust(timestamp)
        if timestamp <= self.view_end_timestamp:
            return

        slots_to_advance = max(0, -((self.slot_end_timestamp - timestamp) // self._slot_width))

        # Past a full rotation every slot is erased anyway
        skipped = max(0, slots_to_advance - len(self._ring))
        self.slot_end_timestamp += skipped * self._slot_width
        self.window_end_timestamp += skipped * self._slot_width

        for _ in range(slots_to_advance - skipped):
            self.slot_end_timestamp += self._slot_width
            self.window_end_timestamp += self._slot_width
            slot = self._ring.rotate()
            slot.timestamp = self.window_end_timestamp
            slot.stat.reset()

        self.view_end_timestamp = timestamp

    def index_of_time(self, timestamp: int) -> int | None:
        """
        Return the physical index of the slot covering an adjusted ``timestamp``, else
        None if the timestamp is outside of the window.
        """
        if timestamp < self.window_end_timestamp:
            time_diff = timestamp - self.window_start_timestamp
            if time_diff >= 0:
                return self._ring.physical_index_of(time_diff // self._slot_width)
        return None

    def _require_index_of_time(self, timestamp: int) -> int:
        index = self.index_of_time(timestamp)
        if index is None:
            raise WindowRangeError(timestamp, self.window_start_timestamp, self.window_end_timestamp)
        return index

    def __repr__(self) -> str:
        """Logical view of the window with timestamps increasing from left to right."""
        slots = list(self._ring.iter_slots())
        view = ", ".join(repr(slot) for slot in slots[: self._num_view_slots])
        future = "".join(f", {slot!r}" for slot in slots[self._num_view_slots :])
        return f"SlidingWindowStats [[{view}]{future}]"
