"""Sinks for storing alarm state transitions."""

import json
from pathlib import Path

import pandas as pd
from loguru import logger

from src.thresh.domain.models import AlarmTransition
from src.thresh.domain.protocols import TransitionSink

TRANSITION_COLUMNS = [
    "timestamp",
    "alarm_id",
    "sub_alarm_id",
    "old_state",
    "new_state",
    "expression",
    "view_values",
]


def _empty_frame() -> pd.DataFrame:
    return pd.DataFrame(columns=TRANSITION_COLUMNS)


def _decode_view_values(text: str) -> list[float]:
    # Empty view slots are NaN, which json round-trips as the NaN literal
    return [float(value) for value in json.loads(text)] if text else []


class InMemoryTransitionSink(TransitionSink):
    """Keeps transitions in memory, for tests and replays that fit in RAM."""

    def __init__(self):
        self.transitions: list[AlarmTransition] = []

    def write_transition(self, transition: AlarmTransition) -> None:
        self.transitions.append(transition)

    def write_transitions(self, transitions: list[AlarmTransition]) -> None:
        self.transitions.extend(transitions)

    def to_dataframe(self) -> pd.DataFrame:
        """One row per transition with ``view_values`` as a list of floats."""
        if not self.transitions:
            return _empty_frame()

        return pd.DataFrame([transition.to_dict() for transition in self.transitions])

    def clear(self):
        self.transitions.clear()

    def __len__(self):
        return len(self.transitions)


class CSVTransitionSink(TransitionSink):
    """
    Appends transitions to a CSV file in batches.

    ``view_values`` is stored as a JSON array and decoded back to a list of
    floats by ``to_dataframe``, so frames read from disk match the in-memory
    sink. Buffered transitions are only written on ``flush``, when the buffer
    fills, or when the sink is used as a context manager and exits.
    """

    def __init__(self, filepath: str, mode: str = "w", buffer_size: int = 100):
        """
        Initialize CSV sink.

        Args:
            filepath: Path to CSV file
            mode: 'w' to start a new file, 'a' to append to an existing one
            buffer_size: Number of buffered transitions that triggers a write

        Raises:
            ValueError: If mode is not 'w' or 'a'
        """
        if mode not in ("w", "a"):
            raise ValueError(f"mode must be 'w' or 'a', got '{mode}'")

        self.filepath = filepath
        self.mode = mode
        self._buffer: list[AlarmTransition] = []
        self._buffer_size = buffer_size
        # An appended file without content still needs its header
        self._header_written = mode == "a" and Path(filepath).exists() and Path(filepath).stat().st_size > 0
        self._count = 0

    def write_transition(self, transition: AlarmTransition) -> None:
        self.write_transitions([transition])

    def write_transitions(self, transitions: list[AlarmTransition]) -> None:
        self._buffer.extend(transitions)

        if len(self._buffer) >= self._buffer_size:
            self.flush()

    def flush(self):
        """Write buffered transitions to the CSV file."""
        if not self._buffer:
            return

        rows = []
        for transition in self._buffer:
            row = transition.to_dict()
            row["view_values"] = json.dumps(row["view_values"])
            rows.append(row)
        df = pd.DataFrame(rows)

        df.to_csv(
            self.filepath,
            mode="a" if self._header_written else "w",
            header=not self._header_written,
            index=False,
        )

        self._header_written = True
        self._count += len(rows)
        self._buffer.clear()
        logger.debug(f"Flushed {len(df)} transitions to {self.filepath}")

    def to_dataframe(self) -> pd.DataFrame:
        """Flush, then read every transition of the file back."""
        self.flush()
        if not Path(self.filepath).exists():
            return _empty_frame()

        return pd.read_csv(self.filepath, converters={"view_values": _decode_view_values})

    def __len__(self):
        return self._count + len(self._buffer)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.flush()
