"""Custom exceptions for the thresholding core."""


class ThreshException(Exception):
    """Base exception for all thresholding errors."""

    def __init__(self, message: str, details: dict | None = None):
        """
        Initialize thresholding exception.

        Args:
            message: Human-readable error message
            details: Optional dict with additional error context
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)


class WindowRangeError(ThreshException):
    """Raised when a queried timestamp is not represented by any slot of the window."""

    def __init__(self, timestamp: int, window_start: int, window_end: int):
        super().__init__(
            message=f"{timestamp} is outside of the window [{window_start}, {window_end})",
            details={"timestamp": timestamp, "window_start": window_start, "window_end": window_end},
        )


class StatisticInitializationError(ThreshException):
    """Raised when the statistic backing a window slot cannot be built."""

    def __init__(self, function: str, original_error: Exception | None = None):
        details = {"function": function}
        if original_error:
            details["original_error"] = str(original_error)
            details["original_error_type"] = type(original_error).__name__
        super().__init__(f"Failed to initialize statistic for function '{function}'", details)


class InvalidAlarmExpressionError(ThreshException):
    """Raised when an alarm sub-expression cannot be parsed."""

    def __init__(self, expression: str, reason: str):
        super().__init__(
            message=f"Invalid alarm expression '{expression}': {reason}",
            details={"expression": expression, "reason": reason},
        )


class SubAlarmNotFoundError(ThreshException):
    """Raised when a sub-alarm is not registered with the evaluator."""

    def __init__(self, sub_alarm_id: str):
        super().__init__(
            message=f"Sub-alarm {sub_alarm_id} not found",
            details={"sub_alarm_id": sub_alarm_id},
        )
