from enum import StrEnum


class TimeResolution(StrEnum):
    """Resolution that timestamps are truncated to before they reach a window."""

    ABSOLUTE = "absolute"
    SECONDS = "seconds"
    MINUTES = "minutes"
    HOURS = "hours"

    @property
    def seconds(self) -> int:
        return {
            TimeResolution.ABSOLUTE: 1,
            TimeResolution.SECONDS: 1,
            TimeResolution.MINUTES: 60,
            TimeResolution.HOURS: 3600,
        }[self]

    def adjust(self, timestamp: float) -> int:
        """Truncate a timestamp in seconds to this resolution."""
        if self is TimeResolution.ABSOLUTE:
            return int(timestamp)
        return int(timestamp // self.seconds) * self.seconds

    @classmethod
    def get_available_resolutions(cls) -> list[str]:
        return [resolution.value for resolution in cls]
