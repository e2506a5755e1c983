"""Structured logging utilities with context management."""

import contextvars
from typing import Any

from loguru import logger

from src.config import LoggingConfig

# Context variables for the alarm/sub-alarm being processed
log_context: contextvars.ContextVar[dict[str, Any]] = contextvars.ContextVar("log_context", default={})


class LoggingContext:
    """
    Context manager for structured logging with automatic context injection.

    Example:
        with LoggingContext(alarm_id="a1", sub_alarm_id="s1"):
            logger.info("Evaluating")  # Will include alarm_id and sub_alarm_id
    """

    def __init__(self, **context_data):
        """
        Initialize logging context.

        Args:
            **context_data: Key-value pairs to add to logging context
        """
        self.context_data = context_data
        self.token = None

    def __enter__(self):
        """Enter context and set context variables."""
        current = log_context.get().copy()
        current.update(self.context_data)
        self.token = log_context.set(current)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context and restore previous context."""
        if self.token:
            log_context.reset(self.token)


def get_logging_context() -> dict[str, Any]:
    """
    Get current logging context.

    Returns:
        Dictionary of current context variables
    """
    return log_context.get().copy()


def context_filter(record) -> bool:
    """Add context variables to the record extras and render them for the format string."""
    for key, value in log_context.get().items():
        record["extra"].setdefault(key, value)

    record["extra"]["context"] = " ".join(
        f"{key}={value}" for key, value in record["extra"].items() if key != "context"
    )
    return True


def configure_structured_logging(config: LoggingConfig | None = None):
    """
    Configure loguru to include context variables in all log messages.

    This should be called once at application startup.
    """
    config = config or LoggingConfig()

    # Remove default handler
    logger.remove()

    logger.add(
        sink=lambda msg: print(msg, end=""),
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[context]}</cyan> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        ),
        filter=context_filter,
        level=config.level,
        colorize=True,
    )

    if config.file:
        logger.add(
            sink=config.file,
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {extra[context]} | {name}:{function}:{line} | {message}",
            filter=context_filter,
            level=config.level,
            rotation=config.rotation,
            retention=config.retention,
            compression="zip",
            serialize=False,
        )
