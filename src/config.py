"""Configuration for the application."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.thresh.domain.time import TimeResolution


class WindowConfig(BaseSettings):
    """Configuration for sub-alarm sliding windows."""

    model_config = SettingsConfigDict(env_prefix="THRESH_WINDOW_", env_file=".env", extra="ignore")

    future_slots: int = Field(default=2, ge=1, description="Slots accepting values ahead of the view")
    time_resolution: TimeResolution = Field(
        default=TimeResolution.ABSOLUTE, description="Resolution timestamps are truncated to"
    )


class EvaluationConfig(BaseSettings):
    """Configuration for alarm evaluation ticks."""

    model_config = SettingsConfigDict(env_prefix="THRESH_EVALUATION_", env_file=".env", extra="ignore")

    lateness_allowance: int = Field(default=1, ge=0, description="Seconds to wait for late metrics before judging")
    default_period: int = Field(default=60, gt=0, description="Period in seconds when an expression sets none")
    tick_interval: int = Field(default=60, gt=0, description="Seconds between evaluation ticks on replay")


class SinkConfig(BaseSettings):
    """Configuration for the transition sink."""

    model_config = SettingsConfigDict(env_prefix="THRESH_SINK_", env_file=".env", extra="ignore")

    type: Literal["memory", "csv"] = Field(default="memory", description="Where transitions are stored")
    path: str = Field(default="transitions.csv", description="CSV file for the csv sink")
    buffer_size: int = Field(default=100, gt=0, description="Transitions buffered before a CSV write")


class LoggingConfig(BaseSettings):
    """Configuration for structured logging."""

    model_config = SettingsConfigDict(env_prefix="THRESH_LOG_", env_file=".env", extra="ignore")

    level: str = Field(default="INFO", description="Minimum console log level")
    file: str | None = Field(default=None, description="Optional log file path")
    rotation: str = Field(default="100 MB", description="Log file rotation size")
    retention: str = Field(default="30 days", description="Log file retention")


class ThreshConfig(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    window: WindowConfig = Field(default_factory=WindowConfig)
    evaluation: EvaluationConfig = Field(default_factory=EvaluationConfig)
    sink: SinkConfig = Field(default_factory=SinkConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
