"""Unit tests for environment driven configuration."""

import pytest
from pydantic import ValidationError

from src.config import EvaluationConfig, LoggingConfig, SinkConfig, ThreshConfig, WindowConfig
from src.thresh.domain.time import TimeResolution


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Run each test away from any .env file in the working directory."""
    monkeypatch.chdir(tmp_path)


def test_defaults() -> None:
    config = ThreshConfig()

    assert config.window.future_slots == 2
    assert config.window.time_resolution == TimeResolution.ABSOLUTE
    assert config.evaluation.lateness_allowance == 1
    assert config.evaluation.default_period == 60
    assert config.sink.type == "memory"
    assert config.logging.level == "INFO"
    assert config.logging.file is None


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("THRESH_EVALUATION_LATENESS_ALLOWANCE", "5")
    monkeypatch.setenv("THRESH_WINDOW_TIME_RESOLUTION", "minutes")
    monkeypatch.setenv("THRESH_SINK_TYPE", "csv")
    monkeypatch.setenv("THRESH_LOG_LEVEL", "DEBUG")

    config = ThreshConfig()

    assert config.evaluation.lateness_allowance == 5
    assert config.window.time_resolution == TimeResolution.MINUTES
    assert config.sink.type == "csv"
    assert config.logging.level == "DEBUG"


def test_env_file_is_read(tmp_path) -> None:
    (tmp_path / ".env").write_text("THRESH_WINDOW_FUTURE_SLOTS=4\n")

    assert WindowConfig().future_slots == 4


@pytest.mark.parametrize(
    ("config_type", "field", "value"),
    [
        (WindowConfig, "future_slots", 0),
        (EvaluationConfig, "lateness_allowance", -1),
        (EvaluationConfig, "tick_interval", 0),
        (SinkConfig, "type", "kafka"),
    ],
)
def test_invalid_values_rejected(config_type, field, value) -> None:
    with pytest.raises(ValidationError):
        config_type(**{field: value})


def test_logging_config_rotation_defaults() -> None:
    config = LoggingConfig()

    assert config.rotation == "100 MB"
    assert config.retention == "30 days"
