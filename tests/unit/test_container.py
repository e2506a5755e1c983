"""Unit tests for the dependency injection container."""

import pytest

from src.config import SinkConfig, ThreshConfig
from src.thresh.application.alarm_evaluator import AlarmEvaluator
from src.thresh.infrastructure import container as container_module
from src.thresh.infrastructure.container import get_container, init_container
from src.thresh.infrastructure.drop_observer import LoggingDropObserver
from src.thresh.infrastructure.transition_sink import CSVTransitionSink, InMemoryTransitionSink


@pytest.fixture(autouse=True)
def reset_container(monkeypatch):
    monkeypatch.setattr(container_module, "_container", None)


def test_get_container_before_init() -> None:
    with pytest.raises(RuntimeError):
        get_container()


def test_evaluator_is_wired_with_defaults() -> None:
    config = ThreshConfig()
    container = init_container(config)

    evaluator = container.evaluator()

    assert isinstance(evaluator, AlarmEvaluator)
    assert evaluator is container.evaluator()
    assert evaluator.config is config
    assert isinstance(evaluator.transition_sink, InMemoryTransitionSink)
    assert isinstance(evaluator.drop_observer, LoggingDropObserver)
    assert get_container() is container


def test_csv_sink_selected_from_config(tmp_path) -> None:
    filepath = str(tmp_path / "transitions.csv")
    container = init_container(ThreshConfig(sink=SinkConfig(type="csv", path=filepath, buffer_size=10)))

    sink = container.transition_sink()

    assert isinstance(sink, CSVTransitionSink)
    assert sink.filepath == filepath
    assert sink._buffer_size == 10
    assert container.evaluator().transition_sink is sink
