"""Dependency injection container for the evaluation service."""

from dependency_injector import containers, providers

from src.config import ThreshConfig
from src.thresh.application.alarm_evaluator import AlarmEvaluator
from src.thresh.infrastructure.drop_observer import LoggingDropObserver
from src.thresh.infrastructure.transition_sink import CSVTransitionSink, InMemoryTransitionSink


class ThreshContainer(containers.DeclarativeContainer):
    """Dependency injection container for the evaluation service."""

    config = providers.Configuration()

    settings = providers.Singleton(ThreshConfig)

    drop_observer = providers.Singleton(LoggingDropObserver)

    # Transition sink
    transition_sink = providers.Selector(
        config.sink.type,
        memory=providers.Singleton(InMemoryTransitionSink),
        csv=providers.Singleton(
            CSVTransitionSink,
            filepath=config.sink.path,
            buffer_size=config.sink.buffer_size.as_int(),
        ),
    )

    evaluator = providers.Singleton(
        AlarmEvaluator,
        config=settings,
        transition_sink=transition_sink,
        drop_observer=drop_observer,
    )


# Global container instance
_container: ThreshContainer | None = None


def init_container(config: ThreshConfig | None = None) -> ThreshContainer:
    """Initialize the global container."""
    global _container
    config = config or ThreshConfig()
    _container = ThreshContainer()
    _container.config.from_dict(config.model_dump(mode="json"))
    _container.settings.override(providers.Object(config))
    return _container


def get_container() -> ThreshContainer:
    """Get the global container instance."""
    if _container is None:
        raise RuntimeError("Container not initialized. Call init_container() first.")
    return _container
