"""Shared fixtures for the thresholding tests."""

import pytest

from src.thresh.domain.expression import AlarmExpression
from src.thresh.domain.models import SubAlarm
from src.thresh.infrastructure.drop_observer import CountingDropObserver


@pytest.fixture
def make_sub_alarm():
    """Factory building a sub-alarm from expression text."""

    def _make(expression: str, sub_alarm_id: str = "123", alarm_id: str = "1") -> SubAlarm:
        return SubAlarm(id=sub_alarm_id, alarm_id=alarm_id, expression=AlarmExpression.from_str(expression))

    return _make


@pytest.fixture
def cpu_sub_alarm(make_sub_alarm) -> SubAlarm:
    return make_sub_alarm("avg(hpcs.compute.cpu{id=5}, 60) > 3 times 3")


@pytest.fixture
def drop_observer() -> CountingDropObserver:
    return CountingDropObserver()
