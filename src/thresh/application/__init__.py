"""Application layer for alarm threshold evaluation."""

from src.thresh.application.alarm_evaluator import AlarmEvaluator
from src.thresh.application.sub_alarm_stats import SubAlarmStats

__all__ = ["AlarmEvaluator", "SubAlarmStats"]
