"""Cron rule scheduling for asyncio applications.

This module exposes the application object that runs callbacks on six-field
cron rules, the schedule and context objects handed around at runtime, and
the rule parser and occurrence engine those schedules are built on.
"""

from importlib.metadata import version as get_version

from cronify._internal.common.constants import (
    DEFAULT_HORIZON,
    UNBOUNDED_HORIZON,
    ScheduleStatus,
)
from cronify._internal.configuration import Cron
from cronify._internal.context import ScheduleContext
from cronify._internal.engine.occurrence import OccurrenceEngine
from cronify._internal.rule.fields import FieldKind, FieldSet
from cronify._internal.rule.parser import ParsedRule, parse_rule
from cronify._internal.runnable import Outcome
from cronify._internal.scheduler.failure_policy import FailurePolicy
from cronify._internal.scheduler.schedule import Schedule
from cronify.cronify import Cronify

__version__ = get_version("cronify")
__all__ = (
    "DEFAULT_HORIZON",
    "UNBOUNDED_HORIZON",
    "Cron",
    "Cronify",
    "FailurePolicy",
    "FieldKind",
    "FieldSet",
    "OccurrenceEngine",
    "Outcome",
    "ParsedRule",
    "Schedule",
    "ScheduleContext",
    "ScheduleStatus",
    "parse_rule",
)
