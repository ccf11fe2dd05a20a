"""Custom exceptions for the cronify library.

Rule errors are raised while a rule is parsed, before any timer is armed;
they all derive from `InvalidRuleError`, itself a `ValueError`. The
remaining exceptions are raised by the occurrence search and by running
schedules.
"""

from cronify._internal.exceptions import (
    ApplicationStateError,
    BaseCronifyError,
    DuplicateScheduleError,
    InvalidRuleError,
    InvalidStepError,
    MalformedRuleError,
    NoFeasibleOccurrenceError,
    RangeReversedError,
    ScheduleFailedError,
    UnsatisfiableRuleError,
    ValueOutOfRangeError,
)

__all__ = (
    "ApplicationStateError",
    "BaseCronifyError",
    "DuplicateScheduleError",
    "InvalidRuleError",
    "InvalidStepError",
    "MalformedRuleError",
    "NoFeasibleOccurrenceError",
    "RangeReversedError",
    "ScheduleFailedError",
    "UnsatisfiableRuleError",
    "ValueOutOfRangeError",
)
