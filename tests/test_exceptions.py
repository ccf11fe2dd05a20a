import pytest

from cronify._internal.exceptions import (
    raise_app_already_started_error,
    raise_app_not_started_error,
)
from cronify.exceptions import (
    ApplicationStateError,
    BaseCronifyError,
    DuplicateScheduleError,
    InvalidRuleError,
    InvalidStepError,
    NoFeasibleOccurrenceError,
    RangeReversedError,
    ScheduleFailedError,
    UnsatisfiableRuleError,
    ValueOutOfRangeError,
)


def test_rule_error_messages() -> None:
    assert str(ValueOutOfRangeError("second", 70, 0, 59)) == (
        "second value 70 is out of range, it must be within 0-59."
    )
    assert str(RangeReversedError("hour", 10, 5)) == (
        "hour range 10-5 is reversed, "
        "the start must not be greater than the end."
    )
    assert str(InvalidStepError("month", 13, 12)) == (
        "month step 13 is invalid, it must be within 1-12."
    )
    err = UnsatisfiableRuleError("0 0 0 31 * 2")
    assert err.expression == "0 0 0 31 * 2"
    assert "can never fire" in str(err)
    assert isinstance(err, InvalidRuleError)
    assert isinstance(err, ValueError)
    assert isinstance(err, BaseCronifyError)


def test_no_feasible_occurrence_error() -> None:
    err = NoFeasibleOccurrenceError("0 0 0 1 * 1", 0, 2027)
    assert err.limit_year == 2027
    assert str(err) == (
        "Rule '0 0 0 1 * 1' has no occurrence before the year 2027 "
        "(horizon: 0 year(s))."
    )
    assert not isinstance(err, ValueError)


def test_schedule_errors() -> None:
    err = ScheduleFailedError("report", reason="boom")
    assert err.name == "report"
    assert str(err) == "schedule: report, failed_reason: boom"

    dup = DuplicateScheduleError("report")
    assert isinstance(dup, RuntimeError)
    assert isinstance(dup, BaseCronifyError)
    assert "'report'" in str(dup)


def test_application_state_errors() -> None:
    with pytest.raises(ApplicationStateError) as exc_info:
        raise_app_not_started_error("schedule")
    assert exc_info.value.operation == "schedule"
    assert "not started" in exc_info.value.reason

    with pytest.raises(ApplicationStateError) as exc_info:
        raise_app_already_started_error("cron")
    assert "Cannot perform operation 'cron'" in str(exc_info.value)
