from typing import NoReturn


class BaseCronifyError(Exception):
    pass


class InvalidRuleError(BaseCronifyError, ValueError):
    """Raised when a rule string is rejected at parse time."""


class MalformedRuleError(InvalidRuleError):
    """The rule or one of its atoms does not follow the rule grammar."""

    def __init__(self, reason: str) -> None:
        self.reason: str = reason
        super().__init__(reason)


class ValueOutOfRangeError(InvalidRuleError):
    """A value lies outside the legal domain of its field."""

    def __init__(self, field: str, value: int, lower: int, upper: int) -> None:
        self.field: str = field
        self.value: int = value
        self.lower: int = lower
        self.upper: int = upper
        msg = (
            f"{field} value {value} is out of range, "
            f"it must be within {lower}-{upper}."
        )
        super().__init__(msg)


class RangeReversedError(InvalidRuleError):
    """A range starts after it ends."""

    def __init__(self, field: str, start: int, end: int) -> None:
        self.field: str = field
        self.start: int = start
        self.end: int = end
        msg = (
            f"{field} range {start}-{end} is reversed, "
            "the start must not be greater than the end."
        )
        super().__init__(msg)


class InvalidStepError(InvalidRuleError):
    """A step is not positive or exceeds the span of its field."""

    def __init__(self, field: str, step: int, upper: int) -> None:
        self.field: str = field
        self.step: int = step
        self.upper: int = upper
        msg = f"{field} step {step} is invalid, it must be within 1-{upper}."
        super().__init__(msg)


class UnsatisfiableRuleError(InvalidRuleError):
    """No month of the rule can host any of its days of month."""

    def __init__(self, expression: str) -> None:
        self.expression: str = expression
        msg = (
            f"Rule {expression!r} can never fire: "
            "none of its months has the requested day of month."
        )
        super().__init__(msg)


class NoFeasibleOccurrenceError(BaseCronifyError):
    """The occurrence search went past the configured horizon."""

    def __init__(self, expression: str, horizon: int, limit_year: int) -> None:
        self.expression: str = expression
        self.horizon: int = horizon
        self.limit_year: int = limit_year
        msg = (
            f"Rule {expression!r} has no occurrence before the year "
            f"{limit_year} (horizon: {horizon} year(s))."
        )
        super().__init__(msg)


class ScheduleFailedError(BaseCronifyError):
    """Raised by `Schedule.wait()` when a callback failure was escalated."""

    def __init__(self, name: str, reason: str) -> None:
        self.name: str = name
        self.reason: str = reason
        super().__init__(f"schedule: {name}, failed_reason: {reason}")


class DuplicateScheduleError(BaseCronifyError, RuntimeError):
    """Raised when a schedule is started with a name that is already in use."""

    def __init__(self, name: str) -> None:
        self.name: str = name
        super().__init__(f"Schedule with name {name!r} is already active.")


class ApplicationStateError(BaseCronifyError):
    """Raised when app is in wrong state for the requested operation."""

    def __init__(
        self,
        *,
        operation: str,
        reason: str,
        solution: str,
    ) -> None:
        self.operation: str = operation
        self.reason: str = reason
        self.solution: str = solution

        msg = (
            f"Cannot perform operation '{operation}'.\n"
            f"  Reason: {reason}\n"
            f"  Resolution: {solution}"
        )
        super().__init__(msg)


def raise_app_not_started_error(operation: str) -> NoReturn:
    raise ApplicationStateError(
        operation=operation,
        reason="The Cronify application is not started.",
        solution=(
            "Ensure you are calling this method inside an 'async with app:' "
            "block or after calling 'await app.startup()'."
        ),
    )


def raise_app_already_started_error(operation: str) -> NoReturn:
    raise ApplicationStateError(
        operation=operation,
        reason="The Cronify app's already running and configuration is frozen.",
        solution=(
            "Declarative schedules must be registered BEFORE the application "
            "starts. Use 'app.schedule(...)' on a running application."
        ),
    )
