from __future__ import annotations

import logging
from enum import Enum, unique
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from cronify._internal.runnable import Outcome

logger = logging.getLogger("cronify.scheduler")


@unique
class FailurePolicy(str, Enum):
    STOP_SCHEDULE = "stop_schedule"
    LOG_AND_CONTINUE = "log_and_continue"
    ESCALATE = "escalate"


def handle_failure_policy(
    name: str,
    outcome: Outcome[Any],
    policy: FailurePolicy,
) -> bool:
    """Log a failed run and tell whether the schedule keeps firing."""
    exc = outcome.exception
    match policy:
        case FailurePolicy.LOG_AND_CONTINUE:
            logger.error(
                "Schedule %s failed at %s, continuing",
                name,
                outcome.fire_at.isoformat(),
                exc_info=exc,
            )
            return True
        case FailurePolicy.STOP_SCHEDULE:
            logger.error(
                "Schedule %s failed at %s, stopping schedule",
                name,
                outcome.fire_at.isoformat(),
                exc_info=exc,
            )
            return False
        case FailurePolicy.ESCALATE:
            logger.error(
                "Schedule %s failed at %s, escalating",
                name,
                outcome.fire_at.isoformat(),
                exc_info=exc,
            )
            return False
