from enum import Enum, unique
from typing import cast

INFINITY = cast("int", float("inf"))

UNBOUNDED_HORIZON = -1
DEFAULT_HORIZON = 1


@unique
class ScheduleStatus(str, Enum):
    SCHEDULED = "scheduled"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    FAILED = "failed"
