from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from datetime import datetime

    from cronify._internal.scheduler.schedule import Schedule


@dataclass(slots=True, kw_only=True, frozen=True)
class ScheduleContext:
    """What a callback learns about the run it was invoked for."""

    schedule: Schedule[Any]
    fire_at: datetime
    run_number: int

    @property
    def name(self) -> str:
        return self.schedule.name

    def cancel(self) -> None:
        """Stop the schedule once this run has been dispatched.

        Safe to call more than once and from a worker thread.
        """
        self.schedule.cancel()
