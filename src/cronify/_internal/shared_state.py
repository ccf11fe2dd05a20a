from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from cronify._internal.exceptions import ScheduleFailedError
    from cronify._internal.scheduler.schedule import Schedule


def _create_idle_event() -> asyncio.Event:
    event = asyncio.Event()
    event.set()
    return event


@dataclass(slots=True, kw_only=True, frozen=True)
class SharedState:
    active_schedules: dict[str, Schedule[Any]] = field(default_factory=dict)
    pending_tasks: set[asyncio.Task[Any]] = field(default_factory=set)
    escalated: list[ScheduleFailedError] = field(default_factory=list)
    idle_event: asyncio.Event = field(default_factory=_create_idle_event)

    def register_schedule(self, schedule: Schedule[Any]) -> None:
        self.active_schedules[schedule.name] = schedule
        self.idle_event.clear()

    def unregister_schedule(self, name: str) -> None:
        _ = self.active_schedules.pop(name, None)
        if not self.active_schedules:
            self.idle_event.set()

    def report_escalation(self, error: ScheduleFailedError) -> None:
        self.escalated.append(error)
        self.idle_event.set()

    def pop_escalation(self) -> ScheduleFailedError | None:
        if not self.escalated:
            return None
        error = self.escalated.pop(0)
        if self.active_schedules and not self.escalated:
            self.idle_event.clear()
        return error

    def track_task(self, task: asyncio.Task[Any]) -> None:
        self.pending_tasks.add(task)
        task.add_done_callback(self.pending_tasks.discard)
