from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Generic, TypeVar, final

from typing_extensions import override

from cronify._internal.common.constants import ScheduleStatus
from cronify._internal.context import ScheduleContext
from cronify._internal.exceptions import (
    NoFeasibleOccurrenceError,
    ScheduleFailedError,
)
from cronify._internal.scheduler.failure_policy import (
    FailurePolicy,
    handle_failure_policy,
)

if TYPE_CHECKING:
    from datetime import datetime

    from cronify._internal.configuration import Cron, CronifyConfiguration
    from cronify._internal.engine.occurrence import OccurrenceEngine
    from cronify._internal.runnable import Outcome, Runnable
    from cronify._internal.shared_state import SharedState

ReturnT = TypeVar("ReturnT")
logger = logging.getLogger("cronify.scheduler")


@final
class Schedule(Generic[ReturnT]):
    """One rule driving one callback through a one-shot timer loop.

    The loop sleeps until the engine's current instant, unless cancellation
    arrives first, dispatches the callback as its own task without awaiting
    it, advances the engine and sleeps again.
    """

    __slots__: tuple[str, ...] = (
        "_cancel_event",
        "_configs",
        "_done_event",
        "_engine",
        "_escalated",
        "_loop",
        "_loop_finished",
        "_loop_task",
        "_runnable",
        "_shared_state",
        "_status",
        "_tasks",
        "cron",
        "exception",
        "failure_policy",
        "last_outcome",
        "name",
        "run_count",
    )

    def __init__(  # noqa: PLR0913
        self,
        *,
        name: str,
        cron: Cron,
        engine: OccurrenceEngine,
        runnable: Runnable[ReturnT],
        shared_state: SharedState,
        configs: CronifyConfiguration,
    ) -> None:
        self._configs: CronifyConfiguration = configs
        self._shared_state: SharedState = shared_state
        self._engine: OccurrenceEngine = engine
        self._runnable: Runnable[ReturnT] = runnable
        self._cancel_event: asyncio.Event = asyncio.Event()
        self._done_event: asyncio.Event = asyncio.Event()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._loop_task: asyncio.Task[None] | None = None
        self._loop_finished: bool = False
        self._tasks: set[asyncio.Task[Outcome[ReturnT]]] = set()
        self._status: ScheduleStatus = ScheduleStatus.SCHEDULED
        self._escalated: bool = False
        self.name: str = name
        self.cron: Cron = cron
        self.failure_policy: FailurePolicy = (
            cron.failure_policy or configs.failure_policy
        )
        self.run_count: int = 0
        self.exception: Exception | None = None
        self.last_outcome: Outcome[ReturnT] | None = None

    @override
    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}("
            f"name={self.name!r}, "
            f"status={self._status.value}, "
            f"next_fire_at={self.next_fire_at.isoformat()})"
        )

    @property
    def status(self) -> ScheduleStatus:
        return self._status

    @property
    def next_fire_at(self) -> datetime:
        return self._engine.current

    @property
    def expression(self) -> str:
        return self.cron.expression

    def start(self) -> None:
        self._loop = self._configs.getloop()
        self._shared_state.register_schedule(self)
        self._loop_task = self._loop.create_task(
            self._run_forever(),
            name=f"cronify:{self.name}",
        )
        # Also fires for a task cancelled before its first step.
        self._loop_task.add_done_callback(self._on_loop_done)
        self._shared_state.track_task(self._loop_task)

    def is_done(self) -> bool:
        return self._done_event.is_set()

    async def wait(self) -> None:
        """Wait until the loop has stopped and every dispatched run is over.

        Raises:
            ScheduleFailedError: A run failed under the ESCALATE policy.

        """
        _ = await self._done_event.wait()
        if self._escalated and self.exception is not None:
            raise ScheduleFailedError(
                self.name,
                reason=repr(self.exception),
            ) from self.exception

    def cancel(self) -> None:
        """Stop firing. Runs already dispatched are left to finish."""
        if self._status is ScheduleStatus.SCHEDULED:
            self._status = ScheduleStatus.CANCELLED
        self._wake_loop()

    def _wake_loop(self) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            self._cancel_event.set()
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            self._cancel_event.set()
        else:
            _ = loop.call_soon_threadsafe(self._cancel_event.set)

    def _on_loop_done(self, _task: asyncio.Task[None]) -> None:
        self._loop_finished = True
        self._finalize_if_idle()

    async def _run_forever(self) -> None:
        while self._status is ScheduleStatus.SCHEDULED:
            fire_at = self._engine.current
            if await self._sleep_until(fire_at):
                return

            self._dispatch(fire_at)
            if self.run_count >= self.cron.max_runs:
                self._status = ScheduleStatus.COMPLETED
                return

            try:
                next_fire_at = self._engine.advance()
            except NoFeasibleOccurrenceError as exc:
                logger.error(  # noqa: TRY400
                    "Schedule %s has no further occurrence: %s",
                    self.name,
                    exc,
                )
                self._status = ScheduleStatus.FAILED
                self.exception = exc
                return
            logger.debug(
                "Schedule %s re-armed for %s",
                self.name,
                next_fire_at.isoformat(),
            )

    async def _sleep_until(self, fire_at: datetime) -> bool:
        """Block until `fire_at` or cancellation; `True` means cancelled."""
        now = self._configs.clock()
        delay = max(fire_at.timestamp() - now.timestamp(), 0.0)
        try:
            _ = await asyncio.wait_for(
                self._cancel_event.wait(),
                timeout=delay,
            )
        except asyncio.TimeoutError:
            return False
        return True

    def _dispatch(self, fire_at: datetime) -> None:
        self.run_count += 1
        context = ScheduleContext(
            schedule=self,
            fire_at=fire_at,
            run_number=self.run_count,
        )
        loop = self._configs.getloop()
        coro = self._runnable(
            context,
            loop=loop,
            threadpool=self._configs.threadpool,
        )
        task = loop.create_task(
            coro,
            name=f"cronify:{self.name}:{self.run_count}",
        )
        self._tasks.add(task)
        self._shared_state.track_task(task)
        task.add_done_callback(self._on_run_done)

    def _on_run_done(self, task: asyncio.Task[Outcome[ReturnT]]) -> None:
        self._tasks.discard(task)
        if not task.cancelled():
            self._handle_outcome(task.result())
        self._finalize_if_idle()

    def _handle_outcome(self, outcome: Outcome[ReturnT]) -> None:
        self.last_outcome = outcome
        if outcome.ok or self._status is ScheduleStatus.FAILED:
            return

        keep_running = handle_failure_policy(
            self.name,
            outcome,
            self.failure_policy,
        )
        if keep_running or self._status is ScheduleStatus.CANCELLED:
            return

        self._status = ScheduleStatus.FAILED
        self.exception = outcome.exception
        if self.failure_policy is FailurePolicy.ESCALATE:
            self._escalated = True
            error = ScheduleFailedError(
                self.name,
                reason=repr(outcome.exception),
            )
            error.__cause__ = outcome.exception
            self._shared_state.report_escalation(error)
        self._wake_loop()

    def _finalize_if_idle(self) -> None:
        if not self._loop_finished or self._tasks or self.is_done():
            return
        self._done_event.set()
        self._shared_state.unregister_schedule(self.name)
