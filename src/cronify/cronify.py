"""Cronify entrypoint."""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, TypeVar
from uuid import uuid4

from typing_extensions import Self

from cronify._internal.common.constants import (
    DEFAULT_HORIZON,
    UNBOUNDED_HORIZON,
)
from cronify._internal.configuration import Cron, CronifyConfiguration
from cronify._internal.engine.occurrence import OccurrenceEngine
from cronify._internal.exceptions import (
    DuplicateScheduleError,
    raise_app_already_started_error,
    raise_app_not_started_error,
)
from cronify._internal.rule.parser import ParsedRule, parse_rule
from cronify._internal.runnable import Runnable
from cronify._internal.scheduler.failure_policy import FailurePolicy
from cronify._internal.scheduler.schedule import Schedule
from cronify._internal.shared_state import SharedState

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterator
    from concurrent.futures import ThreadPoolExecutor
    from types import FrameType, TracebackType

    from cronify._internal.common.types import Clock, LoopFactory
    from cronify._internal.context import ScheduleContext

HANDLED_SIGNALS = (
    signal.SIGINT,  # Unix signal 2. Sent by Ctrl+C.
    signal.SIGTERM,  # Unix signal 15. Sent by `kill <pid>`.
)
if sys.platform == "win32":  # pragma: no cover
    # Windows signal 21. Sent by Ctrl+Break.
    HANDLED_SIGNALS += (signal.SIGBREAK,)  # pyright: ignore[reportConstantRedefinition]

logger = logging.getLogger("Cronify")

ReturnT = TypeVar("ReturnT")
CallbackT = TypeVar("CallbackT", bound="Callable[[ScheduleContext], Any]")


@dataclass(slots=True, frozen=True)
class _CronDeclaration:
    name: str
    cron: Cron
    rule: ParsedRule
    runnable: Runnable[Any]


def resolve_name(func: Callable[..., Any]) -> str:
    return f"{func.__module__}:{func.__qualname__}"


class Cronify:
    """Cronify runs callbacks on six-field cron rules.

    Every rule gets its own schedule: a loop that sleeps until the next
    occurrence, dispatches the callback without awaiting it and computes the
    following occurrence. Rules are checked when they are declared, so a
    malformed or impossible rule fails before any timer is armed.

    Args:
        horizon: Default number of years past the current one an occurrence
            search may explore. `0` limits it to the current year and `-1`
            removes the limit.
        failure_policy: Default reaction to a failing callback.
        clock: Source of the current local time.
        loop_factory: Returns the event loop schedules run on.
        threadpool_executor: Executor for synchronous callbacks; the loop's
            default executor when omitted.

    Example:
        ```python
        app = Cronify()


        @app.cron("0 */15 9-17 * 1-5 *")
        async def report(ctx: ScheduleContext) -> None:
            print("fired at", ctx.fire_at)


        async with app:
            await app.wait_all()
        ```

    """

    def __init__(  # noqa: PLR0913
        self,
        *,
        horizon: int = DEFAULT_HORIZON,
        failure_policy: FailurePolicy = FailurePolicy.STOP_SCHEDULE,
        clock: Clock = datetime.now,
        loop_factory: LoopFactory = asyncio.get_running_loop,
        threadpool_executor: ThreadPoolExecutor | None = None,
    ) -> None:
        """Initialize a `Cronify` instance."""
        if horizon < UNBOUNDED_HORIZON:
            msg = f"horizon must be >= {UNBOUNDED_HORIZON}, got {horizon}."
            raise ValueError(msg)

        self.configs: CronifyConfiguration = CronifyConfiguration(
            horizon=horizon,
            failure_policy=failure_policy,
            clock=clock,
            getloop=loop_factory,
            threadpool=threadpool_executor,
        )
        self._shared_state: SharedState = SharedState()
        self._declarations: dict[str, _CronDeclaration] = {}
        self._captured_signals: list[int] = []

    def cron(
        self,
        cron: str | Cron,
        *,
        name: str | None = None,
    ) -> Callable[[CallbackT], CallbackT]:
        """Declare a schedule that starts together with the application.

        The rule is parsed immediately.

        Raises:
            InvalidRuleError: The rule is malformed or can never fire.
            ApplicationStateError: The application is already running.

        """
        if self.configs.app_started:
            raise_app_already_started_error("cron")
        if isinstance(cron, str):
            cron = Cron(cron)
        rule = parse_rule(cron.expression)

        def decorator(func: CallbackT) -> CallbackT:
            schedule_name = name or resolve_name(func)
            if schedule_name in self._declarations:
                raise DuplicateScheduleError(schedule_name)
            self._declarations[schedule_name] = _CronDeclaration(
                name=schedule_name,
                cron=cron,
                rule=rule,
                runnable=Runnable(func),
            )
            return func

        return decorator

    def schedule(  # noqa: PLR0913
        self,
        func: Callable[[ScheduleContext], Awaitable[ReturnT] | ReturnT],
        cron: str | Cron,
        *,
        name: str | None = None,
        now: datetime | None = None,
        last_fired: datetime | None = None,
    ) -> Schedule[ReturnT]:
        """Start a schedule on the running application.

        Args:
            func: Callback invoked with a `ScheduleContext` on every run.
            cron: A rule, or a `Cron` carrying the rule and its options.
            name: Unique schedule name; a random one by default.
            now: Reference instant for the first occurrence.
            last_fired: An instant this rule already fired through; the first
                occurrence comes strictly after it.

        Returns:
            The running `Schedule`.

        Raises:
            InvalidRuleError: The rule is malformed or can never fire.
            NoFeasibleOccurrenceError: Nothing fires within the horizon.
            DuplicateScheduleError: A schedule with this name is active.
            ApplicationStateError: The application is not started.

        """
        if not self.configs.app_started:
            raise_app_not_started_error("schedule")
        if isinstance(cron, str):
            cron = Cron(cron)
        schedule = self._build_schedule(
            name=name or uuid4().hex,
            cron=cron,
            rule=parse_rule(cron.expression),
            runnable=Runnable(func),
            now=now,
            last_fired=last_fired,
        )
        self._launch(schedule)
        return schedule

    def _build_schedule(  # noqa: PLR0913
        self,
        *,
        name: str,
        cron: Cron,
        rule: ParsedRule,
        runnable: Runnable[ReturnT],
        now: datetime | None = None,
        last_fired: datetime | None = None,
    ) -> Schedule[ReturnT]:
        if name in self._shared_state.active_schedules:
            raise DuplicateScheduleError(name)

        horizon = self.configs.horizon if cron.horizon is None else cron.horizon
        engine = OccurrenceEngine(
            rule,
            now=now,
            last_fired=last_fired,
            horizon=horizon,
            clock=self.configs.clock,
        )
        return Schedule(
            name=name,
            cron=cron,
            engine=engine,
            runnable=runnable,
            shared_state=self._shared_state,
            configs=self.configs,
        )

    def _launch(self, schedule: Schedule[Any]) -> None:
        schedule.start()
        logger.info(
            "Schedule %s started with rule %r, first run at %s",
            schedule.name,
            schedule.expression,
            schedule.next_fire_at.isoformat(),
        )

    def find_schedule(self, name: str, /) -> Schedule[Any] | None:
        """Return the active schedule with this name, if any."""
        return self._shared_state.active_schedules.get(name)

    def get_active_schedules(self) -> list[Schedule[Any]]:
        """Return a list of all currently active schedules."""
        return list(self._shared_state.active_schedules.values())

    async def __aenter__(self) -> Self:
        """Enter the Cronify context manager.

        Returns:
            The started Cronify instance.

        """
        await self.startup()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_val: BaseException | None = None,
        exc_tb: TracebackType | None = None,
    ) -> None:
        """Exit the Cronify context manager.

        Note:
            Shutdown runs whether or not the managed block raised.

        """
        await self.shutdown()

    async def startup(self) -> None:
        """Mark the application as started and start declared schedules.

        Every declared schedule is seeded before any of them starts, so a
        failure leaves the application stopped with nothing running.

        Raises:
            NoFeasibleOccurrenceError: A declared rule has no occurrence
                within its horizon.

        """
        schedules = [
            self._build_schedule(
                name=decl.name,
                cron=decl.cron,
                rule=decl.rule,
                runnable=decl.runnable,
            )
            for decl in self._declarations.values()
        ]
        self.configs.app_started = True
        for schedule in schedules:
            self._launch(schedule)

    async def shutdown(self) -> None:
        """Gracefully shut down the Cronify application.

        This method:
        1. Marks the application as stopped.
        2. Cancels every active schedule.
        3. Cancels the schedule loops and in-flight runs and waits for them.
        4. Re-raises signals captured while waiting in `wait_all`.

        """
        self.configs.app_started = False

        for schedule in tuple(self._shared_state.active_schedules.values()):
            schedule.cancel()

        if tasks := self._shared_state.pending_tasks:
            for task in tuple(tasks):
                _ = task.cancel()
            _ = await asyncio.gather(*tasks, return_exceptions=True)

        # If we did gracefully shut down due to a signal, try to
        # trigger the expected behaviour now; multiple signals would be
        # done LIFO, see https://stackoverflow.com/questions/48434964
        for captured_signal in reversed(self._captured_signals):
            signal.raise_signal(captured_signal)

    async def wait_all(self, timeout: float | None = None) -> None:
        """Wait until no schedule is active anymore.

        SIGINT and SIGTERM received meanwhile end the wait; they are raised
        again once the application shuts down.

        Args:
            timeout (optional): The maximum time in seconds to wait. If it is
                reached, `asyncio.TimeoutError` is raised.

        Raises:
            ScheduleFailedError: A schedule escalated a callback failure.

        """
        idle_event = self._shared_state.idle_event
        with self._capture_signals():
            _ = await asyncio.wait_for(idle_event.wait(), timeout=timeout)
        if (error := self._shared_state.pop_escalation()) is not None:
            raise error

    @contextmanager
    def _capture_signals(self) -> Iterator[None]:
        # Signals can only be listened to from the main thread.
        if threading.current_thread() is not threading.main_thread():
            yield
            return
        # always use signal.signal, even if loop.add_signal_handler is
        # available this allows to restore previous signal handlers later on
        original_handlers = {
            sig: signal.signal(sig, self._handle_exit)
            for sig in HANDLED_SIGNALS
        }
        try:
            yield
        finally:
            for sig, handler in original_handlers.items():
                _ = signal.signal(sig, handler)

    def _handle_exit(self, sig: int, _: FrameType | None) -> None:
        self._captured_signals.append(sig)
        loop = self.configs.getloop()
        idle_event = self._shared_state.idle_event
        _handle = loop.call_soon_threadsafe(idle_event.set)
