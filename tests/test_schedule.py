import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

import pytest

from cronify import Cron, FailurePolicy, ScheduleContext, ScheduleStatus
from cronify.exceptions import NoFeasibleOccurrenceError, ScheduleFailedError
from tests.conftest import create_app, frozen_clock, recorder

EVERY_SECOND = "* * * * * *"
FAR_AWAY = datetime(2026, 12, 31)


async def test_runs_until_max_runs(saturday: datetime) -> None:
    seen, record = recorder()

    async def job(ctx: ScheduleContext) -> None:
        record(ctx)

    async with create_app(clock=frozen_clock(FAR_AWAY)) as app:
        schedule = app.schedule(
            job,
            Cron("0 */15 9-17 * 1-5 *", max_runs=3),
            name="report",
            now=saturday,
        )
        assert schedule.next_fire_at == datetime(2026, 10, 19, 9)
        await schedule.wait()

    assert schedule.status is ScheduleStatus.COMPLETED
    assert schedule.run_count == 3
    assert schedule.is_done()
    assert sorted(ctx.fire_at for ctx in seen) == [
        datetime(2026, 10, 19, 9, 0),
        datetime(2026, 10, 19, 9, 15),
        datetime(2026, 10, 19, 9, 30),
    ]
    assert sorted(ctx.run_number for ctx in seen) == [1, 2, 3]
    assert {ctx.name for ctx in seen} == {"report"}
    assert app.find_schedule("report") is None


async def test_sync_callback_runs_in_executor(saturday: datetime) -> None:
    threads: list[str] = []

    def job(_ctx: ScheduleContext) -> int:
        threads.append(threading.current_thread().name)
        return 42

    pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="cronify-test")
    try:
        async with create_app(
            clock=frozen_clock(FAR_AWAY),
            threadpool_executor=pool,
        ) as app:
            schedule = app.schedule(job, Cron(EVERY_SECOND, max_runs=2))
            await schedule.wait()
    finally:
        pool.shutdown()

    assert len(threads) == 2
    assert all(name.startswith("cronify-test") for name in threads)
    assert schedule.last_outcome is not None
    assert schedule.last_outcome.result == 42


async def test_stop_schedule_on_failure() -> None:
    async def job(_ctx: ScheduleContext) -> None:
        msg = "boom"
        raise ValueError(msg)

    async with create_app() as app:
        schedule = app.schedule(job, EVERY_SECOND)
        await asyncio.wait_for(schedule.wait(), timeout=3)

    assert schedule.status is ScheduleStatus.FAILED
    assert schedule.run_count == 1
    assert isinstance(schedule.exception, ValueError)
    assert schedule.last_outcome is not None
    assert not schedule.last_outcome.ok


async def test_log_and_continue(caplog: pytest.LogCaptureFixture) -> None:
    async def job(_ctx: ScheduleContext) -> None:
        msg = "boom"
        raise ValueError(msg)

    async with create_app(clock=frozen_clock(FAR_AWAY)) as app:
        schedule = app.schedule(
            job,
            Cron(
                EVERY_SECOND,
                max_runs=3,
                failure_policy=FailurePolicy.LOG_AND_CONTINUE,
            ),
        )
        await schedule.wait()

    assert schedule.status is ScheduleStatus.COMPLETED
    assert schedule.run_count == 3
    assert caplog.text.count("continuing") == 3


async def test_failure_after_last_run_marks_failed() -> None:
    async def job(_ctx: ScheduleContext) -> None:
        msg = "boom"
        raise ValueError(msg)

    async with create_app(clock=frozen_clock(FAR_AWAY)) as app:
        schedule = app.schedule(job, Cron(EVERY_SECOND, max_runs=1))
        await schedule.wait()

    assert schedule.status is ScheduleStatus.FAILED
    assert schedule.run_count == 1


async def test_escalate() -> None:
    cause = RuntimeError("boom")

    async def job(_ctx: ScheduleContext) -> None:
        raise cause

    async with create_app(clock=frozen_clock(FAR_AWAY)) as app:
        schedule = app.schedule(
            job,
            Cron(EVERY_SECOND, failure_policy=FailurePolicy.ESCALATE),
            name="escalating",
        )
        with pytest.raises(ScheduleFailedError) as exc_info:
            await schedule.wait()

    assert exc_info.value.name == "escalating"
    assert exc_info.value.__cause__ is cause
    assert schedule.status is ScheduleStatus.FAILED
    assert schedule.exception is cause


async def test_cancel_from_callback() -> None:
    async def job(ctx: ScheduleContext) -> None:
        ctx.cancel()
        ctx.cancel()

    async with create_app() as app:
        schedule = app.schedule(job, EVERY_SECOND)
        await asyncio.wait_for(schedule.wait(), timeout=3)

    assert schedule.status is ScheduleStatus.CANCELLED
    assert schedule.run_count == 1


async def test_cancel_from_worker_thread() -> None:
    def job(ctx: ScheduleContext) -> None:
        ctx.cancel()

    async with create_app() as app:
        schedule = app.schedule(job, EVERY_SECOND)
        await asyncio.wait_for(schedule.wait(), timeout=3)

    assert schedule.status is ScheduleStatus.CANCELLED
    assert schedule.run_count == 1


async def test_cancel_before_first_run(saturday: datetime) -> None:
    _, record = recorder()
    async with create_app(clock=frozen_clock(saturday)) as app:
        schedule = app.schedule(
            record,
            "0 0 10 * * *",
            now=saturday,
            last_fired=saturday,
        )
        assert schedule.next_fire_at == datetime(2026, 10, 18, 10)
        assert schedule.expression == "0 0 10 * * *"
        assert schedule.name in repr(schedule)

        schedule.cancel()
        await asyncio.wait_for(schedule.wait(), timeout=1)

    assert schedule.status is ScheduleStatus.CANCELLED
    assert schedule.run_count == 0


async def test_no_further_occurrence_fails_schedule(
    caplog: pytest.LogCaptureFixture,
) -> None:
    _, record = recorder()
    async with create_app(clock=frozen_clock(datetime(2026, 6, 1))) as app:
        schedule = app.schedule(
            record,
            Cron("0 0 0 1 * 1", horizon=0),
            now=datetime(2026, 1, 1),
        )
        await schedule.wait()

    assert schedule.run_count == 1
    assert schedule.status is ScheduleStatus.FAILED
    assert isinstance(schedule.exception, NoFeasibleOccurrenceError)
    assert "no further occurrence" in caplog.text


async def test_shutdown_cancels_running_callbacks() -> None:
    started = asyncio.Event()

    async def job(_ctx: ScheduleContext) -> None:
        started.set()
        await asyncio.sleep(10)

    app = create_app(clock=frozen_clock(FAR_AWAY))
    await app.startup()
    schedule = app.schedule(job, Cron(EVERY_SECOND, max_runs=1))
    await asyncio.wait_for(started.wait(), timeout=1)
    assert app.get_active_schedules() == [schedule]

    await app.shutdown()

    assert schedule.is_done()
    assert schedule.last_outcome is None
    assert app.get_active_schedules() == []
