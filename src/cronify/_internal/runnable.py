from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar, final

if TYPE_CHECKING:
    import asyncio
    from collections.abc import Awaitable, Callable
    from concurrent.futures import ThreadPoolExecutor
    from datetime import datetime

    from cronify._internal.context import ScheduleContext

ReturnT = TypeVar("ReturnT")


@dataclass(slots=True, frozen=True)
class Outcome(Generic[ReturnT]):
    """Result of one run: either a value or the exception it raised."""

    fire_at: datetime
    result: ReturnT | None = None
    exception: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.exception is None


@final
class Runnable(Generic[ReturnT]):
    __slots__: tuple[str, ...] = ("func", "is_async")

    def __init__(
        self,
        func: Callable[[ScheduleContext], Awaitable[ReturnT] | ReturnT],
    ) -> None:
        self.func = func
        self.is_async = inspect.iscoroutinefunction(func)

    async def __call__(
        self,
        context: ScheduleContext,
        *,
        loop: asyncio.AbstractEventLoop,
        threadpool: ThreadPoolExecutor | None = None,
    ) -> Outcome[ReturnT]:
        try:
            if self.is_async:
                result: Any = await self.func(context)  # type: ignore[misc]
            else:
                result = await loop.run_in_executor(
                    threadpool,
                    self.func,
                    context,
                )
                if inspect.isawaitable(result):
                    result = await result
        except Exception as exc:  # noqa: BLE001
            return Outcome(context.fire_at, exception=exc)
        return Outcome(context.fire_at, result=result)
