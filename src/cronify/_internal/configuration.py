from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from cronify._internal.common.constants import INFINITY, UNBOUNDED_HORIZON

if TYPE_CHECKING:
    from concurrent.futures import ThreadPoolExecutor

    from cronify._internal.common.types import Clock, LoopFactory
    from cronify._internal.scheduler.failure_policy import FailurePolicy


@dataclass(slots=True, kw_only=True)
class CronifyConfiguration:
    horizon: int
    failure_policy: FailurePolicy
    clock: Clock
    getloop: LoopFactory
    threadpool: ThreadPoolExecutor | None = None
    app_started: bool = False


@dataclass(slots=True, kw_only=True, frozen=True)
class Cron:
    """A rule plus the options of the schedule that runs it.

    `horizon` and `failure_policy` fall back to the application defaults
    when left as `None`.
    """

    expression: str = field(kw_only=False)
    horizon: int | None = None
    failure_policy: FailurePolicy | None = None
    max_runs: int = INFINITY

    def __post_init__(self) -> None:
        if self.max_runs < 1:
            msg = "max_runs must be >= 1."
            raise ValueError(msg)
        if self.horizon is not None and self.horizon < UNBOUNDED_HORIZON:
            msg = (
                f"horizon must be >= {UNBOUNDED_HORIZON}."
                f" Use {UNBOUNDED_HORIZON} for an unbounded search."
            )
            raise ValueError(msg)
