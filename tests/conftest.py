from collections.abc import Callable
from datetime import datetime
from typing import Any

import pytest

from cronify import Cronify, OccurrenceEngine, ParsedRule, parse_rule
from cronify._internal.common.types import Clock
from cronify._internal.engine.occurrence import cron_weekday


@pytest.fixture
def saturday() -> datetime:
    return datetime(2026, 10, 17, 10, 0, 0)


def frozen_clock(moment: datetime) -> Clock:
    def clock() -> datetime:
        return moment

    return clock


def create_app(**kwargs: Any) -> Cronify:  # noqa: ANN401
    return Cronify(**kwargs)


def create_engine(
    expression: str,
    now: datetime,
    **kwargs: Any,  # noqa: ANN401
) -> OccurrenceEngine:
    _ = kwargs.setdefault("clock", frozen_clock(now))
    return OccurrenceEngine(parse_rule(expression), now=now, **kwargs)


def matches(rule: ParsedRule, moment: datetime) -> bool:
    return (
        moment.second in rule.second
        and moment.minute in rule.minute
        and moment.hour in rule.hour
        and moment.day in rule.day_of_month
        and cron_weekday(moment) in rule.day_of_week
        and moment.month in rule.month
    )


def recorder() -> tuple[list[Any], Callable[[Any], None]]:
    seen: list[Any] = []

    def record(ctx: Any) -> None:  # noqa: ANN401
        seen.append(ctx)

    return seen, record
