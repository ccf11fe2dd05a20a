"""Next occurrence engine.

The engine keeps a cursor into the field sets of a parsed rule: one index per
odometer wheel (second, minute, hour, day of month, month) plus a free running
year. Day of week never moves the cursor; it only rejects candidate dates.
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, final

from typing_extensions import override

from cronify._internal.common.constants import (
    DEFAULT_HORIZON,
    UNBOUNDED_HORIZON,
)
from cronify._internal.engine.odometer import Odometer, Wheel
from cronify._internal.exceptions import NoFeasibleOccurrenceError
from cronify._internal.rule.fields import ODOMETER_ORDER, FieldKind

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import tzinfo

    from cronify._internal.common.types import Clock
    from cronify._internal.rule.parser import ParsedRule

logger = logging.getLogger("cronify.engine")

_DAY_WHEEL = ODOMETER_ORDER.index(FieldKind.DAY_OF_MONTH)


def cron_weekday(moment: datetime) -> int:
    """Day of week with Sunday as 0, as used by rules."""
    return moment.isoweekday() % 7


def materialize(
    rule: ParsedRule,
    year: int,
    indices: Sequence[int],
    tz: tzinfo | None = None,
) -> datetime | None:
    """Compose the instant a cursor position stands for.

    Returns `None` if the day does not exist in that month of that year,
    e.g. the 30th of February.
    """
    second, minute, hour, day, month = (
        rule[kind][idx] for kind, idx in zip(ODOMETER_ORDER, indices)
    )
    if day > calendar.monthrange(year, month)[1]:
        return None
    return datetime(year, month, day, hour, minute, second, tzinfo=tz)


@dataclass(slots=True)
class Cursor:
    odometer: Odometer
    year: int

    @property
    def indices(self) -> tuple[int, ...]:
        return self.odometer.indices


@final
class OccurrenceEngine:
    """Walks the occurrences of one rule in increasing order.

    The cursor is seeded on construction from `now` (defaults to the clock)
    or from `last_fired`, whichever is later. After seeding, `current` is the
    earliest occurrence not earlier than `now` and strictly later than
    `last_fired`. Each call to `advance` moves to the next occurrence.

    Args:
        rule: A parsed rule.
        now: Reference instant. Sub-second parts are rounded up.
        last_fired: An instant the schedule already fired through.
        horizon: How many years past the current one the search may explore.
            `0` keeps it within the current year, `-1` removes the limit.
        clock: Source of the current real time for the horizon check.

    Raises:
        ValueError: Only one of `now` and `last_fired` carries a timezone.
        NoFeasibleOccurrenceError: No occurrence exists within the horizon.

    """

    __slots__: tuple[str, ...] = (
        "_clock",
        "_current",
        "_cursor",
        "_tz",
        "horizon",
        "rule",
    )

    def __init__(  # noqa: PLR0913
        self,
        rule: ParsedRule,
        *,
        now: datetime | None = None,
        last_fired: datetime | None = None,
        horizon: int = DEFAULT_HORIZON,
        clock: Clock = datetime.now,
    ) -> None:
        if horizon < UNBOUNDED_HORIZON:
            msg = f"horizon must be >= {UNBOUNDED_HORIZON}, got {horizon}."
            raise ValueError(msg)
        self.rule: ParsedRule = rule
        self.horizon: int = horizon
        self._clock: Clock = clock

        reference = now if now is not None else clock()
        if last_fired is not None and (
            (last_fired.tzinfo is None) != (reference.tzinfo is None)
        ):
            msg = (
                "now and last_fired must both be naive "
                "or both be timezone-aware."
            )
            raise ValueError(msg)
        if last_fired is not None and last_fired >= reference:
            reference = last_fired
        reference = _ceil_to_second(reference)
        self._tz: tzinfo | None = reference.tzinfo
        self._cursor: Cursor = _seed_cursor(rule, reference)

        limit_year = self._limit_year()
        candidate = self._check(limit_year)
        if candidate is None or candidate == last_fired:
            candidate = self._advance(limit_year)
        self._current: datetime = candidate
        logger.debug(
            "Rule %r seeded at %s, first occurrence %s",
            rule.expression,
            reference.isoformat(),
            candidate.isoformat(),
        )

    @override
    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}("
            f"rule={self.rule.expression!r}, "
            f"current={self._current.isoformat()})"
        )

    @property
    def current(self) -> datetime:
        return self._current

    @property
    def year(self) -> int:
        return self._cursor.year

    @property
    def indices(self) -> tuple[int, ...]:
        return self._cursor.indices

    def advance(self) -> datetime:
        """Move to the next occurrence strictly after `current`.

        Raises:
            NoFeasibleOccurrenceError: The search went past the horizon.

        """
        self._current = self._advance(self._limit_year())
        return self._current

    def _advance(self, limit_year: int | None) -> datetime:
        cursor = self._cursor
        if cursor.odometer.roll():
            cursor.year += 1
        candidate = self._check(limit_year)
        if candidate is not None:
            return candidate

        # The day itself is rejected: any time on it is, so walk whole days.
        cursor.odometer.reset_below(_DAY_WHEEL)
        while candidate is None:
            if cursor.odometer.roll(_DAY_WHEEL):
                cursor.year += 1
            candidate = self._check(limit_year)
        return candidate

    def _limit_year(self) -> int | None:
        if self.horizon == UNBOUNDED_HORIZON:
            return None
        return self._clock().year + 1 + self.horizon

    def _check(self, limit_year: int | None) -> datetime | None:
        cursor = self._cursor
        if limit_year is not None and cursor.year >= limit_year:
            raise NoFeasibleOccurrenceError(
                self.rule.expression,
                self.horizon,
                limit_year,
            )
        candidate = materialize(self.rule, cursor.year, cursor.indices, self._tz)
        if candidate is None:
            return None
        if cron_weekday(candidate) not in self.rule.day_of_week:
            return None
        return candidate


def _seed_cursor(rule: ParsedRule, reference: datetime) -> Cursor:
    odometer = Odometer([Wheel(rule[kind]) for kind in ODOMETER_ORDER])
    components = (
        reference.second,
        reference.minute,
        reference.hour,
        reference.day,
        reference.month,
    )
    carry = False
    for pos, (wheel, component) in enumerate(zip(odometer, components)):
        carry = wheel.seek(component + 1 if carry else component)
        # Finer wheels only held for this exact coarser value.
        if carry or wheel.value != component:
            odometer.reset_below(pos)

    year = reference.year + 1 if carry else reference.year
    return Cursor(odometer, year)


def _ceil_to_second(moment: datetime) -> datetime:
    if moment.microsecond == 0:
        return moment
    return moment.replace(microsecond=0) + timedelta(seconds=1)
