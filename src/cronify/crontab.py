"""Stateless cron rule evaluation."""

from __future__ import annotations

from datetime import datetime
from itertools import islice
from typing import TYPE_CHECKING, Final

from typing_extensions import override

from cronify._internal.common.constants import DEFAULT_HORIZON
from cronify._internal.cron_parser import CronParser
from cronify._internal.engine.occurrence import OccurrenceEngine
from cronify._internal.rule.parser import ParsedRule, parse_rule

if TYPE_CHECKING:
    from collections.abc import Iterator

    from cronify._internal.common.types import Clock


class CronTab(CronParser):
    """Cron rule evaluator backed by the occurrence engine."""

    __slots__: tuple[str, ...] = ("_clock", "_horizon", "_rule")

    def __init__(
        self,
        expression: str,
        *,
        horizon: int = DEFAULT_HORIZON,
        clock: Clock = datetime.now,
    ) -> None:
        """Initialize a CronTab.

        Args:
            expression: A six-field rule,
                `second minute hour day_of_month day_of_week month`.
            horizon: Years past the current one the search may explore.
            clock: Source of the current real time for the horizon check.

        Raises:
            InvalidRuleError: The rule is malformed or can never fire.

        """
        self._rule: Final[ParsedRule] = parse_rule(expression)
        self._horizon: Final = horizon
        self._clock: Final = clock

    @property
    def rule(self) -> ParsedRule:
        return self._rule

    @override
    def next_run(self, *, now: datetime) -> datetime:
        """Compute the first occurrence strictly after `now`.

        Args:
            now: Reference datetime.

        Returns:
            The next run datetime.

        Raises:
            NoFeasibleOccurrenceError: Nothing fires within the horizon.

        """
        return self._engine(now).current

    def iter_runs(
        self,
        *,
        now: datetime,
        limit: int | None = None,
    ) -> Iterator[datetime]:
        """Yield successive occurrences strictly after `now`.

        Args:
            now: Reference datetime.
            limit: Stop after this many occurrences; unlimited by default.

        """
        engine = self._engine(now)

        def walk() -> Iterator[datetime]:
            yield engine.current
            while True:
                yield engine.advance()

        return islice(walk(), limit)

    def _engine(self, now: datetime) -> OccurrenceEngine:
        return OccurrenceEngine(
            self._rule,
            now=now,
            last_fired=now,
            horizon=self._horizon,
            clock=self._clock,
        )


def create_crontab(expression: str) -> CronTab:
    """Create a CronTab instance.

    Args:
        expression: A six-field rule.

    Returns:
        A new CronTab instance.

    """
    return CronTab(expression)
