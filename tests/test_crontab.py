from datetime import datetime

import pytest

from cronify._internal.cron_parser import CronParser
from cronify.crontab import CronTab, create_crontab
from cronify.exceptions import MalformedRuleError, NoFeasibleOccurrenceError
from tests.conftest import frozen_clock


def test_crontab_is_a_cron_parser() -> None:
    crontab = create_crontab("0 0 12 * * *")
    assert isinstance(crontab, CronTab)
    assert isinstance(crontab, CronParser)
    assert crontab.rule.hour.values == (12,)


def test_next_run_is_strictly_after_now(saturday: datetime) -> None:
    crontab = CronTab("0 0 12 * * *", clock=frozen_clock(saturday))
    noon = datetime(2026, 10, 17, 12)
    assert crontab.next_run(now=saturday) == noon
    assert crontab.next_run(now=noon) == datetime(2026, 10, 18, 12)
    half_second_before = datetime(2026, 10, 17, 11, 59, 59, 500_000)
    assert crontab.next_run(now=half_second_before) == noon


def test_iter_runs(saturday: datetime) -> None:
    crontab = CronTab("0 0 9 * 1-5 *", clock=frozen_clock(saturday))
    runs = list(crontab.iter_runs(now=saturday, limit=3))
    assert runs == [
        datetime(2026, 10, 19, 9),
        datetime(2026, 10, 20, 9),
        datetime(2026, 10, 21, 9),
    ]


def test_invalid_rule_fails_on_construction() -> None:
    with pytest.raises(MalformedRuleError):
        _ = CronTab("0 0 12 * *")


def test_next_run_respects_horizon() -> None:
    now = datetime(2026, 12, 31, 23, 59, 59)
    crontab = CronTab("0 0 0 1 * 1", horizon=0, clock=frozen_clock(now))
    with pytest.raises(NoFeasibleOccurrenceError):
        _ = crontab.next_run(now=now)
