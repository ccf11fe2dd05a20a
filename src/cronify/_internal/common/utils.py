import re
from bisect import bisect_left
from collections.abc import Sequence

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")


def parse_int(raw: str) -> int:
    """Parse a decimal integer written with ASCII digits only.

    `int()` alone is too lenient for rule atoms: it accepts surrounding
    whitespace, underscores and non-ASCII digits.
    """
    if _INTEGER_RE.fullmatch(raw) is None:
        msg = f"{raw!r} must be an integer"
        raise ValueError(msg)
    return int(raw)


def first_at_least(values: Sequence[int], target: int) -> int | None:
    """Return the index of the smallest value >= target in an ascending run.

    Returns `None` if every value is below `target`.
    """
    idx = bisect_left(values, target)
    if idx == len(values):
        return None
    return idx
