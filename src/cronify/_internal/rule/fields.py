from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence


@unique
class FieldKind(str, Enum):
    SECOND = "second"
    MINUTE = "minute"
    HOUR = "hour"
    DAY_OF_MONTH = "day_of_month"
    DAY_OF_WEEK = "day_of_week"
    MONTH = "month"

    @property
    def lower(self) -> int:
        return _BOUNDS[self][0]

    @property
    def upper(self) -> int:
        return _BOUNDS[self][1]

    @property
    def span(self) -> int:
        return self.upper - self.lower + 1

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


_BOUNDS: dict[FieldKind, tuple[int, int]] = {
    FieldKind.SECOND: (0, 59),
    FieldKind.MINUTE: (0, 59),
    FieldKind.HOUR: (0, 23),
    FieldKind.DAY_OF_MONTH: (1, 31),
    FieldKind.DAY_OF_WEEK: (0, 6),
    FieldKind.MONTH: (1, 12),
}

# Order of the tokens in a rule string.
RULE_ORDER: tuple[FieldKind, ...] = (
    FieldKind.SECOND,
    FieldKind.MINUTE,
    FieldKind.HOUR,
    FieldKind.DAY_OF_MONTH,
    FieldKind.DAY_OF_WEEK,
    FieldKind.MONTH,
)

# Wheels of the odometer, finest first. Day of week is a filter, not a wheel.
ODOMETER_ORDER: tuple[FieldKind, ...] = (
    FieldKind.SECOND,
    FieldKind.MINUTE,
    FieldKind.HOUR,
    FieldKind.DAY_OF_MONTH,
    FieldKind.MONTH,
)

# Longest possible month, leap years included.
MAX_DAYS_IN_MONTH: dict[int, int] = {
    1: 31,
    2: 29,
    3: 31,
    4: 30,
    5: 31,
    6: 30,
    7: 31,
    8: 31,
    9: 30,
    10: 31,
    11: 30,
    12: 31,
}


@dataclass(slots=True, frozen=True)
class FieldSet:
    """Ascending, duplicate-free values one field of a rule may take."""

    kind: FieldKind
    values: tuple[int, ...]

    def __post_init__(self) -> None:
        if not self.values:
            msg = f"{self.kind.label} field set must not be empty."
            raise ValueError(msg)
        if any(a >= b for a, b in zip(self.values, self.values[1:])):
            msg = f"{self.kind.label} values must be strictly increasing."
            raise ValueError(msg)
        if self.values[0] < self.kind.lower or self.values[-1] > self.kind.upper:
            msg = (
                f"{self.kind.label} values must be within "
                f"{self.kind.lower}-{self.kind.upper}."
            )
            raise ValueError(msg)

    @classmethod
    def from_marks(cls, kind: FieldKind, marks: Sequence[bool]) -> FieldSet:
        """Build a set from a scratch array indexed by the field's values."""
        return cls(kind, tuple(val for val, hit in enumerate(marks) if hit))

    @property
    def first(self) -> int:
        return self.values[0]

    @property
    def last(self) -> int:
        return self.values[-1]

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self) -> Iterator[int]:
        return iter(self.values)

    def __getitem__(self, idx: int) -> int:
        return self.values[idx]

    def __contains__(self, val: object) -> bool:
        return val in self.values
