"""Mixed-radix odometer over the index of each field set.

Each wheel is a (field set, index) pair. Rolling a wheel moves its index one
position forward and reports whether it wrapped around to the first value,
which is the carry into the next, coarser wheel.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, final

from typing_extensions import override

from cronify._internal.common.utils import first_at_least

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from cronify._internal.rule.fields import FieldKind, FieldSet


@final
class Wheel:
    __slots__: tuple[str, ...] = ("field_set", "index")

    def __init__(self, field_set: FieldSet, index: int = 0) -> None:
        if not 0 <= index < len(field_set):
            msg = f"index {index} is out of bounds for {field_set.kind.label}"
            raise IndexError(msg)
        self.field_set: FieldSet = field_set
        self.index: int = index

    @property
    def kind(self) -> FieldKind:
        return self.field_set.kind

    @property
    def value(self) -> int:
        return self.field_set[self.index]

    @override
    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}("
            f"kind={self.kind.value}, index={self.index}, value={self.value})"
        )

    def roll_one(self) -> bool:
        self.index = (self.index + 1) % len(self.field_set)
        return self.index == 0

    def reset(self) -> None:
        self.index = 0

    def seek(self, target: int) -> bool:
        """Move to the smallest value >= target.

        Returns `True` when there is no such value; the wheel then rests on
        its first value and the caller owes a carry to the coarser wheel.
        """
        idx = first_at_least(self.field_set.values, target)
        if idx is None:
            self.index = 0
            return True
        self.index = idx
        return False


@final
class Odometer:
    __slots__: tuple[str, ...] = ("_wheels",)

    def __init__(self, wheels: Sequence[Wheel]) -> None:
        self._wheels: tuple[Wheel, ...] = tuple(wheels)

    def __iter__(self) -> Iterator[Wheel]:
        return iter(self._wheels)

    def __len__(self) -> int:
        return len(self._wheels)

    def __getitem__(self, pos: int) -> Wheel:
        return self._wheels[pos]

    @property
    def indices(self) -> tuple[int, ...]:
        return tuple(wheel.index for wheel in self._wheels)

    def roll(self, start: int = 0) -> bool:
        """Advance the wheel at `start` by one and propagate the carry.

        Returns `True` if the carry ran off the last, coarsest wheel.
        """
        for wheel in self._wheels[start:]:
            if not wheel.roll_one():
                return False
        return True

    def reset_below(self, pos: int) -> None:
        for wheel in self._wheels[:pos]:
            wheel.reset()
