"""Rule parser.

A rule is six whitespace separated fields, in this order::

    second minute hour day_of_month day_of_week month

Each field is a comma separated list of atoms: ``*``, ``N``, ``A-B``,
``A-B/S``, ``N/S`` (from N to the end of the domain) or ``*/S``.
"""

from __future__ import annotations

from dataclasses import dataclass

from cronify._internal.common.utils import parse_int
from cronify._internal.exceptions import (
    InvalidStepError,
    MalformedRuleError,
    RangeReversedError,
    UnsatisfiableRuleError,
    ValueOutOfRangeError,
)
from cronify._internal.rule.fields import (
    MAX_DAYS_IN_MONTH,
    RULE_ORDER,
    FieldKind,
    FieldSet,
)


@dataclass(slots=True, frozen=True)
class ParsedRule:
    expression: str
    second: FieldSet
    minute: FieldSet
    hour: FieldSet
    day_of_month: FieldSet
    day_of_week: FieldSet
    month: FieldSet

    def __getitem__(self, kind: FieldKind) -> FieldSet:
        field_set: FieldSet = getattr(self, kind.value)
        return field_set


def parse_rule(expression: str) -> ParsedRule:
    """Parse a rule and check that its days and months can meet.

    Raises:
        MalformedRuleError: Wrong number of fields or an unparsable atom.
        ValueOutOfRangeError: A value lies outside its field's domain.
        RangeReversedError: A range starts after it ends.
        InvalidStepError: A step is below 1 or wider than the domain.
        UnsatisfiableRuleError: No month of the rule has any of its days.

    """
    tokens = expression.split()
    if len(tokens) != len(RULE_ORDER):
        msg = (
            f"Rule {expression!r} must have {len(RULE_ORDER)} fields "
            f"({' '.join(kind.value for kind in RULE_ORDER)}), "
            f"got {len(tokens)}."
        )
        raise MalformedRuleError(msg)

    fields = {
        kind.value: parse_field(token, kind)
        for kind, token in zip(RULE_ORDER, tokens)
    }
    rule = ParsedRule(expression=expression, **fields)
    ensure_satisfiable(rule)
    return rule


def parse_field(token: str, kind: FieldKind) -> FieldSet:
    marks = [False] * (kind.upper + 1)
    for atom in token.split(","):
        if not atom:
            msg = f"{kind.label} field {token!r} contains an empty item."
            raise MalformedRuleError(msg)
        _mark_atom(atom, kind, marks)
    return FieldSet.from_marks(kind, marks)


def _mark_atom(atom: str, kind: FieldKind, marks: list[bool]) -> None:
    base, slash, raw_step = atom.partition("/")

    step = 1
    if slash:
        step = _parse_number(raw_step, kind, atom)
        if not 1 <= step <= kind.span:
            raise InvalidStepError(kind.label, step, kind.span)

    if base == "*":
        start, end = kind.lower, kind.upper
    else:
        raw_start, dash, raw_end = base.partition("-")
        start = _parse_value(raw_start, kind, atom)
        if dash:
            end = _parse_value(raw_end, kind, atom)
        elif slash:
            end = kind.upper
        else:
            end = start
        if start > end:
            raise RangeReversedError(kind.label, start, end)

    for val in range(start, end + 1, step):
        marks[val] = True


def _parse_value(raw: str, kind: FieldKind, atom: str) -> int:
    val = _parse_number(raw, kind, atom)
    if not kind.lower <= val <= kind.upper:
        raise ValueOutOfRangeError(kind.label, val, kind.lower, kind.upper)
    return val


def _parse_number(raw: str, kind: FieldKind, atom: str) -> int:
    try:
        return parse_int(raw)
    except ValueError as exc:
        msg = f"{kind.label} item {atom!r} is malformed: {exc}."
        raise MalformedRuleError(msg) from exc


def ensure_satisfiable(rule: ParsedRule) -> None:
    # The smallest day fits in a month iff at least one requested day does.
    smallest_day = rule.day_of_month.first
    if not any(smallest_day <= MAX_DAYS_IN_MONTH[m] for m in rule.month):
        raise UnsatisfiableRuleError(rule.expression)
