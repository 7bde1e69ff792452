"""Semantic conflict detection between sibling edge conditions.

Two conditions on the same variable conflict when some input value could
satisfy both, i.e. the policy would be ambiguous about which edge to take.

Numeric comparisons are reduced to intervals with open/closed ends. ``==``
and ``in`` on non-numeric literals are compared as string sets. Anything
that cannot be reduced either way (``!=`` on a string, unknown operators)
is reported as a conflict.
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

from policygraph.models import SUPPORTED_OPS, Condition, Edge

NUMERIC_OPS = frozenset(SUPPORTED_OPS)


@dataclass(frozen=True)
class Interval:
    """Numeric interval. ``lo_closed``/``hi_closed`` mark inclusive ends."""

    lo: float
    hi: float
    lo_closed: bool
    hi_closed: bool

    def overlaps(self, other: "Interval") -> bool:
        """Open ranges intersect, or the two touch at an end closed on both sides."""
        if self.lo < other.hi and other.lo < self.hi:
            return True
        if self.hi == other.lo:
            return self.hi_closed and other.lo_closed
        if other.hi == self.lo:
            return other.hi_closed and self.lo_closed
        return False


def parse_number(text: str) -> Optional[float]:
    """Parse a finite real number, or return None."""
    text = text.strip()
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def split_list(value: str) -> List[str]:
    """Split an ``in`` value on commas, trimming items."""
    return [item.strip() for item in value.split(",")]


def to_intervals(op: str, value: str) -> List[Interval]:
    """Map a condition to numeric intervals.

    Returns an empty list when the value is not numeric or the operator is
    not interval-reducible. For ``in``, non-numeric items are dropped.
    """
    inf = math.inf
    if op == "in":
        points = [parse_number(item) for item in split_list(value)]
        return [Interval(p, p, True, True) for p in points if p is not None]

    v = parse_number(value)
    if v is None:
        return []
    if op == "==":
        return [Interval(v, v, True, True)]
    if op == "!=":
        return [Interval(-inf, v, False, False), Interval(v, inf, False, False)]
    if op == ">":
        return [Interval(v, inf, False, False)]
    if op == ">=":
        return [Interval(v, inf, True, False)]
    if op == "<":
        return [Interval(-inf, v, False, False)]
    if op == "<=":
        return [Interval(-inf, v, False, True)]
    return []


def _intervals_overlap(a: Sequence[Interval], b: Sequence[Interval]) -> bool:
    return any(ia.overlaps(ib) for ia in a for ib in b)


def _as_string_set(op: str, value: str) -> List[str]:
    return split_list(value) if op == "in" else [value]


def conditions_conflict(a: Optional[Condition], b: Optional[Condition]) -> bool:
    """Decide whether an existing condition ``a`` overlaps a candidate ``b``.

    Rules, in order:
        1. Same operator and value (trimmed) conflict.
        2. When both sides reduce to numeric intervals, they conflict iff
           any pair of intervals overlaps.
        3. Otherwise, if either side is ``in`` or ``==``, compare exact
           strings; conflict iff the sets share a non-empty item.
        4. Anything else cannot be proven disjoint and conflicts.

    Different or missing variables never conflict.
    """
    if a is None or b is None:
        return False
    if not a.variable or not b.variable:
        return False
    if a.variable != b.variable:
        return False

    op_a, op_b = a.op.strip(), b.op.strip()
    val_a, val_b = a.value.strip(), b.value.strip()
    if op_a == op_b and val_a == val_b:
        return True

    intervals_a = to_intervals(op_a, val_a) if op_a in NUMERIC_OPS else []
    intervals_b = to_intervals(op_b, val_b) if op_b in NUMERIC_OPS else []
    if intervals_a and intervals_b:
        return _intervals_overlap(intervals_a, intervals_b)

    if op_a in ("in", "==") or op_b in ("in", "=="):
        items_a = _as_string_set(op_a, val_a)
        items_b = _as_string_set(op_b, val_b)
        return any(x and x == y for x in items_a for y in items_b)

    return True


def find_conflicting_edges(
    edges: Sequence[Edge], source: str, condition: Condition
) -> List[Edge]:
    """Sibling edges from ``source`` whose conditions conflict with ``condition``."""
    return [
        e
        for e in edges
        if e.source == source
        and e.condition is not None
        and conditions_conflict(e.condition, condition)
    ]
