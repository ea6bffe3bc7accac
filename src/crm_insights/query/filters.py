"""Filter predicates over loosely-typed CRM rows."""

import math
from datetime import date
from typing import Mapping, Optional, Sequence

from crm_insights.models.query import FilterCondition
from crm_insights.store.parsers import parse_number

NUMERIC_FIELDS = frozenset({"amount"})
DATE_FIELDS = frozenset({"closeDate", "Close Date"})

_ORDERED_OPS = ("eq", "neq", "gte", "lte")


def display_value(value: object) -> str:
    """String form of a cell; whole floats render without a trailing .0."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def to_number(value: object) -> float:
    """Numeric value of a cell: numbers as-is, strings currency-stripped; NaN otherwise."""
    if isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else math.nan
    if isinstance(value, str):
        return parse_number(value)
    return math.nan


def parse_query_date(raw: str) -> Optional[date]:
    """Parse M/D/Y (2-digit years are 20xx). None when unparseable or not a real date."""
    parts = raw.strip().split("/")
    if len(parts) != 3:
        return None
    try:
        month, day, year = (int(p.strip()) for p in parts)
    except ValueError:
        return None
    if year < 100:
        year += 2000
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _compare(op: str, left, right) -> bool:
    if op == "eq":
        return left == right
    if op == "neq":
        return left != right
    if op == "gte":
        return left >= right
    return left <= right


def matches_filter(row: Mapping[str, object], cond: FilterCondition) -> bool:
    """
    Evaluate one condition against a row. Never raises for bad values:
    an unparseable comparison value means the row does not match.
    Missing fields compare as "".
    """
    cell = row.get(cond.field)
    raw = display_value(cell)
    op = cond.op

    # contains/not_contains on numeric and date fields fall through to text matching
    if cond.field in NUMERIC_FIELDS and op in _ORDERED_OPS:
        cmp_num = parse_number(cond.value)
        if math.isnan(cmp_num):
            return False
        num = to_number(cell)
        if math.isnan(num):
            num = 0.0
        return _compare(op, num, cmp_num)

    if cond.field in DATE_FIELDS and op in _ORDERED_OPS:
        left = parse_query_date(raw)
        right = parse_query_date(cond.value)
        if left is None or right is None:
            return False
        return _compare(op, left, right)

    text = raw.lower()
    needle = cond.value.lower()
    if op == "contains":
        return needle in text
    if op == "not_contains":
        return needle not in text
    return _compare(op, text, needle)


def apply_filters(
    rows: Sequence[Mapping[str, object]],
    filters: Optional[Sequence[FilterCondition]] = None,
) -> list[Mapping[str, object]]:
    """Rows passing every condition (AND); no filters keeps everything."""
    if not filters:
        return list(rows)
    return [row for row in rows if all(matches_filter(row, f) for f in filters)]
