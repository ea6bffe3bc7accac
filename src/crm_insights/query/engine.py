"""Query engine: evaluates structured query_crm requests against the CRM snapshot."""

import logging
import math
from typing import Any, Mapping, Union

from crm_insights.models.query import (
    AggregateResult,
    CountResult,
    DistributionBucket,
    DistributionResult,
    ListResult,
    PercentileResult,
    QueryError,
    QueryInput,
    QueryResult,
)
from crm_insights.store.loader import CRMData

from .filters import apply_filters, display_value, to_number

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 20
MAX_LIST_LIMIT = 100
EMPTY_GROUP = "(empty)"


def round2(value: float) -> float:
    """Round half up to 2 decimal places. Magnitudes too large to scale are returned as-is."""
    scaled = value * 100
    if not math.isfinite(scaled):
        return value
    return math.floor(scaled + 0.5) / 100


def _numeric_sample(rows: list[Mapping[str, object]], field: str) -> list[float]:
    """Numeric values of field; non-numeric cells are dropped."""
    values = (to_number(row.get(field)) for row in rows)
    return [v for v in values if not math.isnan(v)]


class QueryEngine:
    """
    Read-only evaluator over one CRMData snapshot.
    Parameter problems come back as QueryError results so the caller can retry;
    only an unknown entity (or input failing validation) raises.
    """

    def __init__(self, data: CRMData):
        self.data = data

    def execute(self, query: Union[QueryInput, Mapping[str, Any]]) -> QueryResult:
        """Run one query and return the result variant for its operation."""
        if not isinstance(query, QueryInput):
            query = QueryInput.model_validate(query)

        rows = apply_filters(self.data.records(query.entity), query.filters)
        logger.debug(
            "query_crm %s/%s: %d rows matched %d filters",
            query.entity,
            query.operation,
            len(rows),
            len(query.filters),
        )

        op = query.operation
        if op == "count":
            return CountResult(result=len(rows))
        if op in ("sum", "avg", "min", "max"):
            return self._aggregate(op, rows, query)
        if op == "percentile":
            return self._percentile(rows, query)
        if op == "distribution":
            return self._distribution(rows, query)
        if op == "list":
            return self._list(rows, query)
        return QueryError(error=f"Unknown operation: {op}")

    def _aggregate(self, op: str, rows: list, query: QueryInput) -> QueryResult:
        field = query.field
        if not field:
            return QueryError(error=f"'field' is required for operation '{op}'")
        nums = _numeric_sample(rows, field)
        if not nums:
            return AggregateResult(operation=op, result=None, field=field)
        if op == "sum":
            value = sum(nums)
        elif op == "min":
            value = min(nums)
        elif op == "max":
            value = max(nums)
        else:
            value = sum(nums) / len(nums)
        if not math.isfinite(value):
            logger.warning("query_crm %s of %s overflowed", op, field)
            return QueryError(error=f"Result of '{op}' on '{field}' is out of numeric range")
        return AggregateResult(operation=op, result=round2(value), field=field)

    def _percentile(self, rows: list, query: QueryInput) -> QueryResult:
        field = query.field
        if not field:
            return QueryError(error="'field' is required for percentile")
        p = query.percentile_value
        if p is None or not 0 <= p <= 100:
            return QueryError(error="'percentile_value' must be between 0 and 100")
        nums = sorted(_numeric_sample(rows, field))
        if not nums:
            return PercentileResult(result=None, field=field, percentile=p)
        idx = max(0, math.ceil(p / 100 * len(nums)) - 1)
        return PercentileResult(result=round2(nums[idx]), field=field, percentile=p)

    def _distribution(self, rows: list, query: QueryInput) -> QueryResult:
        group_field = query.group_by
        if not group_field:
            return QueryError(error="'group_by' is required for distribution")
        counts: dict[str, int] = {}
        for row in rows:
            key = display_value(row.get(group_field)).strip() or EMPTY_GROUP
            counts[key] = counts.get(key, 0) + 1
        # sorted() is stable: ties keep first-seen order
        buckets = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
        return DistributionResult(
            result=[DistributionBucket(value=k, count=c) for k, c in buckets]
        )

    def _list(self, rows: list, query: QueryInput) -> QueryResult:
        limit = query.limit if query.limit is not None else DEFAULT_LIST_LIMIT
        limit = max(0, min(limit, MAX_LIST_LIMIT))
        return ListResult(
            result=[dict(row) for row in rows[:limit]],
            total_matched=len(rows),
        )


def execute_query(data: CRMData, query: Union[QueryInput, Mapping[str, Any]]) -> QueryResult:
    """Convenience wrapper: evaluate one query against data."""
    return QueryEngine(data).execute(query)
