"""Structured query input and the per-operation result variants."""

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

ENTITIES: tuple[str, ...] = ("opportunities", "leads", "accounts", "contacts")
OPERATIONS: tuple[str, ...] = (
    "list",
    "count",
    "sum",
    "avg",
    "min",
    "max",
    "percentile",
    "distribution",
)
FilterOp = Literal["eq", "neq", "gte", "lte", "contains", "not_contains"]


class FilterCondition(BaseModel):
    """One filter predicate; a query's filters are ANDed together."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    field: str
    op: FilterOp
    value: str


class QueryInput(BaseModel):
    """
    Tool-call input for query_crm.
    entity and operation stay plain strings so unknown values reach the engine,
    which reports them instead of failing validation.
    """

    entity: str
    operation: str
    field: Optional[str] = None
    filters: list[FilterCondition] = Field(default_factory=list)
    group_by: Optional[str] = None
    percentile_value: Optional[float] = None
    limit: Optional[int] = None

    @field_validator("filters", mode="before")
    @classmethod
    def _null_filters(cls, v):
        """A null filter list matches everything, same as an absent one."""
        return [] if v is None else v


class _Result(BaseModel):
    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict sent back to the model as the tool result."""
        return self.model_dump(mode="json")


class CountResult(_Result):
    operation: Literal["count"] = "count"
    result: int


class AggregateResult(_Result):
    operation: Literal["sum", "avg", "min", "max"]
    result: Optional[float]
    field: str


class PercentileResult(_Result):
    operation: Literal["percentile"] = "percentile"
    result: Optional[float]
    field: str
    percentile: float


class DistributionBucket(BaseModel):
    value: str
    count: int


class DistributionResult(_Result):
    operation: Literal["distribution"] = "distribution"
    result: list[DistributionBucket]


class ListResult(_Result):
    operation: Literal["list"] = "list"
    result: list[dict[str, Any]]
    total_matched: int


class QueryError(_Result):
    """Recoverable problem with the query parameters, reported to the caller."""

    error: str


QueryResult = Union[
    CountResult,
    AggregateResult,
    PercentileResult,
    DistributionResult,
    ListResult,
    QueryError,
]
