"""Structured CRM query engine and its tool schema."""

from crm_insights.store.loader import InvalidEntityError

from .engine import QueryEngine, execute_query
from .filters import apply_filters, matches_filter
from .schema import QUERY_CRM_TOOL, TOOL_NAME

__all__ = [
    "InvalidEntityError",
    "QUERY_CRM_TOOL",
    "QueryEngine",
    "TOOL_NAME",
    "apply_filters",
    "execute_query",
    "matches_filter",
]
