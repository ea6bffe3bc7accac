"""Dashboard aggregations and view projections."""

from .aggregations import (
    cumulative_by_month,
    lead_status_distribution,
    normalize_status,
    parse_month_key,
    revenue_by_stage,
)
from .view import build_dashboard, filter_opportunities, format_currency, paginate_opportunities

__all__ = [
    "build_dashboard",
    "cumulative_by_month",
    "filter_opportunities",
    "format_currency",
    "lead_status_distribution",
    "normalize_status",
    "paginate_opportunities",
    "parse_month_key",
    "revenue_by_stage",
]
