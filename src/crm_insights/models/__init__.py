"""Data models for CRM records, queries, chat turns and dashboard projections."""

from crm_insights.models.chat import ChatMessage, ModelTurn, TextBlock, ToolUseBlock
from crm_insights.models.dashboard import (
    CumulativePoint,
    DashboardView,
    LeadStatusCount,
    OpportunityPage,
    RevenueByStage,
)
from crm_insights.models.opportunity import STAGE_ORDER, Opportunity, order_stages
from crm_insights.models.query import (
    AggregateResult,
    CountResult,
    DistributionBucket,
    DistributionResult,
    FilterCondition,
    ListResult,
    PercentileResult,
    QueryError,
    QueryInput,
    QueryResult,
)

__all__ = [
    "AggregateResult",
    "ChatMessage",
    "CountResult",
    "CumulativePoint",
    "DashboardView",
    "DistributionBucket",
    "DistributionResult",
    "FilterCondition",
    "LeadStatusCount",
    "ListResult",
    "ModelTurn",
    "Opportunity",
    "OpportunityPage",
    "PercentileResult",
    "QueryError",
    "QueryInput",
    "QueryResult",
    "RevenueByStage",
    "STAGE_ORDER",
    "TextBlock",
    "ToolUseBlock",
    "order_stages",
]
