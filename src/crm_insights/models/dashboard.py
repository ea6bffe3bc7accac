"""Chart- and table-ready projections served to the dashboard."""

from typing import Optional

from pydantic import BaseModel, Field

from crm_insights.models.opportunity import Opportunity


class RevenueByStage(BaseModel):
    stage: str
    revenue: int


class CumulativePoint(BaseModel):
    month: str = Field(..., description="e.g. \"Jan '24\"")
    cumulative: int


class LeadStatusCount(BaseModel):
    status: str
    count: int


class OpportunityPage(BaseModel):
    """One page of the opportunities table after search and sort."""

    rows: list[Opportunity] = Field(default_factory=list)
    page: int = 1
    total_pages: int = 1
    start: int = Field(0, description="1-based index of first row shown; 0 when empty")
    end: int = 0
    total: int = 0


class DashboardView(BaseModel):
    """Everything the dashboard page renders for one filter state."""

    total_accounts: int
    total_contacts: int
    total_leads: int
    stages: list[str]
    selected_stages: list[str]
    clicked_stage: Optional[str] = None
    clicked_month: Optional[str] = None
    filtered_revenue: float
    filtered_revenue_display: str
    kpi_title: str
    kpi_subtitle: str
    revenue_by_stage: list[RevenueByStage]
    cumulative_by_month: list[CumulativePoint]
    lead_status: list[LeadStatusCount]
    opportunities: list[Opportunity]
