"""Dashboard view assembly: stage/month filters, KPI text and the opportunities table."""

import math
from typing import Iterable, Optional

from crm_insights.models.dashboard import DashboardView, OpportunityPage
from crm_insights.models.opportunity import Opportunity
from crm_insights.store.loader import CRMData

from .aggregations import (
    cumulative_by_month,
    lead_status_distribution,
    month_label,
    revenue_by_stage,
    round_whole,
)

PAGE_SIZE = 25
SORT_KEYS = ("amount", "closeDate")


def format_currency(value: float) -> str:
    """Whole-dollar USD: 1234567.8 -> '$1,234,568'."""
    rounded = round_whole(value)
    sign = "-" if rounded < 0 else ""
    return f"{sign}${abs(rounded):,}"


def filter_opportunities(
    opportunities: Iterable[Opportunity],
    *,
    stages: Optional[Iterable[str]] = None,
    stage: Optional[str] = None,
    month: Optional[str] = None,
) -> list[Opportunity]:
    """
    Apply the dashboard filters. stages: selected stage set (None keeps all);
    stage: a single clicked stage; month: a clicked month label like "Jan '24".
    """
    selected = set(stages) if stages is not None else None
    result = []
    for opp in opportunities:
        if selected is not None and opp.stage not in selected:
            continue
        if stage and opp.stage != stage:
            continue
        if month and month_label(opp.close_date) != month:
            continue
        result.append(opp)
    return result


def _kpi_subtitle(
    clicked_stage: Optional[str],
    clicked_month: Optional[str],
    selected_count: int,
    dropdown_filtered: bool,
) -> str:
    if clicked_stage:
        return f"Stage: {clicked_stage}"
    if clicked_month:
        return f"Month: {clicked_month}"
    if dropdown_filtered:
        return f"{selected_count} stage{'' if selected_count == 1 else 's'} selected"
    return "All opportunity stages"


def build_dashboard(
    data: CRMData,
    *,
    selected_stages: Optional[Iterable[str]] = None,
    clicked_stage: Optional[str] = None,
    clicked_month: Optional[str] = None,
) -> DashboardView:
    """
    Project the dataset for one filter state. The stage chart follows the clicked
    month, the cumulative line follows the clicked stage, and the table and KPI
    follow both.
    """
    all_stages = data.stages
    if selected_stages is None:
        selected = list(all_stages)
    else:
        wanted = set(selected_stages)
        selected = [s for s in all_stages if s in wanted]
    base = filter_opportunities(data.opportunities, stages=selected)
    stage_chart = filter_opportunities(base, month=clicked_month)
    line_chart = filter_opportunities(base, stage=clicked_stage)
    table = filter_opportunities(base, stage=clicked_stage, month=clicked_month)

    revenue = sum(o.amount for o in table)
    dropdown_filtered = len(selected) != len(all_stages)
    filtered = dropdown_filtered or bool(clicked_stage) or bool(clicked_month)

    return DashboardView(
        total_accounts=len(data.accounts),
        total_contacts=len(data.contacts),
        total_leads=len(data.leads),
        stages=all_stages,
        selected_stages=selected,
        clicked_stage=clicked_stage,
        clicked_month=clicked_month,
        filtered_revenue=revenue,
        filtered_revenue_display=format_currency(revenue),
        kpi_title="Filtered Pipeline Revenue" if filtered else "Total Pipeline Revenue",
        kpi_subtitle=_kpi_subtitle(clicked_stage, clicked_month, len(selected), dropdown_filtered),
        revenue_by_stage=revenue_by_stage(stage_chart),
        cumulative_by_month=cumulative_by_month(line_chart),
        lead_status=lead_status_distribution(data.leads),
        opportunities=table,
    )


def _date_sort_key(close_date: str) -> int:
    """Y*10000 + M*100 + D; -1 when the date cannot be read."""
    parts = close_date.split("/")
    if len(parts) != 3:
        return -1
    try:
        month, day, year = (int(p.strip() or 0) for p in parts)
    except ValueError:
        return -1
    if year < 100:
        year += 2000
    return year * 10000 + month * 100 + day


def paginate_opportunities(
    opportunities: Iterable[Opportunity],
    *,
    search: str = "",
    sort_key: Optional[str] = None,
    sort_dir: str = "desc",
    page: int = 1,
    page_size: int = PAGE_SIZE,
) -> OpportunityPage:
    """Search (name, stage, close date), optionally sort, and cut one page."""
    q = search.strip().lower()
    rows = [
        o
        for o in opportunities
        if not q
        or q in o.opportunity_name.lower()
        or q in o.stage.lower()
        or q in o.close_date.lower()
    ]

    if sort_key == "amount":
        rows.sort(key=lambda o: o.amount, reverse=sort_dir != "asc")
    elif sort_key == "closeDate":
        rows.sort(key=lambda o: _date_sort_key(o.close_date), reverse=sort_dir != "asc")
    elif sort_key is not None:
        raise ValueError(f"Unknown sort key: {sort_key}. Available: {list(SORT_KEYS)}")

    total = len(rows)
    total_pages = max(1, math.ceil(total / page_size))
    page = min(max(page, 1), total_pages)
    if total == 0:
        return OpportunityPage(rows=[], page=page, total_pages=total_pages, start=0, end=0, total=0)
    start = (page - 1) * page_size + 1
    end = min(page * page_size, total)
    return OpportunityPage(
        rows=rows[start - 1 : end],
        page=page,
        total_pages=total_pages,
        start=start,
        end=end,
        total=total,
    )
