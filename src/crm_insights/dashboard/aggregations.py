"""Pre-aggregated chart data computed directly from the opportunity and lead collections."""

import math
from typing import Iterable, Mapping, Optional

from crm_insights.models.dashboard import CumulativePoint, LeadStatusCount, RevenueByStage
from crm_insights.models.opportunity import STAGE_ORDER, Opportunity

MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
LEAD_STATUS_FIELD = "Lead Status"
UNKNOWN_STATUS = "Unknown"


def round_whole(value: float) -> int:
    """Round half up to a whole unit; a total that overflowed to infinity reports as 0."""
    if not math.isfinite(value):
        return 0
    return math.floor(value + 0.5)


def parse_month_key(close_date: str) -> Optional[tuple[str, int]]:
    """
    Map an M/D/Y close date to ("Jan '24", 202401).
    Returns None for dates without three parts or with a bad month/year.
    """
    parts = (close_date or "").split("/")
    if len(parts) < 3:
        return None
    try:
        month = int(parts[0].strip())
        year = int(parts[2].strip())
    except ValueError:
        return None
    if not 1 <= month <= 12:
        return None
    if year < 100:
        year += 2000
    label = f"{MONTH_NAMES[month - 1]} '{str(year)[-2:]}"
    return label, year * 100 + month


def month_label(close_date: str) -> Optional[str]:
    key = parse_month_key(close_date)
    return key[0] if key else None


def revenue_by_stage(opportunities: Iterable[Opportunity]) -> list[RevenueByStage]:
    """Sum amount per stage; canonical stages first, then the rest (blank included) in first-seen order."""
    totals: dict[str, float] = {}
    for opp in opportunities:
        totals[opp.stage] = totals.get(opp.stage, 0.0) + opp.amount
    ordered = [s for s in STAGE_ORDER if s in totals]
    ordered += [s for s in totals if s not in STAGE_ORDER]
    return [RevenueByStage(stage=s, revenue=round_whole(totals[s])) for s in ordered]


def cumulative_by_month(opportunities: Iterable[Opportunity]) -> list[CumulativePoint]:
    """Running total of amount by close month, chronological; undated opportunities dropped."""
    months: dict[str, list] = {}
    for opp in opportunities:
        key = parse_month_key(opp.close_date)
        if key is None:
            continue
        label, sort_key = key
        entry = months.setdefault(label, [sort_key, 0.0])
        entry[1] += opp.amount

    points: list[CumulativePoint] = []
    running = 0.0
    for label, (_, amount) in sorted(months.items(), key=lambda kv: kv[1][0]):
        running += amount
        points.append(CumulativePoint(month=label, cumulative=round_whole(running)))
    return points


def normalize_status(raw: Optional[str]) -> str:
    """'working' / 'WORKING' -> 'Working'; blank -> 'Unknown'."""
    status = (raw or "").strip()
    if not status:
        return UNKNOWN_STATUS
    return status[0].upper() + status[1:].lower()


def lead_status_distribution(leads: Iterable[Mapping[str, object]]) -> list[LeadStatusCount]:
    """Count leads per normalized status, in first-seen order."""
    counts: dict[str, int] = {}
    for lead in leads:
        status = normalize_status(str(lead.get(LEAD_STATUS_FIELD) or ""))
        counts[status] = counts.get(status, 0) + 1
    return [LeadStatusCount(status=s, count=c) for s, c in counts.items()]
