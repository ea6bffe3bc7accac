"""Parsing utilities for the CRM CSV exports."""

import csv
import math
from io import StringIO
from typing import Mapping, Optional

from crm_insights.models.opportunity import Opportunity

# Opportunity export column names (spelling as found in the export)
COMPANY_ID = "CompanEXTID"
AMOUNT = "Amount"
OPPORTUNITY_NAME = "Oppurtunity Name"
PROJECT_NAME = "Project Name"
STAGE = "Stage"
CLOSE_DATE = "Close Date"

_CURRENCY_CHARS = str.maketrans("", "", "$, \t\r\n")


def parse_csv(content: str) -> list[dict[str, str]]:
    """
    Parse CSV text with a header row into trimmed string rows.
    Blank lines are skipped; missing trailing cells become ""; extra cells are dropped.
    """
    reader = csv.reader(StringIO(content.strip()))
    header: Optional[list[str]] = None
    rows: list[dict[str, str]] = []
    for cells in reader:
        if not any(c.strip() for c in cells):
            continue
        if header is None:
            header = [h.strip() for h in cells]
            continue
        rows.append(
            {name: (cells[i].strip() if i < len(cells) else "") for i, name in enumerate(header)}
        )
    return rows


def strip_currency(raw: str) -> str:
    """Remove $, thousands separators and whitespace."""
    return raw.translate(_CURRENCY_CHARS)


def parse_number(raw: Optional[str]) -> float:
    """Currency-stripped float; NaN when unparseable or not finite."""
    if raw is None:
        return math.nan
    try:
        value = float(strip_currency(raw))
    except ValueError:
        return math.nan
    return value if math.isfinite(value) else math.nan


def parse_amount(raw: Optional[str]) -> float:
    """Load-time amount parse: unparseable or non-finite values become 0."""
    value = parse_number(raw)
    return value if math.isfinite(value) else 0.0


def normalize_opportunity(row: Mapping[str, str]) -> Opportunity:
    """Project a raw opportunity row onto the typed Opportunity shape."""
    return Opportunity(
        company_id=row.get(COMPANY_ID) or "",
        amount=parse_amount(row.get(AMOUNT) or "0"),
        opportunity_name=row.get(OPPORTUNITY_NAME) or row.get(PROJECT_NAME) or "",
        stage=row.get(STAGE) or "",
        close_date=row.get(CLOSE_DATE) or "",
    )
