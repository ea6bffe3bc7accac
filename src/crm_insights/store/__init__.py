"""In-memory CRM dataset loaded from CSV exports."""

from crm_insights.store.loader import (
    CRMData,
    CRMDataStore,
    DataLoadError,
    InvalidEntityError,
    load_crm_data,
)
from crm_insights.store.parsers import normalize_opportunity, parse_amount, parse_csv

__all__ = [
    "CRMData",
    "CRMDataStore",
    "DataLoadError",
    "InvalidEntityError",
    "load_crm_data",
    "normalize_opportunity",
    "parse_amount",
    "parse_csv",
]
