"""Loading the four CRM exports into an immutable, memoized dataset."""

import csv
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Sequence

from crm_insights.models.opportunity import Opportunity, order_stages

from .parsers import normalize_opportunity, parse_csv

logger = logging.getLogger(__name__)

Record = Mapping[str, object]

DEFAULT_FILES: dict[str, str] = {
    "accounts": "Accounts.csv",
    "contacts": "Contacts.csv",
    "leads": "Leads.csv",
    "opportunities": "Opportunites.csv",
}


class DataLoadError(RuntimeError):
    """A source file is missing or unreadable; no partial dataset is produced."""


class InvalidEntityError(ValueError):
    """Query named an entity that is not one of the four CRM collections."""


@dataclass(frozen=True)
class CRMData:
    """Read-only snapshot of the four CRM collections."""

    opportunities: tuple[Opportunity, ...] = ()
    leads: tuple[Record, ...] = ()
    accounts: tuple[Record, ...] = ()
    contacts: tuple[Record, ...] = ()
    _opportunity_records: tuple[Record, ...] = field(default=(), init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        records = tuple(MappingProxyType(o.as_record()) for o in self.opportunities)
        object.__setattr__(self, "_opportunity_records", records)

    @classmethod
    def from_rows(
        cls,
        *,
        opportunities: Sequence[Mapping[str, str]] = (),
        leads: Sequence[Mapping[str, str]] = (),
        accounts: Sequence[Mapping[str, str]] = (),
        contacts: Sequence[Mapping[str, str]] = (),
    ) -> "CRMData":
        """Build from raw string rows; opportunity rows are normalized."""
        return cls(
            opportunities=tuple(normalize_opportunity(r) for r in opportunities),
            leads=_freeze(leads),
            accounts=_freeze(accounts),
            contacts=_freeze(contacts),
        )

    def records(self, entity: str) -> tuple[Record, ...]:
        """Row mappings for an entity; opportunities under their camelCase names."""
        if entity == "opportunities":
            return self._opportunity_records
        if entity == "leads":
            return self.leads
        if entity == "accounts":
            return self.accounts
        if entity == "contacts":
            return self.contacts
        raise InvalidEntityError(
            f"Unknown entity: {entity}. Available: {list(DEFAULT_FILES.keys())}"
        )

    @property
    def stages(self) -> list[str]:
        """Stages present in the data, canonical order first, de-duplicated."""
        return order_stages([o.stage for o in self.opportunities])


def _freeze(rows: Iterable[Mapping[str, str]]) -> tuple[Record, ...]:
    return tuple(MappingProxyType({k: (v or "").strip() for k, v in r.items()}) for r in rows)


def _read_csv(path: Path) -> list[dict[str, str]]:
    try:
        return parse_csv(path.read_text(encoding="utf-8-sig"))
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise DataLoadError(f"Could not read {path}: {e}") from e


def load_crm_data(data_dir: str | Path, files: Optional[Mapping[str, str]] = None) -> CRMData:
    """
    Read and parse all four exports from data_dir.
    Any missing or unreadable file aborts the whole load with DataLoadError.
    """
    data_dir = Path(data_dir)
    names = {**DEFAULT_FILES, **(files or {})}
    rows = {entity: _read_csv(data_dir / filename) for entity, filename in names.items()}
    data = CRMData.from_rows(**rows)
    logger.info(
        "Loaded CRM data from %s: %d opportunities, %d leads, %d accounts, %d contacts",
        data_dir,
        len(data.opportunities),
        len(data.leads),
        len(data.accounts),
        len(data.contacts),
    )
    return data


class CRMDataStore:
    """
    Explicit, injectable holder for the dataset.
    The first load() reads from disk; later calls return the same snapshot.
    Concurrent first loads are serialized so the files are read once.
    """

    def __init__(self, data_dir: str | Path = "data", files: Optional[Mapping[str, str]] = None):
        self._data_dir = Path(data_dir)
        self._files = dict(files or {})
        self._data: Optional[CRMData] = None
        self._lock = threading.Lock()

    @classmethod
    def from_data(cls, data: CRMData) -> "CRMDataStore":
        """Store pre-populated with a fixture dataset (never touches disk)."""
        store = cls()
        store._data = data
        return store

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    @property
    def loaded(self) -> bool:
        return self._data is not None

    def load(self) -> CRMData:
        """Return the snapshot, loading it on first use."""
        if self._data is not None:
            return self._data
        with self._lock:
            if self._data is None:
                self._data = load_crm_data(self._data_dir, self._files)
        return self._data
