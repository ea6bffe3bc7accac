"""Pytest fixtures for crm-insights tests."""

import csv
from io import StringIO
from pathlib import Path
from typing import Any, Callable, Optional

import pytest

from crm_insights.llm.base import BaseReasoningService, Message
from crm_insights.config import Settings
from crm_insights.models.chat import ModelTurn, TextBlock, ToolUseBlock
from crm_insights.store import CRMData


def _build_csv(rows: list[dict]) -> str:
    """Build CSV string from list of row dicts."""
    if not rows:
        return ""
    out = StringIO()
    writer = csv.DictWriter(out, fieldnames=rows[0].keys())
    writer.writeheader()
    writer.writerows(rows)
    return out.getvalue()


OPPORTUNITY_ROWS = [
    {
        "CompanEXTID": "C-1",
        "Oppurtunity Name": "Acme rollout",
        "Project Name": "",
        "Amount": "$100.00",
        "Stage": "Closed Won",
        "Close Date": "1/15/24",
    },
    {
        "CompanEXTID": "C-2",
        "Oppurtunity Name": "",
        "Project Name": "Globex pilot",
        "Amount": "$250.50",
        "Stage": "Closed Won",
        "Close Date": "2/3/2024",
    },
    {
        "CompanEXTID": "C-3",
        "Oppurtunity Name": "Initech renewal",
        "Project Name": "",
        "Amount": "TBD",
        "Stage": "Closed Won",
        "Close Date": "2/20/24",
    },
    {
        "CompanEXTID": "C-4",
        "Oppurtunity Name": "Umbrella expansion",
        "Project Name": "",
        "Amount": "$1,200",
        "Stage": "Discovery",
        "Close Date": "3/1/24",
    },
    {
        "CompanEXTID": "C-5",
        "Oppurtunity Name": "Hooli migration",
        "Project Name": "",
        "Amount": "$5,000",
        "Stage": "Closed Lost",
        "Close Date": "not a date",
    },
    {
        "CompanEXTID": "C-6",
        "Oppurtunity Name": "Stark retrofit",
        "Project Name": "",
        "Amount": "$300",
        "Stage": "Proposal Sent",
        "Close Date": "1/30/24",
    },
]

LEAD_ROWS = [
    {"First Name": "Ada", "Last Name": "Lovelace", "Company": "Acme", "Lead Status": "Working"},
    {"First Name": "Alan", "Last Name": "Turing", "Company": "Globex", "Lead Status": "working"},
    {"First Name": "Grace", "Last Name": "Hopper", "Company": "Initech", "Lead Status": " "},
    {"First Name": "Linus", "Last Name": "Torvalds", "Company": "Hooli", "Lead Status": "New"},
]

ACCOUNT_ROWS = [
    {"Company Name": "Acme", "City": "San Diego", "State": "CA"},
    {"Company Name": "Globex", "City": "Austin", "State": "TX"},
    {"Company Name": "Initech", "City": "Fresno", "State": "CA"},
]

CONTACT_ROWS = [
    {"first_name": "Wile", "last_name": "Coyote", "email": "wile@acme.test"},
    {"first_name": "Hank", "last_name": "Scorpio", "email": "hank@globex.test"},
]


@pytest.fixture
def crm_data() -> CRMData:
    """In-memory dataset covering every entity."""
    return CRMData.from_rows(
        opportunities=OPPORTUNITY_ROWS,
        leads=LEAD_ROWS,
        accounts=ACCOUNT_ROWS,
        contacts=CONTACT_ROWS,
    )


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """Directory with the four CSV exports written from the fixture rows."""
    (tmp_path / "Opportunites.csv").write_text(_build_csv(OPPORTUNITY_ROWS))
    (tmp_path / "Leads.csv").write_text(_build_csv(LEAD_ROWS))
    (tmp_path / "Accounts.csv").write_text(_build_csv(ACCOUNT_ROWS))
    (tmp_path / "Contacts.csv").write_text(_build_csv(CONTACT_ROWS))
    return tmp_path


def text_turn(text: str, stop_reason: str = "end_turn") -> ModelTurn:
    return ModelTurn(stop_reason=stop_reason, content=[TextBlock(text=text)] if text else [])


def tool_turn(*inputs: dict[str, Any], name: str = "query_crm") -> ModelTurn:
    return ModelTurn(
        stop_reason="tool_use",
        content=[ToolUseBlock(id=f"toolu_{i}", name=name, input=inp) for i, inp in enumerate(inputs)],
    )


class ScriptedService(BaseReasoningService):
    """
    Reasoning service double. Plays back scripted turns in order; when a
    responder callable is given it is asked for every turn instead.
    Records a copy of the transcript it was sent on each call.
    """

    service_id = "scripted"

    def __init__(
        self,
        turns: Optional[list[ModelTurn]] = None,
        responder: Optional[Callable[[list[Message]], ModelTurn]] = None,
    ):
        super().__init__(Settings())
        self._turns = list(turns or [])
        self._responder = responder
        self.calls: list[list[Message]] = []
        self.tools_seen: list[list[dict]] = []
        self.systems_seen: list[str] = []

    def create(self, system: str, tools: list[dict], messages: list[Message]) -> ModelTurn:
        self.calls.append(list(messages))
        self.tools_seen.append(tools)
        self.systems_seen.append(system)
        if self._responder is not None:
            return self._responder(messages)
        return self._turns.pop(0)


@pytest.fixture
def always_tool_use_service() -> ScriptedService:
    """Service that asks for another count query on every round."""
    return ScriptedService(
        responder=lambda _messages: tool_turn({"entity": "leads", "operation": "count"})
    )
