"""Normalized opportunity model and canonical stage ordering."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Canonical pipeline order; unrecognized stages are kept and appended after these
STAGE_ORDER: tuple[str, ...] = (
    "Introduction",
    "Discovery",
    "Specification",
    "Estimate/Quote",
    "Finalize/Negotiate",
    "Closed Won",
    "Closed Lost",
)


class Opportunity(BaseModel):
    """
    Opportunity row normalized at load time.
    Serialized (and queried) under camelCase names: companyId, amount,
    opportunityName, stage, closeDate.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    company_id: str = ""
    amount: float = Field(default=0.0, description="Parsed currency amount; 0 when unparseable")
    opportunity_name: str = ""
    stage: str = ""
    close_date: str = Field(default="", description="M/D/Y with a 2- or 4-digit year")

    def as_record(self) -> dict[str, object]:
        """Row mapping keyed by the camelCase field names used in queries."""
        return self.model_dump(by_alias=True)


def order_stages(stages: list[str]) -> list[str]:
    """Canonical stages first (when present), then unknown stages in first-seen order."""
    present = [s for s in stages if s]
    ordered = [s for s in STAGE_ORDER if s in present]
    for stage in present:
        if stage not in ordered:
            ordered.append(stage)
    return ordered
