"""
Incident investigation analysis.

The model receives the incident record and, when the caller has it, a short
history of similar past incidents. ``format_similar_incidents`` builds that
history from incident records the caller already loaded; the flow itself never
queries storage.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional, Union

from pydantic import ConfigDict, Field

from ..models.schema import Schema
from .types import FlowDefinition

if TYPE_CHECKING:
    from .engine import FlowRunner


class InvestigationAnalysisInput(Schema):
    incident_description: str = Field(..., min_length=1, description="The detailed description of the incident being investigated.")
    incident_type: str = Field(..., min_length=1, description="The type of incident (e.g., Accident, Incident).")
    incident_severity: str = Field(..., min_length=1, description="The severity of the incident (e.g., Low, Medium, High).")
    incident_area: str = Field(..., min_length=1, description="The area where the incident occurred.")
    similar_incidents: Optional[str] = Field(
        None,
        description="Summary of similar past incidents, as produced by format_similar_incidents.",
    )


class InvestigationAnalysisOutput(Schema):
    root_cause: str = Field(..., min_length=1, description="The determined primary root cause of the incident.")
    contributing_factors: str = Field(..., min_length=1, description="A list of factors that contributed to the incident.")
    events_history: str = Field(..., min_length=1, description="A chronological history of events leading to the incident.")
    lessons_learned: str = Field(..., min_length=1, description="Key lessons learned from this incident.")
    action_plan: str = Field(..., min_length=1, description="A recommended action plan to prevent recurrence.")


class IncidentRecord(Schema):
    #stored incidents carry more fields than the summary needs
    model_config = ConfigDict(extra="ignore")

    incident_id: str
    description: str
    severity: str = ""


INVESTIGATION_ANALYSIS = FlowDefinition(
    name="investigation_analysis",
    input_schema=InvestigationAnalysisInput,
    output_schema=InvestigationAnalysisOutput,
    prompt_ref="investigation/analyze@v1",
    description="Root cause, contributing factors, event history, lessons learned and action plan for an incident.",
)


def format_similar_incidents(query: str, incidents: Iterable[Union[IncidentRecord, Mapping[str, Any]]]) -> str:
    """Summarize past incidents whose description contains ``query`` (case-insensitive)."""
    needle = query.lower()
    records = [i if isinstance(i, IncidentRecord) else IncidentRecord.model_validate(i) for i in incidents]
    similar = [r for r in records if needle in r.description.lower()]
    if not similar:
        return "No similar incidents found in the database."

    lines = [
        f'Incident ID {r.incident_id}: "{r.description}" (Severity: {r.severity})'
        for r in similar
    ]
    return f"Found {len(similar)} similar incidents:\n" + "\n".join(lines)


async def analyze_investigation(
    runner: FlowRunner, payload: Union[InvestigationAnalysisInput, Mapping[str, Any]]
) -> InvestigationAnalysisOutput:
    return await runner.execute(INVESTIGATION_ANALYSIS, payload)
