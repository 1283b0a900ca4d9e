"""Department KPI summaries for safety managers."""

from __future__ import annotations
from typing import TYPE_CHECKING, Any, Mapping, Union
import json

from pydantic import Field, field_validator

from ..models.schema import Schema
from .types import FlowDefinition

if TYPE_CHECKING:
    from .engine import FlowRunner


class KpiSummaryInput(Schema):
    department_name: str = Field(..., min_length=1, description="The name of the department to summarize KPIs for.")
    kpi_data: str = Field(
        ...,
        min_length=1,
        description=(
            "JSON string containing the KPI data for the department. "
            "The keys are the KPI names and the values are the KPI values."
        ),
    )

    @field_validator("kpi_data")
    @classmethod
    def kpi_data_is_json_object(cls, value: str) -> str:
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError as e:
            raise ValueError(f"must be serialized JSON: {e.msg}") from e
        if not isinstance(parsed, dict):
            raise ValueError("must be a JSON object of KPI names to values")
        return value


class KpiSummaryOutput(Schema):
    summary: str = Field(..., min_length=1, description="A summary of the KPIs for the specified department.")


KPI_SUMMARY = FlowDefinition(
    name="kpi_summary",
    input_schema=KpiSummaryInput,
    output_schema=KpiSummaryOutput,
    prompt_ref="kpi/summarize@v1",
    description="Short summary of a department's safety KPIs, highlighting trends and areas needing attention.",
)


async def generate_kpi_summary(runner: FlowRunner, payload: Union[KpiSummaryInput, Mapping[str, Any]]) -> KpiSummaryOutput:
    return await runner.execute(KPI_SUMMARY, payload)
