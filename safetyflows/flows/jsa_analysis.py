"""Review of Job Safety Analyses (JSAs)."""

from __future__ import annotations
from typing import TYPE_CHECKING, Any, List, Mapping, Union

from pydantic import Field

from ..models.schema import Schema
from .types import FlowDefinition

if TYPE_CHECKING:
    from .engine import FlowRunner


class JsaStep(Schema):
    #both stepDescription and step_description are accepted; the JSA page sends snake_case
    step_description: str = Field(..., min_length=1, description="The description of a single job step.")
    hazards: str = Field(..., description="The identified potential hazards for this step, as a comma-separated string.")
    controls: str = Field(..., description="The control measures to mitigate the hazards for this step, as a comma-separated string.")


class JsaAnalysisInput(Schema):
    title: str = Field(..., min_length=1, description="The title of the Job Safety Analysis.")
    job_description: str = Field(..., min_length=1, description="The overall description of the job.")
    required_ppe: str = Field(..., description="A comma-separated list of required Personal Protective Equipment (PPE).")
    steps: List[JsaStep] = Field(
        ...,
        min_length=1,
        description="The job steps, including their descriptions, hazards, and controls.",
    )


class JsaAnalysisOutput(Schema):
    analysis: str = Field(
        ...,
        min_length=1,
        description=(
            "A comprehensive analysis and review of the JSA, including potential improvements, "
            "missed hazards, or suggested additional controls."
        ),
    )


JSA_ANALYSIS = FlowDefinition(
    name="jsa_analysis",
    input_schema=JsaAnalysisInput,
    output_schema=JsaAnalysisOutput,
    prompt_ref="jsa/review@v1",
    description="Completeness, clarity, control effectiveness and PPE review of a JSA.",
)


async def analyze_jsa(runner: FlowRunner, payload: Union[JsaAnalysisInput, Mapping[str, Any]]) -> JsaAnalysisOutput:
    return await runner.execute(JSA_ANALYSIS, payload)
