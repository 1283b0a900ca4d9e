"""
Server actions that run the safety flows.

Each endpoint takes the raw JSON body so the flow's own input schema does the
validation; failures come back with the failure kind as ``error_code``.
"""

import logging
from typing import Any, Awaitable, Callable, Dict

from fastapi import APIRouter, Body, Depends, HTTPException

from ..models.actions import FlowActionResponse
from ..models.common import APIError
from ..dependencies.runtime import get_flow_runner
from safetyflows.errors import FailureKind, FlowError
from safetyflows.flows.engine import FlowRunner
from safetyflows.flows.investigation_analysis import INVESTIGATION_ANALYSIS, analyze_investigation
from safetyflows.flows.jsa_analysis import JSA_ANALYSIS, analyze_jsa
from safetyflows.flows.kpi_summary import KPI_SUMMARY, generate_kpi_summary
from safetyflows.flows.toolbox_talk import TOOLBOX_TALK, generate_toolbox_talk
from safetyflows.models.schema import Schema

logger = logging.getLogger(__name__)

router = APIRouter()

STATUS_BY_KIND = {
    FailureKind.INVALID_INPUT: 422,
    FailureKind.TEMPLATE_ERROR: 500,
    FailureKind.MODEL_INVOCATION_ERROR: 502,
    FailureKind.EMPTY_MODEL_OUTPUT: 502,
    FailureKind.INVALID_MODEL_OUTPUT: 502,
}

GENERIC_FAILURE = "The AI assistant could not complete this request. Please try again later."


def _error_body(failure: FlowError) -> Dict[str, Any]:
    message = "The request is missing or has invalid fields." if failure.kind is FailureKind.INVALID_INPUT else GENERIC_FAILURE
    error = APIError(error=message, error_code=failure.kind.value, details=failure.to_dict())
    return error.model_dump(mode="json")


async def _run(
    flow_name: str,
    action: Callable[[FlowRunner, Any], Awaitable[Schema]],
    runner: FlowRunner,
    payload: Any,
) -> FlowActionResponse:
    try:
        output = await action(runner, payload)
    except FlowError as failure:
        raise HTTPException(status_code=STATUS_BY_KIND[failure.kind], detail=_error_body(failure)) from failure

    return FlowActionResponse(
        success=True,
        message=f"{flow_name} completed",
        flow=flow_name,
        data=output.model_dump(by_alias=True),
    )


@router.post("/kpi-summary", response_model=FlowActionResponse)
async def kpi_summary_action(
    payload: Any = Body(...),
    runner: FlowRunner = Depends(get_flow_runner),
):
    """Summarize a department's KPI data."""
    return await _run(KPI_SUMMARY.name, generate_kpi_summary, runner, payload)


@router.post("/investigation-analysis", response_model=FlowActionResponse)
async def investigation_analysis_action(
    payload: Any = Body(...),
    runner: FlowRunner = Depends(get_flow_runner),
):
    """Analyze an incident for root cause, contributing factors and an action plan."""
    return await _run(INVESTIGATION_ANALYSIS.name, analyze_investigation, runner, payload)


@router.post("/jsa-analysis", response_model=FlowActionResponse)
async def jsa_analysis_action(
    payload: Any = Body(...),
    runner: FlowRunner = Depends(get_flow_runner),
):
    """Review a Job Safety Analysis."""
    return await _run(JSA_ANALYSIS.name, analyze_jsa, runner, payload)


@router.post("/toolbox-talk", response_model=FlowActionResponse)
async def toolbox_talk_action(
    payload: Any = Body(...),
    runner: FlowRunner = Depends(get_flow_runner),
):
    """Generate toolbox-talk content for a topic."""
    return await _run(TOOLBOX_TALK.name, generate_toolbox_talk, runner, payload)
