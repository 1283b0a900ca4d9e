"""
Health check endpoints.
"""

import time
from fastapi import APIRouter, Depends

from ..models.common import HealthStatus
from ..dependencies.runtime import get_flow_runner
from safetyflows import __version__
from safetyflows.flows.engine import FlowRunner

router = APIRouter()

# Track server start time for uptime calculation
_server_start_time = time.time()


@router.get("/", response_model=HealthStatus)
async def health_check(runner: FlowRunner = Depends(get_flow_runner)):
    """Catalog contents and per-flow model call statistics."""
    get_stats = getattr(runner.adapter, "get_stats", None)
    return HealthStatus(
        status="healthy",
        version=__version__,
        uptime=time.time() - _server_start_time,
        flows=runner.catalog.names(),
        stats=get_stats() if get_stats else {},
    )


@router.get("/ready")
async def readiness_check(runner: FlowRunner = Depends(get_flow_runner)):
    """Ready once the catalog has flows to serve."""
    if len(runner.catalog) == 0:
        return {"ready": False, "reason": "No flows registered"}
    return {"ready": True, "message": "Service ready to handle requests"}
