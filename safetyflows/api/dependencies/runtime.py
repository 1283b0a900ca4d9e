"""
Access to the process-wide flow runner built at startup.
"""

from safetyflows.flows.engine import FlowRunner


def get_flow_runner() -> FlowRunner:
    """FastAPI dependency to get the flow runner from app state."""
    from ..main import app_state
    return app_state["flow_runner"]
