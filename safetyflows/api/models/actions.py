"""
Envelopes for the flow action endpoints.
"""

from pydantic import Field
from typing import Any, Dict, Optional

from .common import APIResponse


class FlowActionResponse(APIResponse):
    """Response of a flow action; ``data`` holds the flow output in wire form."""
    flow: str = Field(..., description="Name of the flow that ran")
    data: Optional[Dict[str, Any]] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "success": True,
                "message": "toolbox_talk completed",
                "flow": "toolbox_talk",
                "data": {"content": "**Key Discussion Points**\n- Inspect the ladder before use..."},
            }
        }
    }
