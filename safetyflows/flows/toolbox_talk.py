"""Toolbox-talk content generation."""

from __future__ import annotations
from typing import TYPE_CHECKING, Any, Mapping, Union

from pydantic import Field

from ..models.schema import Schema
from .types import FlowDefinition

if TYPE_CHECKING:
    from .engine import FlowRunner

SECTION_HEADINGS = ("Key Discussion Points", "Potential Hazards", "Best Practices / Controls")


class ToolboxTalkInput(Schema):
    topic: str = Field(..., min_length=1, description="The topic for the toolbox talk.")


class ToolboxTalkOutput(Schema):
    content: str = Field(
        ...,
        min_length=1,
        description=(
            "The generated content for the toolbox talk, including key points, hazards, "
            "and best practices. Should be formatted for a textarea."
        ),
    )


TOOLBOX_TALK = FlowDefinition(
    name="toolbox_talk",
    input_schema=ToolboxTalkInput,
    output_schema=ToolboxTalkOutput,
    prompt_ref="toolbox/talk@v1",
    description="Toolbox-talk text with key discussion points, hazards and controls for a topic.",
)


async def generate_toolbox_talk(runner: FlowRunner, payload: Union[ToolboxTalkInput, Mapping[str, Any]]) -> ToolboxTalkOutput:
    return await runner.execute(TOOLBOX_TALK, payload)
