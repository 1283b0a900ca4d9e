"""
Read-only catalog of the flows the application may call.

The catalog is built once at startup and handed to the ``FlowRunner``. Building
it loads every prompt and checks that each placeholder names a field of the
flow's input schema, so a template/schema mismatch stops the process before it
serves a single request.
"""

from __future__ import annotations
from types import MappingProxyType
from typing import Iterable, Iterator, List
import logging

from ..errors import TemplateError
from ..models.prompts import PromptManager
from .investigation_analysis import INVESTIGATION_ANALYSIS
from .jsa_analysis import JSA_ANALYSIS
from .kpi_summary import KPI_SUMMARY
from .toolbox_talk import TOOLBOX_TALK
from .types import FlowDefinition, RegisteredFlow

logger = logging.getLogger(__name__)


def _input_fields(definition: FlowDefinition) -> List[str]:
    return list(definition.input_schema.model_fields)


class FlowCatalog:
    def __init__(self, definitions: Iterable[FlowDefinition], prompts: PromptManager):
        registered = {}
        for definition in definitions:
            if definition.name in registered:
                raise ValueError(f"Flow '{definition.name}' registered twice")
            try:
                prompt = prompts.load_prompt(definition.prompt_ref)
            except (FileNotFoundError, ValueError) as e:
                raise TemplateError(f"Cannot load prompt for flow '{definition.name}': {e}", flow=definition.name) from e
            try:
                prompts.check(definition.prompt_ref, _input_fields(definition))
            except TemplateError as e:
                e.flow = definition.name
                raise
            registered[definition.name] = RegisteredFlow(definition=definition, prompt=prompt)
            logger.info("Registered flow %s (%s)", definition.name, definition.prompt_ref)

        self._flows = MappingProxyType(registered)
        self.prompts = prompts

    def get(self, name: str) -> RegisteredFlow:
        if name not in self._flows:
            raise KeyError(f"No flow registered under '{name}'")
        return self._flows[name]

    def names(self) -> List[str]:
        return sorted(self._flows)

    def __contains__(self, name: object) -> bool:
        return name in self._flows

    def __len__(self) -> int:
        return len(self._flows)

    def __iter__(self) -> Iterator[RegisteredFlow]:
        return iter(self._flows.values())


def build_default_catalog(prompts: PromptManager) -> FlowCatalog:
    return FlowCatalog([KPI_SUMMARY, INVESTIGATION_ANALYSIS, JSA_ANALYSIS, TOOLBOX_TALK], prompts)
