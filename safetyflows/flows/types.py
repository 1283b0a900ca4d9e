from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, Mapping, Optional, Type, TypeVar

from ..errors import FlowError
from ..models.prompts import PromptConfig
from ..models.schema import Schema

I = TypeVar("I", bound=Schema)
O = TypeVar("O", bound=Schema)


class FlowStage(str, Enum):
    IDLE = "idle"
    VALIDATING_INPUT = "validating_input"
    RENDERING = "rendering"
    INVOKING = "invoking"
    VALIDATING_OUTPUT = "validating_output"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class FlowDefinition(Generic[I, O]):
    name: str
    input_schema: Type[I]
    output_schema: Type[O]
    prompt_ref: str  #e.g. "kpi/summarize@v1"
    description: str = ""


@dataclass(frozen=True)
class RegisteredFlow(Generic[I, O]):
    definition: FlowDefinition[I, O]
    prompt: PromptConfig

    @property
    def name(self) -> str:
        return self.definition.name


@dataclass(frozen=True)
class InvocationPolicy:
    timeout_s: Optional[float] = 60.0
    max_attempts: int = 3
    backoff_initial_s: float = 0.5
    backoff_max_s: float = 4.0
    backoff_jitter_s: float = 1.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.timeout_s is not None and self.timeout_s <= 0:
            raise ValueError("timeout_s must be positive or None")

    @classmethod
    def from_config(cls, section: Optional[Mapping[str, Any]]) -> "InvocationPolicy":
        section = dict(section or {})
        unknown = set(section) - set(cls.__dataclass_fields__)
        if unknown:
            raise ValueError(f"Unknown invocation settings: {', '.join(sorted(unknown))}")
        return cls(**section)


@dataclass(frozen=True)
class ExecutionResult(Generic[O]):
    flow: str
    value: Optional[O] = None
    failure: Optional[FlowError] = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.failure is None

    def unwrap(self) -> O:
        if self.failure is not None:
            raise self.failure
        return self.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "flow": self.flow,
            "ok": self.ok,
            "attempts": self.attempts,
            "value": self.value.model_dump(by_alias=True) if self.value is not None else None,
            "failure": self.failure.to_dict() if self.failure is not None else None,
        }
