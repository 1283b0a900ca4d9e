from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List, Union

#replies a provider can hand back; remote failures are values, not exceptions

@dataclass(frozen=True)
class StructuredReply:
    value: Any  #decoded JSON, or raw text when the model ignored the format
    meta: Dict[str, Any] = field(default_factory=dict)

@dataclass(frozen=True)
class EmptyReply:
    meta: Dict[str, Any] = field(default_factory=dict)

@dataclass(frozen=True)
class Refusal:
    reason: str
    meta: Dict[str, Any] = field(default_factory=dict)

@dataclass(frozen=True)
class TransportFailure:
    message: str
    retryable: bool = False
    timed_out: bool = False
    meta: Dict[str, Any] = field(default_factory=dict)

ModelReply = Union[StructuredReply, EmptyReply, Refusal, TransportFailure]


@dataclass(frozen=True)
class ChatRequest:
    model: str
    messages: List[Dict[str, Any]]
    params: Dict[str, Any] | None = None
    schema: Optional[Dict[str, Any]] = None  #json schema of the expected reply
    schema_name: str = "response_schema"
    stop: Optional[List[str]] = None


class ModelProvider(ABC):
    @abstractmethod
    async def chat(self, req: ChatRequest) -> ModelReply:
        raise NotImplementedError

    @abstractmethod
    async def health_check(self) -> bool:
        raise NotImplementedError

    async def cleanup(self) -> None:
        return None
