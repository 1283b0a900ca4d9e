"""
Typed failures raised by the flow pipeline.

Every failure that leaves ``FlowRunner.execute`` is a ``FlowError`` whose
``kind`` tells the caller which stage gave up: bad caller input, a broken
template, the remote model call itself, or a reply that is empty or does not
match the declared output shape.
"""

from __future__ import annotations
from enum import Enum
from typing import Any, Dict, List, Optional

from .models.schema import FieldIssue


class FailureKind(str, Enum):
    INVALID_INPUT = "InvalidInput"
    TEMPLATE_ERROR = "TemplateError"
    MODEL_INVOCATION_ERROR = "ModelInvocationError"
    EMPTY_MODEL_OUTPUT = "EmptyModelOutput"
    INVALID_MODEL_OUTPUT = "InvalidModelOutput"


class ConfigurationError(ValueError):
    """Startup-time configuration problem (missing credential, bad config file)."""


class FlowError(RuntimeError):
    kind: FailureKind

    def __init__(self, message: str, flow: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.flow = flow

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "flow": self.flow, "message": self.message}


class InvalidInput(FlowError):
    kind = FailureKind.INVALID_INPUT

    def __init__(self, message: str, issues: List[FieldIssue], flow: Optional[str] = None):
        super().__init__(message, flow)
        self.issues = list(issues)

    @property
    def fields(self) -> List[str]:
        return [issue.field for issue in self.issues]

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["issues"] = [issue.to_dict() for issue in self.issues]
        return data


class TemplateError(FlowError):
    kind = FailureKind.TEMPLATE_ERROR


class ModelInvocationError(FlowError):
    kind = FailureKind.MODEL_INVOCATION_ERROR

    def __init__(
        self,
        message: str,
        flow: Optional[str] = None,
        retryable: bool = False,
        reason: str = "transport",  # transport | timeout | refusal | adapter
        attempts: int = 1,
    ):
        super().__init__(message, flow)
        self.retryable = retryable
        self.reason = reason
        self.attempts = attempts

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(retryable=self.retryable, reason=self.reason, attempts=self.attempts)
        return data


class EmptyModelOutput(FlowError):
    kind = FailureKind.EMPTY_MODEL_OUTPUT


class InvalidModelOutput(FlowError):
    kind = FailureKind.INVALID_MODEL_OUTPUT

    def __init__(self, message: str, issues: List[FieldIssue], raw: Any = None, flow: Optional[str] = None):
        super().__init__(message, flow)
        self.issues = list(issues)
        self.raw = raw

    @property
    def fields(self) -> List[str]:
        return [issue.field for issue in self.issues]

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["issues"] = [issue.to_dict() for issue in self.issues]
        return data
