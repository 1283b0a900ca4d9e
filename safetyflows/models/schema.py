from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Type, TypeVar
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

ROOT_FIELD = "<root>"


class Schema(BaseModel):
    """Base for every flow input/output shape.

    Instances are immutable, unknown fields are rejected on both sides of the
    pipeline, and fields travel over the wire under their camelCase alias.
    Strings are stripped before constraints apply, so whitespace-only text
    fails a ``min_length`` check. Instances are revalidated whenever they are
    validated again, including ones built with ``model_construct``.
    """
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        revalidate_instances="always",
    )


S = TypeVar("S", bound=Schema)


@dataclass(frozen=True)
class FieldIssue:
    field: str  # dotted wire path, e.g. "steps.0.hazards"
    kind: str  # missing | wrong_type | constraint | unknown_field
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "kind": self.kind, "message": self.message}


class SchemaValidationError(ValueError):
    def __init__(self, schema_name: str, issues: List[FieldIssue]):
        self.schema_name = schema_name
        self.issues = list(issues)
        summary = "; ".join(f"{i.field}: {i.message}" for i in self.issues)
        super().__init__(f"{schema_name} validation failed ({len(self.issues)} issue(s)): {summary}")

    @property
    def fields(self) -> List[str]:
        return [issue.field for issue in self.issues]


def _issue_kind(error_type: str) -> str:
    if error_type == "missing":
        return "missing"
    if error_type == "extra_forbidden":
        return "unknown_field"
    if error_type.endswith("_type") or error_type.endswith("_parsing"):
        return "wrong_type"
    return "constraint"


def _issues_from(exc: ValidationError) -> List[FieldIssue]:
    issues = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ())) or ROOT_FIELD
        issues.append(FieldIssue(field=loc, kind=_issue_kind(err["type"]), message=err["msg"]))
    return issues


def validate(schema: Type[S], value: Any) -> S:
    """Check ``value`` against ``schema`` and return the narrowed instance.

    Every failing field is reported, not just the first one. An instance of
    the schema is checked again and comes back as an equal value.
    """
    if isinstance(value, BaseModel) and not isinstance(value, schema):
        value = value.model_dump(by_alias=True)
    if not isinstance(value, (Mapping, schema)):
        raise SchemaValidationError(schema.__name__, [
            FieldIssue(
                field=ROOT_FIELD,
                kind="wrong_type",
                message=f"expected an object, got {type(value).__name__}",
            )
        ])
    try:
        return schema.model_validate(value if isinstance(value, schema) else dict(value))
    except ValidationError as e:
        raise SchemaValidationError(schema.__name__, _issues_from(e)) from e


def json_schema(schema: Type[Schema]) -> Dict[str, Any]:
    #wire-facing shape with field descriptions, used as a hint for the model
    return schema.model_json_schema(by_alias=True)
