import pytest
from typing import List, Optional
from pydantic import Field

from safetyflows.models.schema import (
    Schema, SchemaValidationError, FieldIssue, validate, json_schema, ROOT_FIELD,
)


class Step(Schema):
    step_description: str = Field(..., min_length=1)
    hazards: str


class Sample(Schema):
    department_name: str = Field(..., min_length=1, description="Department to summarize")
    incident_count: int = Field(0, ge=0)
    notes: Optional[str] = None
    steps: List[Step] = Field(default_factory=list)


class TestValidate:
    def test_valid_mapping_returns_instance_with_defaults(self):
        value = validate(Sample, {"departmentName": "Warehouse"})

        assert isinstance(value, Sample)
        assert value.department_name == "Warehouse"
        assert value.incident_count == 0
        assert value.notes is None
        assert value.steps == []

    def test_python_field_names_are_accepted(self):
        value = validate(Sample, {"department_name": "Warehouse", "incident_count": 3})
        assert value.incident_count == 3

    def test_every_offending_field_is_reported(self):
        """Missing, wrong-typed and constrained fields all show up in one error"""
        with pytest.raises(SchemaValidationError) as exc_info:
            validate(Sample, {"incidentCount": "many", "notes": 5})

        issues = {issue.field: issue.kind for issue in exc_info.value.issues}
        assert issues["departmentName"] == "missing"
        assert issues["incidentCount"] == "wrong_type"
        assert issues["notes"] == "wrong_type"
        assert len(exc_info.value.issues) == 3

    def test_constraint_failure(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            validate(Sample, {"departmentName": "", "incidentCount": -1})

        issues = {issue.field: issue.kind for issue in exc_info.value.issues}
        assert issues == {"departmentName": "constraint", "incidentCount": "constraint"}

    def test_whitespace_only_text_fails_non_empty_constraint(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            validate(Sample, {"departmentName": "   "})

        assert exc_info.value.issues[0].field == "departmentName"
        assert exc_info.value.issues[0].kind == "constraint"

    def test_surrounding_whitespace_is_stripped(self):
        assert validate(Sample, {"departmentName": "  Warehouse\n"}).department_name == "Warehouse"

    def test_unknown_fields_are_rejected(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            validate(Sample, {"departmentName": "Warehouse", "shift": "night"})

        assert exc_info.value.issues[0].field == "shift"
        assert exc_info.value.issues[0].kind == "unknown_field"

    def test_nested_issue_paths(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            validate(Sample, {
                "departmentName": "Warehouse",
                "steps": [{"stepDescription": "Lift box", "hazards": "Back strain"}, {"stepDescription": ""}],
            })

        fields = exc_info.value.fields
        assert "steps.1.stepDescription" in fields
        assert "steps.1.hazards" in fields

    @pytest.mark.parametrize("value", [None, "text", 42, ["departmentName"]])
    def test_non_object_values_fail_at_root(self, value):
        with pytest.raises(SchemaValidationError) as exc_info:
            validate(Sample, value)

        assert exc_info.value.issues == [
            FieldIssue(field=ROOT_FIELD, kind="wrong_type", message=exc_info.value.issues[0].message)
        ]

    def test_error_is_a_value_error_with_summary(self):
        with pytest.raises(ValueError, match="Sample validation failed"):
            validate(Sample, {})


class TestIdempotence:
    def test_instance_revalidates_to_equal_value(self):
        value = validate(Sample, {"departmentName": "Warehouse"})
        assert validate(Sample, value) == value

    def test_constructed_instance_is_checked(self):
        """model_construct skips pydantic validation; validate must not"""
        unchecked = Sample.model_construct(department_name="", incident_count=-1)

        with pytest.raises(SchemaValidationError) as exc_info:
            validate(Sample, unchecked)

        assert {issue.kind for issue in exc_info.value.issues} == {"constraint"}
        assert len(exc_info.value.issues) == 2

    def test_revalidating_dumped_value_gives_equal_value(self):
        value = validate(Sample, {"departmentName": "Warehouse", "steps": [{"stepDescription": "Lift", "hazards": "Strain"}]})

        again = validate(Sample, value.model_dump(by_alias=True))
        assert again == value

    def test_instances_are_immutable(self):
        value = validate(Sample, {"departmentName": "Warehouse"})
        with pytest.raises(Exception):
            value.department_name = "Office"


class TestJsonSchema:
    def test_uses_wire_names_and_descriptions(self):
        schema = json_schema(Sample)

        assert "departmentName" in schema["properties"]
        assert schema["properties"]["departmentName"]["description"] == "Department to summarize"
        assert schema["required"] == ["departmentName"]
        assert schema["additionalProperties"] is False
