"""
Schema wrappers used by the object pipeline

An ObjectSchema exposes a draft-07 JSON-Schema projection (for prompts and tool
parameters) and a validate operation that maps a parsed JSON value to either a
typed value or a structured validation failure.
"""

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Optional, Tuple, TypeVar, Union

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError
from pydantic import BaseModel, TypeAdapter, ValidationError

from ..core.exceptions import ConfigurationError

T = TypeVar("T")

DRAFT_07 = "http://json-schema.org/draft-07/schema#"


@dataclass(frozen=True)
class ValidationIssue:
    path: Tuple[Union[str, int], ...]
    message: str
    expected: Optional[str] = None
    actual: Optional[str] = None

    def __str__(self) -> str:
        location = ".".join(str(p) for p in self.path) or "<root>"
        return f"{location}: {self.message}"


@dataclass(frozen=True)
class ValidationFailure:
    issues: Tuple[ValidationIssue, ...] = field(default_factory=tuple)

    def __str__(self) -> str:
        return "; ".join(str(issue) for issue in self.issues)


@dataclass(frozen=True)
class ValidationResult(Generic[T]):
    success: bool
    value: Optional[T] = None
    error: Optional[ValidationFailure] = None


def json_type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


class ObjectSchema(ABC, Generic[T]):
    """Stateless schema wrapper, reusable across calls"""

    @abstractmethod
    def json_schema(self) -> Dict[str, Any]:
        """Return the draft-07 JSON-Schema projection."""

    @abstractmethod
    def validate(self, value: Any) -> ValidationResult[T]:
        """Validate a parsed JSON value."""


class PydanticSchema(ObjectSchema[T]):
    """
    Schema backed by a Pydantic model class (or any type TypeAdapter accepts)

    Validated values come back as instances of the target type.
    """

    def __init__(self, target: Any):
        self.target = target
        self._adapter: TypeAdapter = TypeAdapter(target)
        self._json_schema = _to_draft_07(self._adapter.json_schema(ref_template="#/definitions/{model}"))

    def json_schema(self) -> Dict[str, Any]:
        return copy.deepcopy(self._json_schema)

    def validate(self, value: Any) -> ValidationResult[T]:
        try:
            return ValidationResult(success=True, value=self._adapter.validate_python(value))
        except ValidationError as e:
            issues = tuple(
                ValidationIssue(
                    path=tuple(error["loc"]),
                    message=error["msg"],
                    expected=error["type"],
                    actual="missing" if error["type"] == "missing" else json_type_name(error.get("input")),
                )
                for error in e.errors()
            )
            return ValidationResult(success=False, error=ValidationFailure(issues))

    def __repr__(self) -> str:
        return f"PydanticSchema({getattr(self.target, '__name__', self.target)!r})"


class JsonSchema(ObjectSchema[Any]):
    """Schema backed by a raw draft-07 JSON-Schema document"""

    def __init__(self, schema: Dict[str, Any]):
        try:
            Draft7Validator.check_schema(schema)
        except SchemaError as e:
            raise ConfigurationError(f"Invalid JSON schema: {e.message}") from e
        self._schema = {"$schema": DRAFT_07, **schema}
        self._validator = Draft7Validator(schema)

    def json_schema(self) -> Dict[str, Any]:
        return copy.deepcopy(self._schema)

    def validate(self, value: Any) -> ValidationResult[Any]:
        errors = sorted(self._validator.iter_errors(value), key=lambda e: [str(p) for p in e.absolute_path])
        if not errors:
            return ValidationResult(success=True, value=value)
        issues = tuple(
            ValidationIssue(
                path=tuple(error.absolute_path),
                message=error.message,
                expected=str(error.validator_value) if error.validator == "type" else str(error.validator),
                actual=json_type_name(error.instance),
            )
            for error in errors
        )
        return ValidationResult(success=False, error=ValidationFailure(issues))


def _to_draft_07(schema: Dict[str, Any]) -> Dict[str, Any]:
    schema = dict(schema)
    # Remove Pydantic-specific fields
    schema.pop("title", None)
    definitions = schema.pop("$defs", None)
    if definitions:
        schema["definitions"] = definitions
    return {"$schema": DRAFT_07, **schema}


def as_object_schema(schema: Any) -> ObjectSchema:
    """
    Coerce a caller-supplied schema into an ObjectSchema

    Args:
        schema: An ObjectSchema, a JSON-Schema dict, or a Pydantic model / type

    Returns:
        The matching ObjectSchema wrapper
    """
    if isinstance(schema, ObjectSchema):
        return schema
    if isinstance(schema, dict):
        return JsonSchema(schema)
    if isinstance(schema, BaseModel):
        raise ConfigurationError(f"Expected a model class, got an instance of {type(schema).__name__}")
    return PydanticSchema(schema)
