"""
Structured output handling utilities for LLM Kit

Request shaping and result extraction shared by generate_object and
stream_object.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

from typing_extensions import assert_never

from ..core.exceptions import NoObjectGeneratedError, ObjectParseError, ObjectValidationError
from ..core.types import (
    CallMode,
    GenerateResponse,
    ObjectGrammarMode,
    ObjectJsonMode,
    ObjectMode,
    ObjectToolMode,
    ToolDefinition,
)
from ..schema.object_schema import ObjectSchema
from ..utils.json_parsing import safe_parse_json

OBJECT_TOOL_NAME = "json"
OBJECT_TOOL_DESCRIPTION = "Respond with a JSON object."

DEFAULT_SCHEMA_PREFIX = "JSON schema:"
DEFAULT_SCHEMA_SUFFIX = "You MUST answer with a JSON object that matches the JSON schema above."


@dataclass(frozen=True)
class ObjectCall:
    mode: CallMode
    system: Optional[str]


def inject_json_schema_into_system(
    system: Optional[str],
    schema: Dict[str, Any],
    schema_prefix: str = DEFAULT_SCHEMA_PREFIX,
    schema_suffix: str = DEFAULT_SCHEMA_SUFFIX,
) -> str:
    """
    Append a labeled JSON-Schema block to the system instruction

    Args:
        system: The caller's system text, if any
        schema: JSON-Schema document to render
        schema_prefix: Label placed before the schema
        schema_suffix: Instruction placed after the schema

    Returns:
        The augmented system instruction
    """
    lines = []
    if system is not None:
        lines.extend([system, ""])
    lines.extend([schema_prefix, json.dumps(schema, separators=(",", ":")), schema_suffix])
    return "\n".join(lines)


def build_object_call(mode: ObjectMode, schema: ObjectSchema, system: Optional[str]) -> ObjectCall:
    """
    Build the call mode and system text for an object request

    Args:
        mode: Resolved structured mode
        schema: Target schema
        system: The caller's system text

    Returns:
        ObjectCall with the wire mode and the system instruction to send
    """
    json_schema = schema.json_schema()
    if mode == "json":
        return ObjectCall(ObjectJsonMode(), inject_json_schema_into_system(system, json_schema))
    elif mode == "grammar":
        return ObjectCall(
            ObjectGrammarMode(json_schema=json_schema),
            inject_json_schema_into_system(system, json_schema),
        )
    elif mode == "tool":
        tool = ToolDefinition(name=OBJECT_TOOL_NAME, description=OBJECT_TOOL_DESCRIPTION, parameters=json_schema)
        return ObjectCall(ObjectToolMode(tool=tool), system)
    else:
        assert_never(mode)


def extract_object_text(mode: ObjectMode, response: GenerateResponse, provider: Optional[str] = None) -> str:
    """
    Pull the raw object text out of a blocking response

    Raises:
        NoObjectGeneratedError: If the response lacks the output the mode expects
    """
    if mode == "json" or mode == "grammar":
        text = response.text
    elif mode == "tool":
        text = response.tool_calls[0].args if response.tool_calls else None
    else:
        assert_never(mode)

    if text is None:
        raise NoObjectGeneratedError(mode, provider=provider)
    return text


def parse_and_validate(text: str, schema: ObjectSchema) -> Any:
    """
    Strictly parse and validate generated object text

    Raises:
        ObjectParseError: If the text is not valid JSON
        ObjectValidationError: If the value does not satisfy the schema
    """
    parse_result = safe_parse_json(text)
    if not parse_result.success:
        raise ObjectParseError(value_text=text, cause=parse_result.error)

    validation = schema.validate(parse_result.value)
    if not validation.success:
        raise ObjectValidationError(value_text=text, value=parse_result.value, cause=validation.error)
    return validation.value
