"""
Function calling utilities for LLM Kit

Caller-declared tools for regular-mode calls. Tools only describe parameters;
executing them is left to the caller.
"""

import inspect
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, get_type_hints

from pydantic import create_model

from ..core.exceptions import InvalidToolArgumentsError, NoSuchToolError, ToolError
from ..core.types import ParsedToolCall, ToolCall, ToolDefinition
from ..schema.object_schema import ObjectSchema, as_object_schema
from ..utils.json_parsing import safe_parse_json


@dataclass(frozen=True)
class Tool:
    """
    A tool the model may call

    Args:
        parameters: Anything ``as_object_schema`` accepts (Pydantic model, JSON-Schema dict, ObjectSchema)
        description: Optional description shown to the model
    """

    parameters: Any
    description: Optional[str] = None

    @property
    def schema(self) -> ObjectSchema:
        return as_object_schema(self.parameters)


def tool_from_function(func: Callable, description: Optional[str] = None) -> Tool:
    """
    Derive a tool definition from a Python function signature

    Args:
        func: The function whose parameters describe the tool input
        description: Optional description (falls back to the docstring)

    Returns:
        Tool whose parameters model mirrors the function signature

    Raises:
        ToolError: If the signature cannot be converted
    """
    try:
        signature = inspect.signature(func)
        type_hints = get_type_hints(func)
        fields: Dict[str, Any] = {}
        for param_name, param in signature.parameters.items():
            # Skip self for methods
            if param_name == "self":
                continue
            default = ... if param.default is inspect.Parameter.empty else param.default
            fields[param_name] = (type_hints.get(param_name, Any), default)
        parameters = create_model(f"{func.__name__}_parameters", **fields)
    except (TypeError, ValueError, NameError) as e:
        raise ToolError(f"Failed to convert function to tool: {e}") from e

    return Tool(parameters=parameters, description=description or inspect.getdoc(func))


def to_tool_definitions(tools: Optional[Mapping[str, Tool]]) -> Optional[Tuple[ToolDefinition, ...]]:
    """Convert caller tools into wire tool definitions; None when there are none."""
    if not tools:
        return None
    return tuple(
        ToolDefinition(name=name, description=tool.description, parameters=tool.schema.json_schema())
        for name, tool in tools.items()
    )


def parse_tool_call(tool_call: ToolCall, tools: Optional[Mapping[str, Tool]]) -> ParsedToolCall:
    """
    Parse and validate a complete tool call against its declared tool

    Raises:
        NoSuchToolError: If the tool was not declared for this call
        InvalidToolArgumentsError: If the arguments are not valid JSON or fail validation
    """
    tool = (tools or {}).get(tool_call.tool_name)
    if tool is None:
        raise NoSuchToolError(tool_call.tool_name, available=list(tools or {}))

    parse_result = safe_parse_json(tool_call.args)
    if not parse_result.success:
        raise InvalidToolArgumentsError(tool_call.tool_name, tool_call.args, parse_result.error)

    validation = tool.schema.validate(parse_result.value)
    if not validation.success:
        raise InvalidToolArgumentsError(tool_call.tool_name, tool_call.args, validation.error)

    return ParsedToolCall(
        tool_call_id=tool_call.tool_call_id,
        tool_name=tool_call.tool_name,
        args=validation.value,
    )
