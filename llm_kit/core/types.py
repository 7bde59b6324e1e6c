"""
Core type definitions for LLM Kit using Pydantic

Every model here is frozen. Tagged unions are discriminated on their literal
``type`` (or ``role``) field, and the camelCase aliases give the wire shape
that UI layers consume (``part.model_dump(by_alias=True)``).
"""

from typing import Any, Dict, Literal, Optional, Tuple, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing_extensions import Annotated


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


# ---- prompt model ------------------------------------------------------------

class TextPart(_FrozenModel):
    type: Literal["text"] = "text"
    text: str


class ImagePart(_FrozenModel):
    type: Literal["image"] = "image"
    image: bytes
    mime_type: Optional[str] = None


class ToolCallPart(_FrozenModel):
    type: Literal["tool-call"] = "tool-call"
    tool_call_id: str
    tool_name: str
    args: Any = None


class ToolResultPart(_FrozenModel):
    type: Literal["tool-result"] = "tool-result"
    tool_call_id: str
    tool_name: str
    result: Any = None


UserContent = Annotated[Union[TextPart, ImagePart], Field(discriminator="type")]
AssistantContent = Annotated[Union[TextPart, ToolCallPart], Field(discriminator="type")]


def _text_shorthand(value: Any) -> Any:
    if isinstance(value, str):
        return (TextPart(text=value),)
    return value


class UserMessage(_FrozenModel):
    role: Literal["user"] = "user"
    content: Annotated[Tuple[UserContent, ...], BeforeValidator(_text_shorthand)]


class AssistantMessage(_FrozenModel):
    role: Literal["assistant"] = "assistant"
    content: Annotated[Tuple[AssistantContent, ...], BeforeValidator(_text_shorthand)]


class ToolMessage(_FrozenModel):
    role: Literal["tool"] = "tool"
    content: Tuple[ToolResultPart, ...]


Message = Annotated[Union[UserMessage, AssistantMessage, ToolMessage], Field(discriminator="role")]


class Prompt(_FrozenModel):
    system: Optional[str] = None
    messages: Tuple[Message, ...] = ()


# ---- tools and call modes ----------------------------------------------------

class ToolDefinition(_FrozenModel):
    type: Literal["function"] = "function"
    name: str
    description: Optional[str] = None
    parameters: Dict[str, Any]


class RegularMode(_FrozenModel):
    type: Literal["regular"] = "regular"
    tools: Optional[Tuple[ToolDefinition, ...]] = None

    @field_validator("tools")
    @classmethod
    def _unique_names(cls, tools):
        if tools:
            names = [tool.name for tool in tools]
            duplicates = sorted({name for name in names if names.count(name) > 1})
            if duplicates:
                raise ValueError(f"Tool names must be unique within a call: {duplicates}")
        return tools


class ObjectJsonMode(_FrozenModel):
    type: Literal["object-json"] = "object-json"


class ObjectGrammarMode(_FrozenModel):
    type: Literal["object-grammar"] = "object-grammar"
    json_schema: Dict[str, Any] = Field(alias="schema")


class ObjectToolMode(_FrozenModel):
    type: Literal["object-tool"] = "object-tool"
    tool: ToolDefinition


CallMode = Annotated[
    Union[RegularMode, ObjectJsonMode, ObjectGrammarMode, ObjectToolMode],
    Field(discriminator="type"),
]

# Caller-facing names of the structured modes
ObjectMode = Literal["json", "grammar", "tool"]
OBJECT_MODES: Tuple[str, ...] = ("json", "grammar", "tool")

FinishReason = Literal["stop", "length", "content-filter", "tool-calls", "error", "other"]


# ---- call options and responses ----------------------------------------------

class CallSettings(_FrozenModel):
    max_tokens: Optional[int] = Field(default=None, ge=1)
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    presence_penalty: Optional[float] = None
    frequency_penalty: Optional[float] = None
    seed: Optional[int] = None


class CallOptions(CallSettings):
    mode: CallMode
    prompt: Prompt
    input_format: Literal["prompt", "messages"] = "messages"


class Usage(_FrozenModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


class ToolCall(_FrozenModel):
    tool_call_id: str
    tool_name: str
    # stringified JSON arguments
    args: str


class CallWarning(_FrozenModel):
    type: Literal["unsupported-setting", "other"]
    setting: Optional[str] = None
    message: Optional[str] = None


class GenerateResponse(_FrozenModel):
    text: Optional[str] = None
    tool_calls: Optional[Tuple[ToolCall, ...]] = None
    finish_reason: FinishReason = "other"
    usage: Usage = Field(default_factory=Usage)
    warnings: Tuple[CallWarning, ...] = ()


# ---- stream parts ------------------------------------------------------------

class TextDeltaPart(_FrozenModel):
    type: Literal["text-delta"] = "text-delta"
    text_delta: str


class ToolCallDeltaPart(_FrozenModel):
    type: Literal["tool-call-delta"] = "tool-call-delta"
    index: int = 0
    tool_call_id: str
    tool_name: str
    args_text_delta: str


class ToolCallStreamPart(ToolCall):
    type: Literal["tool-call"] = "tool-call"


class FinalMetadataPart(_FrozenModel):
    type: Literal["final-metadata"] = "final-metadata"
    finish_reason: FinishReason
    usage: Usage = Field(default_factory=Usage)


class ErrorPart(_FrozenModel):
    type: Literal["error"] = "error"
    error: Any


StreamPart = Annotated[
    Union[TextDeltaPart, ToolCallDeltaPart, ToolCallStreamPart, FinalMetadataPart, ErrorPart],
    Field(discriminator="type"),
]


class ParsedToolCall(_FrozenModel):
    """A complete tool call whose arguments were parsed and validated."""

    type: Literal["tool-call"] = "tool-call"
    tool_call_id: str
    tool_name: str
    args: Any
