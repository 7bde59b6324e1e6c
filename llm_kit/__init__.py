from .client import LLMKit
from .config import KitConfig, ProviderConfig, OpenAIConfig
from .core.model import LanguageModel, resolve_object_mode
from .core.types import (
    AssistantMessage,
    CallOptions,
    CallSettings,
    CallWarning,
    ErrorPart,
    FinalMetadataPart,
    GenerateResponse,
    ImagePart,
    ObjectGrammarMode,
    ObjectJsonMode,
    ObjectToolMode,
    ParsedToolCall,
    Prompt,
    RegularMode,
    TextDeltaPart,
    TextPart,
    ToolCall,
    ToolCallDeltaPart,
    ToolCallPart,
    ToolCallStreamPart,
    ToolDefinition,
    ToolMessage,
    ToolResultPart,
    Usage,
    UserMessage,
)
from .core.exceptions import (
    LLMKitError,
    ProviderError,
    ConfigurationError,
    UnsupportedModeError,
    NoDefaultObjectModeError,
    NoObjectGeneratedError,
    ObjectParseError,
    ObjectValidationError,
    InvalidPromptError,
    ToolCallProtocolError,
    ToolError,
    NoSuchToolError,
    InvalidToolArgumentsError,
)
from .generate.object import GenerateObjectResult, generate_object
from .generate.stream_object import StreamObjectResult, stream_object
from .generate.text import GenerateTextResult, StreamTextResult, generate_text, stream_text
from .providers.openai import OpenAIChatModel
from .schema.object_schema import JsonSchema, ObjectSchema, PydanticSchema, as_object_schema
from .tools.function_calling import Tool, tool_from_function
from .utils.logging import configure_logging

__all__ = [
    "LLMKit",
    "KitConfig",
    "ProviderConfig",
    "OpenAIConfig",
    "LanguageModel",
    "resolve_object_mode",
    "OpenAIChatModel",
    "generate_text",
    "stream_text",
    "generate_object",
    "stream_object",
    "GenerateTextResult",
    "StreamTextResult",
    "GenerateObjectResult",
    "StreamObjectResult",
    "Tool",
    "tool_from_function",
    "ObjectSchema",
    "PydanticSchema",
    "JsonSchema",
    "as_object_schema",
    "configure_logging",
    "AssistantMessage",
    "CallOptions",
    "CallSettings",
    "CallWarning",
    "ErrorPart",
    "FinalMetadataPart",
    "GenerateResponse",
    "ImagePart",
    "ObjectGrammarMode",
    "ObjectJsonMode",
    "ObjectToolMode",
    "ParsedToolCall",
    "Prompt",
    "RegularMode",
    "TextDeltaPart",
    "TextPart",
    "ToolCall",
    "ToolCallDeltaPart",
    "ToolCallPart",
    "ToolCallStreamPart",
    "ToolDefinition",
    "ToolMessage",
    "ToolResultPart",
    "Usage",
    "UserMessage",
    "LLMKitError",
    "ProviderError",
    "ConfigurationError",
    "UnsupportedModeError",
    "NoDefaultObjectModeError",
    "NoObjectGeneratedError",
    "ObjectParseError",
    "ObjectValidationError",
    "InvalidPromptError",
    "ToolCallProtocolError",
    "ToolError",
    "NoSuchToolError",
    "InvalidToolArgumentsError",
]
