"""
Standardized exceptions for LLM Kit
"""

from typing import Any, Dict, Optional


class LLMKitError(Exception):
    """Base exception for all LLM Kit errors"""

    def __init__(self, message: str, provider: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.provider = provider
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        error_str = self.message
        if self.provider:
            error_str = f"[{self.provider}] {error_str}"
        if self.details:
            error_str = f"{error_str} - Details: {self.details}"
        return error_str


class ProviderError(LLMKitError):
    """Exception raised for errors returned by the model backend or its transport"""
    pass


class ConfigurationError(LLMKitError):
    """Exception raised for errors in the configuration"""
    pass


class UnsupportedModeError(LLMKitError):
    """Exception raised when a backend cannot implement the requested call mode"""

    def __init__(self, mode: str, provider: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(f"Mode '{mode}' is not supported", provider, details)
        self.mode = mode


class NoDefaultObjectModeError(LLMKitError):
    """Exception raised when no object mode was given and the model declares none"""

    def __init__(self, provider: Optional[str] = None, model_id: Optional[str] = None):
        super().__init__(
            "Model does not have a default object generation mode",
            provider,
            {"model_id": model_id} if model_id else None,
        )
        self.model_id = model_id


class NoObjectGeneratedError(LLMKitError):
    """Exception raised when the model response does not carry the output the mode expects"""

    def __init__(self, mode: str, provider: Optional[str] = None):
        super().__init__(f"No object generated: response is missing the '{mode}' mode output", provider)
        self.mode = mode


class ObjectParseError(LLMKitError):
    """Exception raised when the generated text is not valid JSON"""

    def __init__(self, value_text: str, cause: Exception):
        super().__init__(f"Could not parse the generated object as JSON: {cause}")
        self.value_text = value_text
        self.cause = cause


class ObjectValidationError(LLMKitError):
    """Exception raised when the parsed JSON does not satisfy the schema"""

    def __init__(self, value_text: str, value: Any, cause: Any):
        super().__init__(f"Generated object does not match the schema: {cause}")
        self.value_text = value_text
        self.value = value
        self.cause = cause


class InvalidPromptError(LLMKitError):
    """Exception raised for malformed caller prompts"""
    pass


class ToolCallProtocolError(LLMKitError):
    """Exception raised when a backend violates the tool-call delta contract"""

    def __init__(self, message: str, index: int, provider: Optional[str] = None):
        super().__init__(message, provider, {"index": index})
        self.index = index


class ToolError(LLMKitError):
    """Exception raised for errors in tool declarations"""
    pass


class NoSuchToolError(LLMKitError):
    """Exception raised when the model calls a tool that was not declared"""

    def __init__(self, tool_name: str, available: Optional[list] = None):
        super().__init__(
            f"Model tried to call unavailable tool '{tool_name}'",
            details={"available_tools": available or []},
        )
        self.tool_name = tool_name


class InvalidToolArgumentsError(LLMKitError):
    """Exception raised when tool call arguments fail to parse or validate"""

    def __init__(self, tool_name: str, tool_args: str, cause: Any):
        super().__init__(f"Invalid arguments for tool '{tool_name}': {cause}")
        self.tool_name = tool_name
        self.tool_args = tool_args
        self.cause = cause

