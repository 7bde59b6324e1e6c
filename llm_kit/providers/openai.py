"""
OpenAI chat completions adapter for LLM Kit
"""

import base64
import json
from typing import Any, AsyncIterator, Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError
from typing_extensions import assert_never

from ..config import OpenAIConfig
from ..core.exceptions import ConfigurationError, ProviderError
from ..core.model import LanguageModel
from ..core.stream import ChatChunkNormalizer, map_finish_reason, normalize_stream, parse_usage
from ..core.types import (
    AssistantMessage,
    CallOptions,
    GenerateResponse,
    ObjectGrammarMode,
    ObjectJsonMode,
    ObjectToolMode,
    Prompt,
    RegularMode,
    StreamPart,
    ToolCall,
    ToolDefinition,
    ToolMessage,
    UserMessage,
)
from ..utils.logging import logger
from ..utils.streaming import aclose_stream

_DEFAULT_IMAGE_MIME_TYPE = "image/jpeg"

# OpenAI supports the tool and json structured modes
_OBJECT_MODES = ("tool", "json")


def _to_tool(tool: ToolDefinition) -> Dict[str, Any]:
    function: Dict[str, Any] = {"name": tool.name, "parameters": tool.parameters}
    if tool.description is not None:
        function["description"] = tool.description
    return {"type": "function", "function": function}


def _image_url(image: bytes, mime_type: Optional[str]) -> str:
    encoded = base64.b64encode(image).decode("ascii")
    return f"data:{mime_type or _DEFAULT_IMAGE_MIME_TYPE};base64,{encoded}"


def convert_to_openai_messages(prompt: Prompt) -> List[Dict[str, Any]]:
    """
    Convert a Prompt into chat completion messages

    Args:
        prompt: The normalized prompt

    Returns:
        List of OpenAI chat messages
    """
    messages: List[Dict[str, Any]] = []
    if prompt.system is not None:
        messages.append({"role": "system", "content": prompt.system})

    for message in prompt.messages:
        if isinstance(message, UserMessage):
            if len(message.content) == 1 and message.content[0].type == "text":
                messages.append({"role": "user", "content": message.content[0].text})
                continue
            content = []
            for part in message.content:
                if part.type == "text":
                    content.append({"type": "text", "text": part.text})
                else:
                    content.append({"type": "image_url", "image_url": {"url": _image_url(part.image, part.mime_type)}})
            messages.append({"role": "user", "content": content})

        elif isinstance(message, AssistantMessage):
            text = ""
            tool_calls = []
            for part in message.content:
                if part.type == "text":
                    text += part.text
                else:
                    tool_calls.append(
                        {
                            "id": part.tool_call_id,
                            "type": "function",
                            "function": {"name": part.tool_name, "arguments": json.dumps(part.args)},
                        }
                    )
            assistant: Dict[str, Any] = {"role": "assistant", "content": text}
            if tool_calls:
                assistant["tool_calls"] = tool_calls
            messages.append(assistant)

        elif isinstance(message, ToolMessage):
            for result in message.content:
                messages.append(
                    {
                        "role": "tool",
                        "tool_call_id": result.tool_call_id,
                        "content": json.dumps(result.result),
                    }
                )

        else:
            assert_never(message)

    return messages


class OpenAIChatModel(LanguageModel):
    """
    Model contract implementation over ``AsyncOpenAI`` chat completions

    The object-grammar mode has no chat completions counterpart and is
    rejected before any request is made.
    """

    provider = "openai"

    def __init__(
        self,
        model_id: str,
        client: Optional[AsyncOpenAI] = None,
        config: Optional[OpenAIConfig] = None,
        object_mode: Optional[str] = None,
    ):
        """
        Initialize the adapter

        Args:
            model_id: OpenAI model name, e.g. "gpt-4o"
            client: Preconfigured client (built from config when omitted)
            config: Provider configuration
            object_mode: Default structured mode, "tool" or "json"

        Raises:
            ConfigurationError: If the mode is unsupported or the client cannot be built
        """
        self.model_id = model_id
        self.config = config or OpenAIConfig()
        mode = object_mode or self.config.object_mode
        if mode not in _OBJECT_MODES:
            raise ConfigurationError(
                f"Unsupported default object mode '{mode}'",
                provider=self.provider,
                details={"supported": list(_OBJECT_MODES)},
            )
        self.default_object_mode = mode
        self.client = client or self._build_client(self.config)

    def _build_client(self, config: OpenAIConfig) -> AsyncOpenAI:
        options = {
            "api_key": config.api_key,
            "organization": config.organization,
            "base_url": config.base_url,
            "max_retries": config.max_retries,
            "timeout": config.timeout,
        }
        try:
            # Native retries via SDK
            return AsyncOpenAI(**{k: v for k, v in options.items() if v is not None})
        except OpenAIError as e:
            raise ConfigurationError(str(e), provider=self.provider) from e

    # ---- helpers -------------------------------------------------------------

    def _get_args(self, options: CallOptions) -> Dict[str, Any]:
        args: Dict[str, Any] = {
            "model": self.model_id,
            "messages": convert_to_openai_messages(options.prompt),
        }
        settings = {
            "max_tokens": options.max_tokens,
            "temperature": options.temperature,
            "top_p": options.top_p,
            "frequency_penalty": options.frequency_penalty,
            "presence_penalty": options.presence_penalty,
            "seed": options.seed,
        }
        args.update({k: v for k, v in settings.items() if v is not None})

        mode = options.mode
        if isinstance(mode, RegularMode):
            if mode.tools:
                args["tools"] = [_to_tool(tool) for tool in mode.tools]
        elif isinstance(mode, ObjectJsonMode):
            args["response_format"] = {"type": "json_object"}
        elif isinstance(mode, ObjectToolMode):
            args["tools"] = [_to_tool(mode.tool)]
            args["tool_choice"] = {"type": "function", "function": {"name": mode.tool.name}}
        elif isinstance(mode, ObjectGrammarMode):
            raise self.unsupported_mode(mode.type)
        else:
            assert_never(mode)
        return args

    def _provider_error(self, error: Exception) -> ProviderError:
        details: Dict[str, Any] = {"model_id": self.model_id}
        status_code = getattr(error, "status_code", None)
        if status_code is not None:
            details["status_code"] = status_code
        return ProviderError(str(error), provider=self.provider, details=details)

    # ---- public API ----------------------------------------------------------

    async def generate(self, options: CallOptions) -> GenerateResponse:
        args = self._get_args(options)
        try:
            response = await self.client.chat.completions.create(**args)
        except Exception as e:
            raise self._provider_error(e) from e

        if not response.choices:
            raise ProviderError(
                "Chat completion returned no choices",
                provider=self.provider,
                details={"model_id": self.model_id},
            )
        choice = response.choices[0]
        message = choice.message
        tool_calls = tuple(
            ToolCall(
                tool_call_id=tool_call.id,
                tool_name=tool_call.function.name,
                args=tool_call.function.arguments or "",
            )
            for tool_call in getattr(message, "tool_calls", None) or ()
        )
        return GenerateResponse(
            text=message.content,
            tool_calls=tool_calls or None,
            finish_reason=map_finish_reason(choice.finish_reason),
            usage=parse_usage(getattr(response, "usage", None)),
        )

    async def stream(self, options: CallOptions) -> AsyncIterator[StreamPart]:
        args = self._get_args(options)
        args["stream"] = True
        args["stream_options"] = {"include_usage": True}
        try:
            response = await self.client.chat.completions.create(**args)
        except Exception as e:
            raise self._provider_error(e) from e

        return normalize_stream(self._chunks(response), ChatChunkNormalizer(provider=self.provider))

    async def _chunks(self, response: Any) -> AsyncIterator[Any]:
        try:
            async for chunk in response:
                yield chunk
        except Exception as e:
            logger.error("OpenAI stream failed for %s: %s", self.model_id, e)
            raise self._provider_error(e) from e
        finally:
            await aclose_stream(response)
