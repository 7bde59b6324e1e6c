"""
Text and tool-call generation for LLM Kit
"""

import time
from dataclasses import dataclass, field
from typing import Any, AsyncIterable, AsyncIterator, Mapping, Optional, Sequence, Tuple, Union

from ..core.exceptions import LLMKitError
from ..core.model import LanguageModel
from ..core.types import (
    CallWarning,
    ErrorPart,
    FinalMetadataPart,
    FinishReason,
    ParsedToolCall,
    RegularMode,
    StreamPart,
    TextDeltaPart,
    ToolCallDeltaPart,
    ToolCallStreamPart,
    Usage,
)
from ..middleware.tracing import set_span_attributes, traced_span
from ..tools.function_calling import Tool, parse_tool_call, to_tool_definitions
from ..utils.logging import LoggingContext, log_response
from ..utils.streaming import ReplayableStream, aclose_stream, astream_to_string
from .base import build_call_options, log_call, observe_stream, span_attributes

TextStreamPart = Union[TextDeltaPart, ToolCallDeltaPart, ParsedToolCall, FinalMetadataPart, ErrorPart]


@dataclass(frozen=True)
class GenerateTextResult:
    """
    The result of a regular-mode call

    Attributes:
        text: Generated text, if any
        tool_calls: Tool calls, parsed and validated against the declared tools
        finish_reason: Why the model stopped generating
        usage: Token usage reported by the backend
        warnings: Warnings reported by the backend
    """

    text: Optional[str] = None
    tool_calls: Tuple[ParsedToolCall, ...] = ()
    finish_reason: FinishReason = "other"
    usage: Usage = field(default_factory=Usage)
    warnings: Tuple[CallWarning, ...] = ()


async def generate_text(
    *,
    model: LanguageModel,
    tools: Optional[Mapping[str, Tool]] = None,
    system: Optional[str] = None,
    prompt: Optional[str] = None,
    messages: Optional[Sequence[Any]] = None,
    tracing: bool = False,
    tracer_name: str = "llm_kit",
    **settings: Any,
) -> GenerateTextResult:
    """
    Generate text, optionally letting the model call tools

    Tools are never executed here; the parsed calls are returned to the caller.

    Args:
        model: The model to call
        tools: Tools the model may call, keyed by name
        system: System instruction
        prompt: Plain user prompt (exclusive with messages)
        messages: Conversation messages (exclusive with prompt)
        tracing: Whether to open an OpenTelemetry span around the model call
        tracer_name: OpenTelemetry tracer name
        **settings: Generation settings (max_tokens, temperature, top_p, ...)

    Returns:
        GenerateTextResult

    Raises:
        NoSuchToolError: If the model called an undeclared tool
        InvalidToolArgumentsError: If tool arguments fail to parse or validate
        ProviderError: If the backend call fails
    """
    options = build_call_options(RegularMode(tools=to_tool_definitions(tools)), system, prompt, messages, settings)

    with LoggingContext(model.provider, model.model_id, metadata={"operation": "generate_text"}) as ctx:
        log_call(ctx.request_id, model, options)
        async with traced_span(tracing, f"{model.provider}.generate", span_attributes(model, options), tracer_name) as span:
            response = await model.generate(options)
            set_span_attributes(
                span,
                {
                    "llm.finish_reason": response.finish_reason,
                    "llm.usage.prompt_tokens": response.usage.prompt_tokens,
                    "llm.usage.completion_tokens": response.usage.completion_tokens,
                },
            )

        log_response(
            request_id=ctx.request_id,
            provider=model.provider,
            model=model.model_id,
            response=response.text,
            latency=ctx.latency,
            finish_reason=response.finish_reason,
            usage=response.usage.model_dump(),
        )
        tool_calls = tuple(parse_tool_call(tool_call, tools) for tool_call in response.tool_calls or ())

    return GenerateTextResult(
        text=response.text,
        tool_calls=tool_calls,
        finish_reason=response.finish_reason,
        usage=response.usage,
        warnings=response.warnings,
    )


class StreamTextResult:
    """
    Lazily consumed result of ``stream_text``

    ``text_stream`` yields the text fragments only. ``full_stream`` yields
    every part, with completed tool calls replaced by their parsed and
    validated form; a call that fails to parse becomes an ``error`` part.
    Both views can be subscribed to any number of times.
    """

    def __init__(
        self,
        parts: AsyncIterable[StreamPart],
        tools: Optional[Mapping[str, Tool]] = None,
        model: Optional[LanguageModel] = None,
        request_id: Optional[str] = None,
    ):
        self.tools = tools
        self.finish_reason: Optional[FinishReason] = None
        self.usage: Optional[Usage] = None
        if model is not None:
            parts = observe_stream(parts, model, request_id or "", self._record, time.monotonic())
        else:
            parts = self._recorded(parts)
        self._parts: ReplayableStream[StreamPart] = ReplayableStream(parts)

    async def _recorded(self, parts: AsyncIterable[StreamPart]) -> AsyncIterator[StreamPart]:
        try:
            async for part in parts:
                self._record(part)
                yield part
        finally:
            await aclose_stream(parts)

    def _record(self, part: StreamPart) -> None:
        if isinstance(part, FinalMetadataPart):
            self.finish_reason = part.finish_reason
            self.usage = part.usage

    @property
    def text_stream(self) -> AsyncIterator[str]:
        return self._text()

    @property
    def full_stream(self) -> AsyncIterator[TextStreamPart]:
        return self._full()

    async def _text(self) -> AsyncIterator[str]:
        async for part in self._parts:
            if isinstance(part, TextDeltaPart):
                yield part.text_delta

    async def _full(self) -> AsyncIterator[TextStreamPart]:
        async for part in self._parts:
            if isinstance(part, ToolCallStreamPart):
                try:
                    parsed = parse_tool_call(part, self.tools)
                except LLMKitError as e:
                    yield ErrorPart(error=e)
                else:
                    yield parsed
            else:
                yield part

    async def text(self) -> str:
        """Consume the text stream and return the full text."""
        return await astream_to_string(self.text_stream)

    @property
    def done(self) -> bool:
        return self._parts.done

    async def aclose(self) -> None:
        """Stop reading the model stream and release it."""
        await self._parts.aclose()

    async def __aenter__(self) -> "StreamTextResult":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


async def stream_text(
    *,
    model: LanguageModel,
    tools: Optional[Mapping[str, Tool]] = None,
    system: Optional[str] = None,
    prompt: Optional[str] = None,
    messages: Optional[Sequence[Any]] = None,
    tracing: bool = False,
    tracer_name: str = "llm_kit",
    **settings: Any,
) -> StreamTextResult:
    """
    Stream text and tool calls

    Args:
        model: The model to call
        tools: Tools the model may call, keyed by name
        system: System instruction
        prompt: Plain user prompt (exclusive with messages)
        messages: Conversation messages (exclusive with prompt)
        tracing: Whether to open an OpenTelemetry span around the stream start
        tracer_name: OpenTelemetry tracer name
        **settings: Generation settings (max_tokens, temperature, top_p, ...)

    Returns:
        StreamTextResult

    Raises:
        ProviderError: If the backend rejects the call
    """
    options = build_call_options(RegularMode(tools=to_tool_definitions(tools)), system, prompt, messages, settings)

    with LoggingContext(model.provider, model.model_id, metadata={"operation": "stream_text"}) as ctx:
        log_call(ctx.request_id, model, options)
        async with traced_span(tracing, f"{model.provider}.stream", span_attributes(model, options), tracer_name):
            parts = await model.stream(options)

    return StreamTextResult(parts, tools=tools, model=model, request_id=ctx.request_id)
