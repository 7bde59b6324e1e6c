"""
Stream normalization for LLM Kit

Converts a backend's native incremental output into the canonical stream-part
sequence. Everything here is a per-chunk transform: nothing is buffered beyond
what a single native chunk requires.
"""

from typing import Any, AsyncIterable, AsyncIterator, Dict, List, Optional

from ..utils.streaming import aclose_stream
from .tool_calls import ToolCallAccumulator
from .types import (
    ErrorPart,
    FinalMetadataPart,
    FinishReason,
    GenerateResponse,
    StreamPart,
    TextDeltaPart,
    ToolCallDeltaPart,
    ToolCallStreamPart,
    Usage,
)

_FINISH_REASONS: Dict[str, FinishReason] = {
    "stop": "stop",
    "length": "length",
    "content_filter": "content-filter",
    "tool_calls": "tool-calls",
    "function_call": "tool-calls",
}


def map_finish_reason(reason: Optional[str]) -> FinishReason:
    """Map an OpenAI-style finish reason onto the canonical set."""
    if reason is None:
        return "other"
    return _FINISH_REASONS.get(reason, "other")


def _field(obj: Any, name: str, default: Any = None) -> Any:
    # chunks arrive either as plain dicts or as SDK objects
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def parse_usage(usage: Any) -> Usage:
    if usage is None:
        return Usage()
    return Usage(
        prompt_tokens=int(_field(usage, "prompt_tokens", 0) or 0),
        completion_tokens=int(_field(usage, "completion_tokens", 0) or 0),
    )


class ChatChunkNormalizer:
    """
    Normalizer for OpenAI-compatible chat completion chunks

    One instance belongs to one stream; it owns the stream's tool-call
    accumulator and remembers the finish reason and usage until ``flush``.
    """

    def __init__(self, provider: Optional[str] = None):
        self.provider = provider
        self.tool_calls = ToolCallAccumulator(provider=provider)
        self.finish_reason: FinishReason = "other"
        self.usage = Usage()

    def transform(self, chunk: Any) -> List[StreamPart]:
        """
        Convert one native chunk into zero or more stream parts

        Args:
            chunk: A chat completion chunk (dict or SDK object)

        Returns:
            Stream parts in the order the chunk carries them
        """
        parts: List[StreamPart] = []

        error = _field(chunk, "error")
        if error:
            parts.append(ErrorPart(error=error))
            return parts

        usage = _field(chunk, "usage")
        if usage is not None:
            self.usage = parse_usage(usage)

        choices = _field(chunk, "choices") or []
        if not choices:
            return parts
        choice = choices[0]

        finish_reason = _field(choice, "finish_reason")
        if finish_reason is not None:
            self.finish_reason = map_finish_reason(finish_reason)

        delta = _field(choice, "delta")
        if delta is None:
            return parts

        content = _field(delta, "content")
        if content is not None:
            parts.append(TextDeltaPart(text_delta=content))

        for tool_call_delta in _field(delta, "tool_calls") or []:
            function = _field(tool_call_delta, "function")
            parts.extend(
                self.tool_calls.add(
                    _field(tool_call_delta, "index", 0),
                    tool_call_id=_field(tool_call_delta, "id"),
                    tool_name=_field(function, "name"),
                    args_text_delta=_field(function, "arguments"),
                )
            )
        return parts

    def flush(self) -> List[StreamPart]:
        """Emit the trailing parts once the transport has ended."""
        parts = self.tool_calls.flush()
        parts.append(FinalMetadataPart(finish_reason=self.finish_reason, usage=self.usage))
        return parts


async def normalize_stream(chunks: AsyncIterable[Any], normalizer: ChatChunkNormalizer) -> AsyncIterator[StreamPart]:
    """
    Drive a normalizer over a native chunk stream

    ``final-metadata`` is emitted after the last chunk, so it is always the
    final part of the sequence.
    """
    try:
        async for chunk in chunks:
            for part in normalizer.transform(chunk):
                yield part
    finally:
        await aclose_stream(chunks)
    for part in normalizer.flush():
        yield part


async def single_shot_stream(response: GenerateResponse) -> AsyncIterator[StreamPart]:
    """
    Present a blocking response as a stream

    For backends without native deltas: the whole text arrives as one
    text-delta, each tool call as one full-argument delta plus its completion.
    """
    if response.text is not None:
        yield TextDeltaPart(text_delta=response.text)
    for index, tool_call in enumerate(response.tool_calls or ()):
        yield ToolCallDeltaPart(
            index=index,
            tool_call_id=tool_call.tool_call_id,
            tool_name=tool_call.tool_name,
            args_text_delta=tool_call.args,
        )
        yield ToolCallStreamPart(
            tool_call_id=tool_call.tool_call_id,
            tool_name=tool_call.tool_name,
            args=tool_call.args,
        )
    yield FinalMetadataPart(finish_reason=response.finish_reason, usage=response.usage)
