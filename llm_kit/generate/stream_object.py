"""
Partial object streaming for LLM Kit

The model's text (json/grammar modes) or tool-call arguments (tool mode) are
accumulated and re-parsed with the tolerant partial parser after each
fragment. A snapshot is delivered only when it differs structurally from the
previous one.
"""

import time
from typing import Any, AsyncIterable, AsyncIterator, List, Optional, Sequence

from ..core.model import LanguageModel, resolve_object_mode
from ..core.types import (
    ErrorPart,
    FinalMetadataPart,
    FinishReason,
    ObjectMode,
    StreamPart,
    TextDeltaPart,
    ToolCallDeltaPart,
    Usage,
)
from ..middleware.tracing import traced_span
from ..schema.object_schema import as_object_schema
from ..tools.structured_output import build_object_call
from ..utils.json_parsing import is_deep_equal_data, parse_partial_json
from ..utils.logging import LoggingContext, logger
from ..utils.streaming import ReplayableStream, aclose_stream
from .base import build_call_options, log_call, observe_stream, span_attributes


class PartialObjectAccumulator:
    """
    Per-subscription state of a partial object stream

    Attributes:
        mode: Structured mode of the call, selecting which parts carry object text
        accumulated_text: All object text received so far
        latest: The last snapshot delivered (meaningful once has_emitted is set)
    """

    def __init__(self, mode: ObjectMode):
        self.mode = mode
        self.accumulated_text = ""
        self.latest: Any = None
        self.has_emitted = False
        self._tool_index: Optional[int] = None

    def _fragment(self, part: StreamPart) -> Optional[str]:
        if self.mode == "tool":
            if not isinstance(part, ToolCallDeltaPart):
                return None
            # only the forced object tool contributes, which is the first call opened
            if self._tool_index is None:
                self._tool_index = part.index
            return part.args_text_delta if part.index == self._tool_index else None
        if isinstance(part, TextDeltaPart):
            return part.text_delta
        return None

    def push(self, part: StreamPart) -> bool:
        """
        Apply one stream part

        Returns:
            True when the part produced a new snapshot, now held in ``latest``
        """
        fragment = self._fragment(part)
        if not fragment:
            return False

        self.accumulated_text += fragment
        parsed = parse_partial_json(self.accumulated_text)
        if not parsed.has_value:
            return False
        if self.has_emitted and is_deep_equal_data(parsed.value, self.latest):
            return False

        self.latest = parsed.value
        self.has_emitted = True
        return True


class StreamObjectResult:
    """
    Lazily consumed result of ``stream_object``

    Each call to ``partial_object_stream`` (or each ``async for`` over the
    result) starts a new subscription with its own accumulator. All
    subscriptions share the single underlying model stream, which is read at
    most once.

    After the stream has been consumed, ``errors`` holds the causes of any
    error parts, and ``finish_reason`` / ``usage`` hold the final metadata.
    Use ``async with`` or ``aclose`` to release the model stream when
    stopping early.
    """

    def __init__(
        self,
        parts: AsyncIterable[StreamPart],
        mode: ObjectMode,
        model: Optional[LanguageModel] = None,
        request_id: Optional[str] = None,
    ):
        self.mode = mode
        self.errors: List[Any] = []
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
        if isinstance(part, ErrorPart):
            logger.warning("Error part in object stream: %s", part.error)
            self.errors.append(part.error)
        elif isinstance(part, FinalMetadataPart):
            self.finish_reason = part.finish_reason
            self.usage = part.usage

    @property
    def done(self) -> bool:
        return self._parts.done

    async def aclose(self) -> None:
        """
        Stop reading the model stream and release it

        Subscriptions still replay the parts received so far, then end.
        """
        await self._parts.aclose()

    async def __aenter__(self) -> "StreamObjectResult":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    @property
    def partial_object_stream(self) -> AsyncIterator[Any]:
        return self._partial_objects()

    def __aiter__(self) -> AsyncIterator[Any]:
        return self._partial_objects()

    async def _partial_objects(self) -> AsyncIterator[Any]:
        accumulator = PartialObjectAccumulator(self.mode)
        async for part in self._parts:
            if accumulator.push(part):
                yield accumulator.latest


async def stream_object(
    *,
    model: LanguageModel,
    schema: Any,
    mode: Optional[ObjectMode] = None,
    system: Optional[str] = None,
    prompt: Optional[str] = None,
    messages: Optional[Sequence[Any]] = None,
    tracing: bool = False,
    tracer_name: str = "llm_kit",
    **settings: Any,
) -> StreamObjectResult:
    """
    Stream partial objects for a schema

    Awaiting this starts the model stream; iterate the result for snapshots.
    Snapshots are deep partial values and are not validated against the
    schema.

    Args:
        model: The model to call
        schema: Pydantic model, JSON-Schema dict or ObjectSchema
        mode: Structured mode; the model's default when omitted
        system: System instruction
        prompt: Plain user prompt (exclusive with messages)
        messages: Conversation messages (exclusive with prompt)
        tracing: Whether to open an OpenTelemetry span around the stream start
        tracer_name: OpenTelemetry tracer name
        **settings: Generation settings (max_tokens, temperature, top_p, ...)

    Returns:
        StreamObjectResult

    Raises:
        NoDefaultObjectModeError: If no mode is given and the model declares none
        UnsupportedModeError: If the model cannot implement the mode
        ProviderError: If the backend rejects the call
    """
    resolved_mode = resolve_object_mode(model, mode)
    object_call = build_object_call(resolved_mode, as_object_schema(schema), system)
    options = build_call_options(object_call.mode, object_call.system, prompt, messages, settings)

    with LoggingContext(model.provider, model.model_id, metadata={"operation": "stream_object"}) as ctx:
        log_call(ctx.request_id, model, options)
        async with traced_span(tracing, f"{model.provider}.stream", span_attributes(model, options), tracer_name):
            parts = await model.stream(options)

    return StreamObjectResult(parts, resolved_mode, model=model, request_id=ctx.request_id)
