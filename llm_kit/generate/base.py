"""
Call preparation shared by the generation operations
"""

import time
from typing import Any, AsyncIterable, AsyncIterator, Callable, Dict, Optional, Sequence

from pydantic import ValidationError

from ..core.exceptions import ConfigurationError
from ..core.model import LanguageModel
from ..core.types import CallMode, CallOptions, CallSettings, FinalMetadataPart, StreamPart
from ..prompt.convert import convert_to_model_prompt, get_input_format
from ..utils.logging import log_request, log_response
from ..utils.streaming import aclose_stream

_SETTING_NAMES = frozenset(CallSettings.model_fields)


def build_call_options(
    mode: CallMode,
    system: Optional[str],
    prompt: Optional[str],
    messages: Optional[Sequence[Any]],
    settings: Dict[str, Any],
) -> CallOptions:
    """
    Assemble the CallOptions for one model call

    Args:
        mode: Wire call mode
        system: System instruction to send
        prompt: Plain user prompt
        messages: Conversation messages
        settings: Caller generation settings (max_tokens, temperature, ...)

    Raises:
        InvalidPromptError: If the prompt form is invalid
        ConfigurationError: If a setting is unknown or out of range
    """
    unknown = sorted(set(settings) - _SETTING_NAMES)
    if unknown:
        raise ConfigurationError(f"Unknown call settings: {', '.join(unknown)}")

    input_format = get_input_format(prompt, messages)
    model_prompt = convert_to_model_prompt(system=system, prompt=prompt, messages=messages)
    try:
        return CallOptions(mode=mode, prompt=model_prompt, input_format=input_format, **settings)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid call settings: {e}") from e


def span_attributes(model: LanguageModel, options: CallOptions) -> Dict[str, Any]:
    attributes = {
        "llm.provider": model.provider,
        "llm.model": model.model_id,
        "llm.mode": options.mode.type,
    }
    for name in _SETTING_NAMES:
        value = getattr(options, name)
        if value is not None:
            attributes[f"llm.{name}"] = value
    return attributes


def log_call(request_id: str, model: LanguageModel, options: CallOptions) -> None:
    log_request(
        request_id=request_id,
        provider=model.provider,
        model=model.model_id,
        mode=options.mode.type,
        prompt=options.prompt,
    )


async def observe_stream(
    parts: AsyncIterable[StreamPart],
    model: LanguageModel,
    request_id: str,
    on_part: Callable[[StreamPart], None],
    started: float,
) -> AsyncIterator[StreamPart]:
    """
    Pass parts through unchanged while recording them once per stream

    ``on_part`` sees every part exactly once, however many subscriptions
    later replay the stream. The response is logged when the stream ends.
    """
    finish_reason = None
    usage = None
    try:
        async for part in parts:
            on_part(part)
            if isinstance(part, FinalMetadataPart):
                finish_reason = part.finish_reason
                usage = part.usage
            yield part
    finally:
        await aclose_stream(parts)

    log_response(
        request_id=request_id,
        provider=model.provider,
        model=model.model_id,
        response=None,
        latency=time.monotonic() - started,
        finish_reason=finish_reason,
        usage=usage.model_dump() if usage is not None else None,
    )
