"""
Structured object generation for LLM Kit
"""

from dataclasses import dataclass, field
from typing import Any, Generic, Optional, Sequence, TypeVar

from ..core.model import LanguageModel, resolve_object_mode
from ..core.types import FinishReason, ObjectMode, Usage
from ..middleware.tracing import set_span_attributes, traced_span
from ..schema.object_schema import as_object_schema
from ..tools.structured_output import build_object_call, extract_object_text, parse_and_validate
from ..utils.logging import LoggingContext, log_response
from .base import build_call_options, log_call, span_attributes

T = TypeVar("T")


@dataclass(frozen=True)
class GenerateObjectResult(Generic[T]):
    """
    The validated result of an object call

    Attributes:
        object: The validated object (a model instance for Pydantic schemas)
        finish_reason: Why the model stopped generating
        usage: Token usage reported by the backend
        warnings: Warnings reported by the backend
    """

    object: T
    finish_reason: FinishReason = "other"
    usage: Usage = field(default_factory=Usage)
    warnings: tuple = ()


async def generate_object(
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
) -> GenerateObjectResult:
    """
    Generate one object that satisfies a schema

    Args:
        model: The model to call
        schema: Pydantic model, JSON-Schema dict or ObjectSchema
        mode: Structured mode; the model's default when omitted
        system: System instruction
        prompt: Plain user prompt (exclusive with messages)
        messages: Conversation messages (exclusive with prompt)
        tracing: Whether to open an OpenTelemetry span around the model call
        tracer_name: OpenTelemetry tracer name
        **settings: Generation settings (max_tokens, temperature, top_p, ...)

    Returns:
        GenerateObjectResult holding the validated object

    Raises:
        NoDefaultObjectModeError: If no mode is given and the model declares none
        UnsupportedModeError: If the model cannot implement the mode
        NoObjectGeneratedError: If the response lacks the output the mode expects
        ObjectParseError: If the generated text is not valid JSON
        ObjectValidationError: If the parsed value does not satisfy the schema
        ProviderError: If the backend call fails
    """
    resolved_mode = resolve_object_mode(model, mode)
    object_schema = as_object_schema(schema)
    object_call = build_object_call(resolved_mode, object_schema, system)
    options = build_call_options(object_call.mode, object_call.system, prompt, messages, settings)

    with LoggingContext(model.provider, model.model_id, metadata={"operation": "generate_object"}) as ctx:
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

        text = extract_object_text(resolved_mode, response, provider=model.provider)
        log_response(
            request_id=ctx.request_id,
            provider=model.provider,
            model=model.model_id,
            response=text,
            latency=ctx.latency,
            finish_reason=response.finish_reason,
            usage=response.usage.model_dump(),
        )
        value = parse_and_validate(text, object_schema)

    return GenerateObjectResult(
        object=value,
        finish_reason=response.finish_reason,
        usage=response.usage,
        warnings=response.warnings,
    )
