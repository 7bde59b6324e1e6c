from __future__ import annotations
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional
from opentelemetry import trace

_PRIMITIVES = (str, bool, int, float)


def _span_attributes(attributes: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    # OpenTelemetry only accepts primitives (or sequences of them) as attribute values
    return {k: v for k, v in (attributes or {}).items() if isinstance(v, _PRIMITIVES)}


@asynccontextmanager
async def traced_span(
    enabled: bool,
    name: str,
    attributes: Optional[Dict[str, Any]] = None,
    tracer_name: str = "llm_kit",
) -> AsyncIterator[Optional[trace.Span]]:
    if not enabled:
        yield None
        return
    tracer = trace.get_tracer(tracer_name)
    with tracer.start_as_current_span(name, attributes=_span_attributes(attributes)) as span:
        yield span


def set_span_attributes(span: Optional[trace.Span], attributes: Dict[str, Any]) -> None:
    if span is None:
        return
    span.set_attributes(_span_attributes(attributes))
