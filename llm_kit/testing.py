"""
Test doubles for LLM Kit

``MockLanguageModel`` implements the model contract with caller-supplied
behavior and records every CallOptions it receives.
"""

import inspect
from typing import Any, AsyncIterator, Awaitable, Callable, Iterable, List, Optional, Union

from .core.model import LanguageModel
from .core.types import CallOptions, GenerateResponse, StreamPart
from .utils.streaming import async_iterable_from

GenerateHandler = Callable[[CallOptions], Union[GenerateResponse, Awaitable[GenerateResponse]]]
StreamHandler = Callable[[CallOptions], Union[Iterable[StreamPart], AsyncIterator[StreamPart]]]


class MockLanguageModel(LanguageModel):
    """
    Scriptable LanguageModel

    Args:
        do_generate: Returns (or resolves to) the GenerateResponse for a call
        do_stream: Returns the parts for a call, as an iterable or async iterator
        default_object_mode: Declared default structured mode
        provider: Provider name reported by the model
        model_id: Model ID reported by the model
    """

    def __init__(
        self,
        do_generate: Optional[GenerateHandler] = None,
        do_stream: Optional[StreamHandler] = None,
        default_object_mode: Optional[str] = None,
        provider: str = "mock-provider",
        model_id: str = "mock-model-id",
    ):
        self.do_generate = do_generate
        self.do_stream = do_stream
        self.default_object_mode = default_object_mode
        self.provider = provider
        self.model_id = model_id
        self.calls: List[CallOptions] = []

    async def generate(self, options: CallOptions) -> GenerateResponse:
        self.calls.append(options)
        if self.do_generate is None:
            raise NotImplementedError("MockLanguageModel.generate was not configured")
        result: Any = self.do_generate(options)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def stream(self, options: CallOptions) -> AsyncIterator[StreamPart]:
        self.calls.append(options)
        if self.do_stream is None:
            raise NotImplementedError("MockLanguageModel.stream was not configured")
        parts = self.do_stream(options)
        if hasattr(parts, "__aiter__"):
            return parts
        return async_iterable_from(parts)
