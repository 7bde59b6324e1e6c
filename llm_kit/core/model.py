"""
Versioned model contract implemented by every backend adapter
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator, Literal, Optional

from .exceptions import NoDefaultObjectModeError, UnsupportedModeError
from .types import OBJECT_MODES, CallOptions, GenerateResponse, ObjectMode, StreamPart


class LanguageModel(ABC):
    """
    Interface a backend adapter implements

    Adapters declare their capabilities as attributes instead of having them
    inferred from the vendor name. ``default_object_mode`` is the structured
    mode that gives the best results for this model, or None when the model
    cannot generate objects without an explicit mode.
    """

    specification_version: Literal["v1"] = "v1"
    provider: str
    model_id: str
    default_object_mode: Optional[ObjectMode] = None

    @abstractmethod
    async def generate(self, options: CallOptions) -> GenerateResponse:
        """Run a blocking call and return the complete response."""

    @abstractmethod
    async def stream(self, options: CallOptions) -> AsyncIterator[StreamPart]:
        """
        Start a streaming call

        Awaiting this resolves once the backend accepted the request. The
        returned iterator yields normalized parts in emission order; a
        ``final-metadata`` part, when present, is always the last one.
        """

    def unsupported_mode(self, mode: str) -> UnsupportedModeError:
        return UnsupportedModeError(mode, provider=self.provider, details={"model_id": self.model_id})

    def __repr__(self) -> str:
        return f"{type(self).__name__}(provider={self.provider!r}, model_id={self.model_id!r})"


def resolve_object_mode(model: LanguageModel, mode: Optional[str] = None) -> ObjectMode:
    """
    Pick the structured mode for an object call

    Args:
        model: The model the call goes to
        mode: Mode requested by the caller, if any

    Returns:
        The explicit mode, else the model's declared default

    Raises:
        NoDefaultObjectModeError: If neither is present
        UnsupportedModeError: If the mode is not a structured mode name
    """
    resolved = mode if mode is not None else model.default_object_mode
    if resolved is None:
        raise NoDefaultObjectModeError(provider=model.provider, model_id=model.model_id)
    if resolved not in OBJECT_MODES:
        raise model.unsupported_mode(resolved)
    return resolved
