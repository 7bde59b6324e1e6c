"""
tests/helpers.py - shared schemas and mock-model builders.
"""

from typing import Any, List

from pydantic import BaseModel

from llm_kit.core.types import GenerateResponse, StreamPart
from llm_kit.testing import MockLanguageModel


class Person(BaseModel):
    name: str


def generate_returning(response: GenerateResponse, **kwargs: Any) -> MockLanguageModel:
    """Mock model whose generate call always returns ``response``."""
    return MockLanguageModel(do_generate=lambda options: response, **kwargs)


def stream_returning(parts: List[StreamPart], **kwargs: Any) -> MockLanguageModel:
    """Mock model whose stream call yields ``parts``."""
    return MockLanguageModel(do_stream=lambda options: list(parts), **kwargs)
