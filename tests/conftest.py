"""
tests/conftest.py - test harness bootstrap.
No test reaches the network: models are MockLanguageModel instances or
OpenAIChatModel over a fake client.
"""

import logging

import pytest

from llm_kit.providers import PROVIDERS


@pytest.fixture(autouse=True)
def _isolate_registry():
    """Snapshot & restore the provider registry so tests remain hermetic."""
    snapshot = dict(PROVIDERS)
    yield
    PROVIDERS.clear()
    PROVIDERS.update(snapshot)


@pytest.fixture(autouse=True)
def _quiet_kit_logger():
    logging.getLogger("llm_kit").setLevel(logging.WARNING)
    yield
