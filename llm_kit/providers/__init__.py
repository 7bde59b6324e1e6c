"""
Provider registry for LLM Kit
"""

from typing import Dict, Type

from ..core.model import LanguageModel
from .openai import OpenAIChatModel

# Registry of available providers
PROVIDERS: Dict[str, Type[LanguageModel]] = {
    "openai": OpenAIChatModel,
}


def register_provider(name: str, provider_class: Type[LanguageModel]) -> None:
    """
    Register a new provider with LLM Kit

    Args:
        name: Name of the provider
        provider_class: LanguageModel implementation, constructed as ``provider_class(model_id, config=...)``
    """
    PROVIDERS[name] = provider_class


def get_provider_class(name: str) -> Type[LanguageModel]:
    """
    Get a provider implementation class by name

    Args:
        name: Name of the provider

    Returns:
        The provider implementation class

    Raises:
        KeyError: If the provider is not found
    """
    if name not in PROVIDERS:
        raise KeyError(f"Provider '{name}' not found. Available providers: {', '.join(PROVIDERS.keys())}")

    return PROVIDERS[name]


def list_available_providers() -> Dict[str, Type[LanguageModel]]:
    """
    Get a dictionary of all available providers

    Returns:
        Dictionary of provider names to provider classes
    """
    return PROVIDERS.copy()
