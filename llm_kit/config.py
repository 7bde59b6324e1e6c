from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass
class ProviderConfig:
    api_key: Optional[str] = None
    max_retries: Optional[int] = None  # use provider native retry if supported
    timeout: Optional[float] = None    # seconds; forwarded to SDK if supported
    organization: Optional[str] = None # OpenAI org, if applicable
    base_url: Optional[str] = None     # if using Azure/OpenAI compatible endpoints, etc.


@dataclass
class OpenAIConfig(ProviderConfig):
    # Structured mode used when a call does not name one: "tool" or "json"
    object_mode: str = "tool"


@dataclass
class KitConfig:
    openai: Optional[OpenAIConfig] = None
    # Configs for providers added with register_provider, keyed by registry name
    providers: Dict[str, ProviderConfig] = field(default_factory=dict)
    # Tracing
    enable_tracing: bool = False
    tracer_name: str = "llm_kit"
