from __future__ import annotations
from typing import Any, Dict, Optional, Tuple, Union
from .config import KitConfig, OpenAIConfig
from .core.exceptions import ConfigurationError
from .core.model import LanguageModel
from .generate.object import GenerateObjectResult, generate_object
from .generate.stream_object import StreamObjectResult, stream_object
from .generate.text import GenerateTextResult, StreamTextResult, generate_text, stream_text
from .providers import get_provider_class

ModelRef = Union[str, LanguageModel]


class LLMKit:
    """
    Unified async interface:
      - generate_text(...)
      - stream_text(...)
      - generate_object(..., schema=YourModel)
      - stream_object(..., schema=YourModel)

    ``model`` arguments accept a LanguageModel or a "provider:model_id" string,
    resolved through the provider registry against this kit's configuration.
    """
    def __init__(self, cfg: Optional[KitConfig] = None):
        self.cfg = cfg or KitConfig()
        self.models: Dict[Tuple[str, str], LanguageModel] = {}

    def _provider_config(self, provider: str) -> Any:
        if provider == "openai":
            # the SDK reads its own environment defaults
            return self.cfg.openai or OpenAIConfig()
        c = self.cfg.providers.get(provider)
        if c is None:
            raise ConfigurationError(f"Provider '{provider}' not configured", provider=provider)
        return c

    def model(self, provider: str, model_id: Optional[str] = None) -> LanguageModel:
        """
        Build (or reuse) the adapter for a model

        Args:
            provider: Provider name, or a "provider:model_id" string
            model_id: Model name when the provider is given separately

        Raises:
            ConfigurationError: If the provider is unknown or not configured
        """
        if model_id is None:
            ref = provider
            provider, sep, model_id = ref.partition(":")
            if not sep or not model_id:
                raise ConfigurationError(f"Expected 'provider:model_id', got '{ref}'")
        key = (provider, model_id)
        if key not in self.models:
            try:
                provider_class = get_provider_class(provider)
            except KeyError as e:
                raise ConfigurationError(str(e.args[0]), provider=provider) from e
            self.models[key] = provider_class(model_id, config=self._provider_config(provider))
        return self.models[key]

    def _resolve(self, model: ModelRef) -> LanguageModel:
        if isinstance(model, LanguageModel):
            return model
        return self.model(model)

    def _tracing(self) -> Dict[str, Any]:
        return {"tracing": self.cfg.enable_tracing, "tracer_name": self.cfg.tracer_name}

    # ---- core APIs -----------------------------------------------------------

    async def generate_text(self, *, model: ModelRef, **kwargs: Any) -> GenerateTextResult:
        return await generate_text(model=self._resolve(model), **self._tracing(), **kwargs)

    async def stream_text(self, *, model: ModelRef, **kwargs: Any) -> StreamTextResult:
        return await stream_text(model=self._resolve(model), **self._tracing(), **kwargs)

    async def generate_object(self, *, model: ModelRef, schema: Any, **kwargs: Any) -> GenerateObjectResult:
        return await generate_object(model=self._resolve(model), schema=schema, **self._tracing(), **kwargs)

    async def stream_object(self, *, model: ModelRef, schema: Any, **kwargs: Any) -> StreamObjectResult:
        return await stream_object(model=self._resolve(model), schema=schema, **self._tracing(), **kwargs)
