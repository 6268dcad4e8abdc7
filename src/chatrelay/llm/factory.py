"""Factory for the chat model behind the generation client.

Resolves the provider through ``ProviderRegistry`` and fills in credentials
from ``Settings`` when the ``ModelConfig`` carries none.
"""

from typing import Dict, Optional

from langchain_core.language_models import BaseChatModel

from .providers import (
    AnthropicProvider,
    BaseLLMProvider,
    GoogleGenAIProvider,
    ModelConfig,
    OpenAIProvider,
)
from ..base.loggable import Loggable
from ..config.settings import Settings


class ProviderRegistry(Loggable):
    """Registry of LLM providers.

    Anthropic is also reachable as ``"claude"`` and Google GenAI as
    ``"gemini"``; ``Settings`` accepts the same names.
    """

    def __init__(self):
        super().__init__()
        self._providers: Dict[str, BaseLLMProvider] = {
            "openai": OpenAIProvider(),
            "anthropic": AnthropicProvider(),
            "claude": AnthropicProvider(),
            "google": GoogleGenAIProvider(),
            "gemini": GoogleGenAIProvider(),
        }

    def get_provider(self, provider_name: str) -> Optional[BaseLLMProvider]:
        """Return provider by name or alias, or ``None`` if unknown."""
        return self._providers.get(provider_name)


class LLMModelFactory(Loggable):
    """Create chat models with provider and credential handling."""

    def __init__(self, settings: Settings):
        super().__init__()
        self.settings = settings
        self.provider_registry = ProviderRegistry()

    def default_config(self) -> ModelConfig:
        """Build the reply model configuration from settings.

        Retries are disabled: a failed call surfaces immediately and the
        caller substitutes its fallback text. The SDK request timeout matches
        the generation deadline so an abandoned call does not linger.
        """
        return ModelConfig(
            provider=self.settings.default_llm_provider,
            model_name=self.settings.llm_model_name,
            temperature=self.settings.temperature,
            max_tokens=self.settings.max_output_tokens,
            api_key=self.settings.get_api_key_for_provider(
                self.settings.default_llm_provider
            ),
            request_timeout=self.settings.generation_timeout,
            additional_params={"max_retries": 0},
        )

    def create_model(self, config: Optional[ModelConfig] = None) -> BaseChatModel:
        """Create a chat model.

        Args:
            config: Explicit configuration; defaults to ``default_config()``.

        Returns:
            A provider-specific ``BaseChatModel`` instance.

        Raises:
            ValueError: If the provider is unknown or credentials are missing.
        """
        config = config or self.default_config()

        provider = self.provider_registry.get_provider(config.provider)
        if not provider:
            raise ValueError(f"Unknown provider: {config.provider}")

        self._ensure_api_key(config)

        model = provider.create_model(config)
        self.logger.info(
            f"Created model: {config.provider}:{config.model_name} "
            f"(max_tokens={config.max_tokens}, temperature={config.temperature})"
        )
        return model

    def _ensure_api_key(self, config: ModelConfig) -> None:
        """Resolve a missing ``config.api_key`` via ``Settings``.

        Raises:
            ValueError: If no key is configured for the provider.
        """
        if not (config.api_key and config.api_key.strip()):
            if not self.settings.validate_provider_credentials(config.provider):
                raise ValueError(f"No API key found for provider: {config.provider}")
            config.api_key = self.settings.get_api_key_for_provider(config.provider)
