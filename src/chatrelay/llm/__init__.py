"""LLM package exports.

Exposes:
- `LanguageGenerationClient`: single-shot generation with timeout
- `LLMModelFactory`: chat model factory
- `ModelConfig`: provider-agnostic model configuration
- `BaseLLMProvider`: provider interface
"""

from .client import LanguageGenerationClient
from .factory import LLMModelFactory
from .providers import BaseLLMProvider, ModelConfig

__all__ = ["LanguageGenerationClient", "LLMModelFactory", "ModelConfig", "BaseLLMProvider"]
