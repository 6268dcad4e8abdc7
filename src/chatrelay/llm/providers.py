"""Provider interfaces and implementations for chat LLMs.

Includes:
- ``BaseLLMProvider`` abstract interface.
- Concrete providers for OpenAI, Anthropic/Claude, and Google/Gemini.
- ``ModelConfig`` dataclass for model configuration and optional params.

Only ``langchain-openai`` is a core dependency; the other provider packages
are extras. A missing package raises a clear ``ImportError`` when used.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from langchain_core.language_models.chat_models import BaseChatModel

try:
    from langchain_openai import ChatOpenAI

    HAS_OPENAI = True
except ImportError:
    HAS_OPENAI = False
    ChatOpenAI = None

try:
    from langchain_anthropic import ChatAnthropic

    HAS_ANTHROPIC = True
except ImportError:
    HAS_ANTHROPIC = False
    ChatAnthropic = None

try:
    from langchain_google_genai import ChatGoogleGenerativeAI

    HAS_GOOGLE = True
except ImportError:
    HAS_GOOGLE = False
    ChatGoogleGenerativeAI = None


@dataclass
class ModelConfig:
    """Configuration for the reply model.

    Fields:
    - provider: Provider key or alias ("openai", "anthropic"/"claude",
      "google"/"gemini").
    - model_name: Provider-specific model identifier.
    - temperature: Sampling temperature.
    - max_tokens: Reply length cap in tokens.
    - api_key: API key for provider (may be resolved by the factory).
    - request_timeout: Seconds the provider SDK waits for one HTTP request.
      The generation client enforces its own deadline on top of this.
    - additional_params: Extra provider-specific parameters.
    """

    provider: str
    model_name: str
    temperature: float = 0.7
    max_tokens: int = 100
    api_key: Optional[str] = None
    request_timeout: Optional[float] = None
    additional_params: Dict[str, Any] = field(default_factory=dict)


class BaseLLMProvider(ABC):
    """Build a chat model for one vendor.

    Subclasses name their LangChain package and map ``ModelConfig`` onto the
    vendor's keyword arguments; ``create_model`` handles the rest.
    """

    package: str = ""

    @property
    @abstractmethod
    def available(self) -> bool:
        """Whether the provider's LangChain package is importable."""

    @abstractmethod
    def _build(self, config: ModelConfig) -> BaseChatModel:
        pass

    def create_model(self, config: ModelConfig) -> BaseChatModel:
        """Create the provider's chat model.

        Raises:
            ImportError: If the provider package is not installed.
        """
        if not self.available:
            raise ImportError(
                f"{self.package} is not installed. Install with: pip install {self.package}"
            )
        return self._build(config)


class OpenAIProvider(BaseLLMProvider):
    """OpenAI provider implementation."""

    package = "langchain-openai"

    @property
    def available(self) -> bool:
        return HAS_OPENAI

    def _build(self, config: ModelConfig) -> BaseChatModel:
        return ChatOpenAI(
            model=config.model_name,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            api_key=config.api_key,
            timeout=config.request_timeout,
            **config.additional_params,
        )


class AnthropicProvider(BaseLLMProvider):
    """Anthropic (Claude) provider implementation."""

    package = "langchain-anthropic"

    @property
    def available(self) -> bool:
        return HAS_ANTHROPIC

    def _build(self, config: ModelConfig) -> BaseChatModel:
        return ChatAnthropic(
            model=config.model_name,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            api_key=config.api_key,
            timeout=config.request_timeout,
            **config.additional_params,
        )


class GoogleGenAIProvider(BaseLLMProvider):
    """Google Generative AI (Gemini) provider implementation."""

    package = "langchain-google-genai"

    @property
    def available(self) -> bool:
        return HAS_GOOGLE

    def _build(self, config: ModelConfig) -> BaseChatModel:
        # Gemini names the reply cap max_output_tokens.
        return ChatGoogleGenerativeAI(
            model=config.model_name,
            temperature=config.temperature,
            max_output_tokens=config.max_tokens,
            google_api_key=config.api_key,
            timeout=config.request_timeout,
            **config.additional_params,
        )
