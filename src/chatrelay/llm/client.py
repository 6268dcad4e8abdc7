"""Single-shot text generation against a chat model.

The client holds no conversation state: every ``generate()`` call sends the
fixed system persona plus one user prompt and returns the trimmed reply.
"""

import asyncio

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from .factory import LLMModelFactory
from ..base.loggable import Loggable
from ..config.settings import Settings
from ..core.errors import GenerationError


class LanguageGenerationClient(Loggable):
    """Wrap a chat model behind a ``generate(prompt) -> str`` contract.

    Attributes:
      - model: LangChain chat model, already configured with the reply
        length cap and sampling temperature.
      - persona: System instruction sent with every request.
      - timeout: Seconds allowed per call; a timeout is a ``GenerationError``.
    """

    def __init__(self, model: BaseChatModel, persona: str, timeout: float) -> None:
        super().__init__()
        self.model = model
        self.persona = persona
        self.timeout = timeout

    @classmethod
    def from_settings(
        cls, settings: Settings, llm_factory: LLMModelFactory
    ) -> "LanguageGenerationClient":
        """Build the client from application settings."""
        return cls(
            model=llm_factory.create_model(),
            persona=settings.system_persona,
            timeout=settings.generation_timeout,
        )

    async def generate(self, prompt: str) -> str:
        """Return the model's reply to ``prompt``.

        Raises:
            GenerationError: On upstream failure, timeout, or an empty or
                non-text reply. No retry is attempted.
        """
        messages = [SystemMessage(content=self.persona), HumanMessage(content=prompt)]
        try:
            response = await asyncio.wait_for(
                self.model.ainvoke(messages), timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            raise GenerationError(
                f"no reply within {self.timeout}s", {"timeout": self.timeout}
            ) from e
        except Exception as e:
            raise GenerationError(
                str(e) or type(e).__name__, {"upstream_error": type(e).__name__}
            ) from e

        content = getattr(response, "content", None)
        if not isinstance(content, str):
            raise GenerationError(
                "malformed reply payload", {"content_type": type(content).__name__}
            )

        text = content.strip()
        if not text:
            raise GenerationError("empty reply")
        return text
