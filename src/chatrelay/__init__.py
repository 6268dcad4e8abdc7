"""chatrelay package public API and version.

Exposes convenient imports for external consumers:
- `Settings`: application configuration
- `ConversationOrchestrator`: conversation state machine
- `LanguageGenerationClient`: single-shot LLM generation
- `ChatStateStore`: conversation state storage interface
"""

__version__ = "1.0.0"

from .config.settings import Settings
from .core.orchestrator import ConversationOrchestrator
from .llm.client import LanguageGenerationClient
from .storage.base import ChatStateStore

__all__ = [
    "Settings",
    "ConversationOrchestrator",
    "LanguageGenerationClient",
    "ChatStateStore",
]
