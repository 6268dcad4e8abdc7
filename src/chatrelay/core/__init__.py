"""Core orchestration and shared state exports.

Exposes:
- `ConversationOrchestrator`: LangGraph-based conversation state machine
- `ConversationState`, `Exchange`, `InboundMessage`: domain types
- `ConversationLocks`: per-conversation serialization
"""

from .locks import ConversationLocks
from .orchestrator import ConversationOrchestrator
from .state import ConversationState, Exchange, InboundMessage

__all__ = [
    "ConversationLocks",
    "ConversationOrchestrator",
    "ConversationState",
    "Exchange",
    "InboundMessage",
]
