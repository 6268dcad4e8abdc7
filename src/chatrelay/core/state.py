"""Conversation state for the chatrelay state machine."""

from dataclasses import dataclass, field
from typing import List, Optional, TypedDict

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class Exchange:
    """One recorded user message and the assistant reply sent for it."""

    user_text: str
    assistant_text: str


@dataclass
class ConversationState:
    """Canonical state record of one conversation.

    Fields:
    - conversation_id: Transport-level conversation identity (Telegram chat id).
    - step: Completed transitions; 0 means Fresh, anything above means Engaged.
    - history: Exchanges in arrival order; only ever appended to.
    """

    conversation_id: int
    step: int = 0
    history: List[Exchange] = field(default_factory=list)

    @property
    def is_fresh(self) -> bool:
        return self.step == 0


class InboundMessage(BaseModel):
    """A text message delivered by the transport."""

    conversation_id: int = Field(description="Conversation the message belongs to")
    text: str = Field(description="Raw message text")


class DispatchState(TypedDict, total=False):
    """State passed between the orchestrator graph nodes for one message.

    Fields:
    - conversation_id: Target conversation.
    - text: Inbound message text.
    - conversation: Snapshot resolved by the ``resolve`` node.
    - transition: Label of the transition taken (``start``, ``prompt_start``,
      ``continue`` or ``continue_failed``).
    - reply: Text sent back to the user.
    """

    conversation_id: int
    text: str
    conversation: Optional[ConversationState]
    transition: str
    reply: str
