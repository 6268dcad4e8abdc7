"""State store interface.

Stores own the canonical ``ConversationState`` per conversation id and must
provide atomic create-if-absent and ordered append per key. Implementations
report best-effort failures (step bookkeeping) to the failure sink and raise
``StoreUnavailable`` for everything else.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..base.loggable import Loggable
from ..core.state import ConversationState, Exchange
from ..observability.failure_sink import FailureSink


class ChatStateStore(Loggable, ABC):
    """Durable key-value store of conversation states."""

    def __init__(self, failure_sink: FailureSink) -> None:
        super().__init__()
        self.failure_sink = failure_sink

    @abstractmethod
    async def get_or_create(self, conversation_id: int) -> ConversationState:
        """Return the existing state or create one with ``step=0``.

        Concurrent calls with the same id create at most one record.

        Raises:
            StoreUnavailable: If the store cannot be reached.
        """

    @abstractmethod
    async def advance_step(self, conversation_id: int) -> None:
        """Increment ``step`` by one.

        Never raises: a missing record or a storage failure is reported to
        the failure sink and the increment is skipped.
        """

    @abstractmethod
    async def append_exchange(self, conversation_id: int, exchange: Exchange) -> None:
        """Append one exchange to the conversation history.

        Raises:
            ConversationNotFound: If no record exists for the id.
            StoreUnavailable: If the store cannot be reached.
        """

    @abstractmethod
    async def get(self, conversation_id: int) -> Optional[ConversationState]:
        """Return the current state, or ``None`` when unknown."""

    async def close(self) -> None:
        """Release any held resources."""
