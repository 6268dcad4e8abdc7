"""In-process state store for local runs and tests."""

import asyncio
import copy
from typing import Dict, Optional

from .base import ChatStateStore
from ..core.errors import ConversationNotFound
from ..core.state import ConversationState, Exchange
from ..observability.failure_sink import FailureSink


class InMemoryChatStateStore(ChatStateStore):
    """Keep conversation states in a dict guarded by an ``asyncio.Lock``.

    Callers receive copies, so mutating a returned state never touches the
    stored record.
    """

    def __init__(self, failure_sink: FailureSink) -> None:
        super().__init__(failure_sink)
        self._states: Dict[int, ConversationState] = {}
        self._lock = asyncio.Lock()

    async def get_or_create(self, conversation_id: int) -> ConversationState:
        async with self._lock:
            state = self._states.get(conversation_id)
            if state is None:
                state = ConversationState(conversation_id=conversation_id)
                self._states[conversation_id] = state
                self.logger.info(f"Created conversation state: {conversation_id}")
            return copy.deepcopy(state)

    async def advance_step(self, conversation_id: int) -> None:
        async with self._lock:
            state = self._states.get(conversation_id)
            if state is None:
                self.failure_sink.report(
                    ConversationNotFound(conversation_id),
                    {"conversation_id": conversation_id, "operation": "advance_step"},
                )
                return
            state.step += 1

    async def append_exchange(self, conversation_id: int, exchange: Exchange) -> None:
        async with self._lock:
            state = self._states.get(conversation_id)
            if state is None:
                raise ConversationNotFound(conversation_id)
            state.history.append(exchange)

    async def get(self, conversation_id: int) -> Optional[ConversationState]:
        async with self._lock:
            state = self._states.get(conversation_id)
            return copy.deepcopy(state) if state is not None else None
