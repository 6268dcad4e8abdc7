"""Outbound message transport interface."""

from abc import ABC, abstractmethod

from ..base.loggable import Loggable


class MessageTransport(Loggable, ABC):
    """Delivers outbound text to a conversation.

    ``send`` is fire-and-forget from the caller's perspective: delivery
    failures are logged by the transport and never raised.
    """

    @abstractmethod
    async def send(self, conversation_id: int, text: str) -> None:
        """Send ``text`` to ``conversation_id``."""

    async def close(self) -> None:
        """Release any held resources."""
