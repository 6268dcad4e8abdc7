"""Drives each conversation through its two-state machine using LangGraph.

Graph per inbound message:
  resolve -> start_conversation (step == 0) -> END
  resolve -> continue_conversation (step > 0) -> END

``resolve`` loads or creates the conversation state. The start transition
greets the user and advances ``step`` once; the continue transition relays
the user's text to the generation client and records the exchange. Failures
are reported to the failure sink and answered with fixed texts; nothing
raised while handling one message escapes ``handle_message``.
"""

from contextlib import nullcontext
from typing import TYPE_CHECKING, Optional

from langgraph.graph import END, StateGraph

from .errors import (
    ChatRelayError,
    ConversationNotFound,
    DispatchError,
    GenerationError,
    StoreUnavailable,
)
from .locks import ConversationLocks
from .state import DispatchState, Exchange, InboundMessage
from ..base.loggable import Loggable

if TYPE_CHECKING:
    from ..llm.client import LanguageGenerationClient
    from ..observability.failure_sink import FailureSink
    from ..storage.base import ChatStateStore
    from ..transport.base import MessageTransport


class ConversationOrchestrator(Loggable):
    """Route inbound messages through the Fresh/Engaged state machine.

    Attributes:
      - store: Canonical conversation state.
      - generation_client: Produces greetings and replies.
      - transport: Outbound message delivery.
      - failure_sink: Receives every captured error.
      - start_command: Command that moves a Fresh conversation to Engaged.
      - locks: Optional per-conversation serialization; ``None`` lets
        messages of one conversation interleave, so two concurrent start
        commands on a Fresh conversation can both greet and advance ``step``.
      - graph: Compiled LangGraph ready to invoke.
    """

    OPENING_PROMPT = (
        "Ask the user if they are looking for a health insurance plan in a friendly tone."
    )
    DEFAULT_GREETING = "Are you looking for a health insurance plan?"
    CONTINUE_PROMPT = "User said: {text}. Continue the conversation."
    START_HINT = "Type {command} to begin the conversation again."
    APOLOGY = "An error occurred. Please try again."
    FAILURE_REPLY = "An error occurred. Please try again later."

    def __init__(
        self,
        store: "ChatStateStore",
        generation_client: "LanguageGenerationClient",
        transport: "MessageTransport",
        failure_sink: "FailureSink",
        start_command: str = "/start",
        locks: Optional[ConversationLocks] = None,
    ) -> None:
        super().__init__()
        self.store = store
        self.generation_client = generation_client
        self.transport = transport
        self.failure_sink = failure_sink
        self.start_command = start_command
        self.locks = locks

        self.graph = self._build_graph()

    def _build_graph(self):
        """Assemble and compile the per-message graph."""
        graph = StateGraph(DispatchState)

        graph.add_node("resolve", self._resolve_node)
        graph.add_node("start_conversation", self._start_node)
        graph.add_node("continue_conversation", self._continue_node)

        graph.set_entry_point("resolve")
        graph.add_conditional_edges(
            "resolve",
            self._route_by_step,
            {"fresh": "start_conversation", "engaged": "continue_conversation"},
        )
        graph.add_edge("start_conversation", END)
        graph.add_edge("continue_conversation", END)

        return graph.compile()

    def is_start_command(self, text: str) -> bool:
        """Return whether ``text`` is the start command.

        Accepts ``/start``, ``/start@botname`` and deep links such as
        ``/start payload``.
        """
        words = text.split()
        if not words:
            return False
        return words[0].split("@", 1)[0] == self.start_command

    async def _resolve_node(self, state: DispatchState) -> DispatchState:
        conversation = await self.store.get_or_create(state["conversation_id"])
        return {"conversation": conversation}

    @staticmethod
    def _route_by_step(state: DispatchState) -> str:
        return "fresh" if state["conversation"].is_fresh else "engaged"

    async def _start_node(self, state: DispatchState) -> DispatchState:
        """Fresh transition: greet on the start command, otherwise explain how to start."""
        conversation_id = state["conversation_id"]

        if not self.is_start_command(state["text"]):
            reply = self.START_HINT.format(command=self.start_command)
            await self.transport.send(conversation_id, reply)
            return {"transition": "prompt_start", "reply": reply}

        try:
            reply = await self.generation_client.generate(self.OPENING_PROMPT)
        except GenerationError as e:
            self.failure_sink.report(
                e, {"conversation_id": conversation_id, "operation": "generate_opening"}
            )
            reply = self.DEFAULT_GREETING

        await self.transport.send(conversation_id, reply)
        # The fallback greeting still completes the start transition.
        await self.store.advance_step(conversation_id)
        self.logger.info(f"Conversation {conversation_id} engaged")
        return {"transition": "start", "reply": reply}

    async def _continue_node(self, state: DispatchState) -> DispatchState:
        """Engaged transition: relay the text and record the exchange."""
        conversation_id = state["conversation_id"]
        text = state["text"]

        try:
            reply = await self.generation_client.generate(
                self.CONTINUE_PROMPT.format(text=text)
            )
        except GenerationError as e:
            self.failure_sink.report(
                e, {"conversation_id": conversation_id, "operation": "generate_reply"}
            )
            await self.transport.send(conversation_id, self.APOLOGY)
            return {"transition": "continue_failed", "reply": self.APOLOGY}

        await self.transport.send(conversation_id, reply)

        try:
            await self.store.append_exchange(
                conversation_id, Exchange(user_text=text, assistant_text=reply)
            )
        except (StoreUnavailable, ConversationNotFound) as e:
            self.failure_sink.report(
                e, {"conversation_id": conversation_id, "operation": "append_exchange"}
            )
            await self.transport.send(conversation_id, self.APOLOGY)

        return {"transition": "continue", "reply": reply}

    async def handle_message(self, message: InboundMessage) -> DispatchState:
        """Handle one inbound message end to end.

        Never raises: any failure is reported and answered with
        ``FAILURE_REPLY``.

        Returns:
            DispatchState: Final graph state, including ``transition`` and
            ``reply``.
        """
        conversation_id = message.conversation_id
        guard = (
            self.locks.hold(conversation_id) if self.locks is not None else nullcontext()
        )

        async with guard:
            try:
                return await self.graph.ainvoke(
                    {"conversation_id": conversation_id, "text": message.text}
                )
            except Exception as e:
                error = e
                if not isinstance(e, ChatRelayError):
                    error = DispatchError(
                        f"Unhandled {type(e).__name__}: {e}",
                        {"conversation_id": conversation_id},
                    )
                    error.__cause__ = e
                self.failure_sink.report(
                    error, {"conversation_id": conversation_id, "operation": "dispatch"}
                )
                await self.transport.send(conversation_id, self.FAILURE_REPLY)
                return {
                    "conversation_id": conversation_id,
                    "text": message.text,
                    "transition": "failed",
                    "reply": self.FAILURE_REPLY,
                }
