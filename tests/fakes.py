"""Test doubles for the orchestrator's collaborators."""

import asyncio
from typing import Any, Dict, List, Tuple, Union

from langchain_core.messages import AIMessage

from chatrelay.observability.failure_sink import FailureSink
from chatrelay.transport.base import MessageTransport


class RecordingTransport(MessageTransport):
    """Collect outbound messages instead of delivering them."""

    def __init__(self) -> None:
        super().__init__()
        self.sent: List[Tuple[int, str]] = []
        self.closed = False

    async def send(self, conversation_id: int, text: str) -> None:
        self.sent.append((conversation_id, text))

    async def close(self) -> None:
        self.closed = True

    def texts(self, conversation_id: int) -> List[str]:
        return [text for cid, text in self.sent if cid == conversation_id]


class RecordingFailureSink(FailureSink):
    """Keep every reported error with its context."""

    def __init__(self) -> None:
        super().__init__()
        self.reports: List[Tuple[BaseException, Dict[str, Any]]] = []

    def _report(self, error: BaseException, context: Dict[str, Any]) -> None:
        self.reports.append((error, context))

    def operations(self) -> List[str]:
        return [context.get("operation") for _, context in self.reports]


class ScriptedGenerationClient:
    """Stand-in for ``LanguageGenerationClient`` returning queued outcomes.

    Each outcome is either reply text or an exception instance to raise.
    A ``(delay, outcome)`` tuple sleeps before resolving.
    """

    def __init__(self, *outcomes: Union[str, BaseException, tuple]) -> None:
        self.outcomes = list(outcomes)
        self.prompts: List[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        outcome = self.outcomes.pop(0) if self.outcomes else "Sure."
        if isinstance(outcome, tuple):
            delay, outcome = outcome
            await asyncio.sleep(delay)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class RecordingChatModel:
    """Minimal async chat model returning a fixed reply."""

    def __init__(self, content: Any = "Hello there") -> None:
        self.content = content
        self.calls: List[list] = []

    async def ainvoke(self, messages: list) -> AIMessage:
        self.calls.append(messages)
        return AIMessage(content=self.content)


class SlowChatModel:
    """Chat model that never answers within a short timeout."""

    async def ainvoke(self, messages: list) -> AIMessage:
        await asyncio.sleep(5)
        return AIMessage(content="too late")


class BrokenChatModel:
    """Chat model whose upstream call always fails."""

    def __init__(self, error: Exception) -> None:
        self.error = error

    async def ainvoke(self, messages: list) -> AIMessage:
        raise self.error
