"""Telegram Bot API transport.

Provides:
- ``parse_update()`` turning a Telegram ``Update`` into an ``InboundMessage``.
- ``TelegramTransport`` sending replies via ``sendMessage``.
- ``TelegramPoller`` receiving updates via ``getUpdates`` long polling and
  dispatching each message as its own asyncio task.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

import httpx

from .base import MessageTransport
from ..base.loggable import Loggable
from ..core.state import InboundMessage
from ..observability.failure_sink import FailureSink

MessageHandler = Callable[[InboundMessage], Awaitable[None]]


def parse_update(update: Dict[str, Any]) -> Optional[InboundMessage]:
    """Extract the chat id and text from a Telegram update.

    Edited messages are treated like new ones. Updates without a text
    payload (stickers, photos, service messages) yield ``None``.
    """
    message = update.get("message") or update.get("edited_message")
    if not isinstance(message, dict):
        return None

    chat = message.get("chat") or {}
    chat_id = chat.get("id")
    text = message.get("text")
    if chat_id is None or not isinstance(text, str):
        return None

    return InboundMessage(conversation_id=chat_id, text=text)


class TelegramBotAPI(Loggable):
    """Thin async client for the Bot API methods used here."""

    def __init__(
        self,
        token: str,
        api_base: str = "https://api.telegram.org",
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        super().__init__()
        self.base_url = f"{api_base.rstrip('/')}/bot{token}"
        self.client = client or httpx.AsyncClient(timeout=httpx.Timeout(60.0, connect=10.0))

    async def call(self, method: str, payload: Dict[str, Any]) -> Any:
        """Invoke a Bot API method and return its ``result``.

        Raises:
            httpx.HTTPError: On transport failure or non-2xx status.
            ValueError: If Telegram answers with ``ok: false``.
        """
        response = await self.client.post(f"{self.base_url}/{method}", json=payload)
        response.raise_for_status()
        body = response.json()
        if not body.get("ok"):
            raise ValueError(f"Telegram {method} failed: {body.get('description')}")
        return body.get("result")

    async def close(self) -> None:
        await self.client.aclose()


class TelegramTransport(MessageTransport):
    """Send replies to Telegram chats."""

    def __init__(self, api: TelegramBotAPI) -> None:
        super().__init__()
        self.api = api

    async def send(self, conversation_id: int, text: str) -> None:
        try:
            await self.api.call("sendMessage", {"chat_id": conversation_id, "text": text})
        except (httpx.HTTPError, ValueError) as e:
            self.logger.warning(f"Delivery to chat {conversation_id} failed: {e}")

    async def close(self) -> None:
        await self.api.close()


class TelegramPoller(Loggable):
    """Long-poll ``getUpdates`` and hand each text message to ``handler``.

    Messages are processed as independent tasks; the poller only tracks the
    update offset so every update is fetched once. Unexpected errors are
    reported to ``failure_sink`` and polling resumes after ``retry_delay``.
    """

    def __init__(
        self,
        api: TelegramBotAPI,
        handler: MessageHandler,
        failure_sink: FailureSink,
        poll_timeout: int = 30,
        retry_delay: float = 3.0,
    ) -> None:
        super().__init__()
        self.api = api
        self.handler = handler
        self.failure_sink = failure_sink
        self.poll_timeout = poll_timeout
        self.retry_delay = retry_delay
        self.offset: Optional[int] = None
        self._tasks: Set[asyncio.Task] = set()

    async def poll_once(self) -> int:
        """Fetch one batch of updates and dispatch them.

        Returns:
            int: Number of messages dispatched.
        """
        payload: Dict[str, Any] = {
            "timeout": self.poll_timeout,
            "allowed_updates": ["message", "edited_message"],
        }
        if self.offset is not None:
            payload["offset"] = self.offset

        updates: List[Dict[str, Any]] = await self.api.call("getUpdates", payload) or []

        dispatched = 0
        for update in updates:
            self.offset = update["update_id"] + 1
            message = parse_update(update)
            if message is None:
                self.logger.debug(f"Ignoring non-text update {update['update_id']}")
                continue
            self.dispatch(message)
            dispatched += 1
        return dispatched

    def dispatch(self, message: InboundMessage) -> asyncio.Task:
        """Schedule ``handler(message)`` as a background task."""
        task = asyncio.create_task(self.handler(message))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def run(self) -> None:
        """Poll until cancelled.

        HTTP and Bot API errors are logged; anything else is reported to the
        failure sink. Either way polling continues after ``retry_delay``.
        """
        self.logger.info("Telegram long polling started")
        while True:
            try:
                await self.poll_once()
            except (httpx.HTTPError, ValueError) as e:
                self.logger.warning(
                    f"getUpdates failed: {e}; retrying in {self.retry_delay}s"
                )
                await asyncio.sleep(self.retry_delay)
            except Exception as e:
                self.failure_sink.report(e, {"operation": "poll_updates"})
                await asyncio.sleep(self.retry_delay)
