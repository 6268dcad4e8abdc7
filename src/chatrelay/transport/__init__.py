"""Messaging transport exports.

Exposes:
- `MessageTransport`: outbound interface
- `TelegramBotAPI`, `TelegramTransport`, `TelegramPoller`: Telegram Bot API
- `parse_update()`: Telegram update to `InboundMessage`
"""

from .base import MessageTransport
from .telegram import TelegramBotAPI, TelegramPoller, TelegramTransport, parse_update

__all__ = [
    "MessageTransport",
    "TelegramBotAPI",
    "TelegramPoller",
    "TelegramTransport",
    "parse_update",
]
