"""Conversation state storage.

Exposes:
- `ChatStateStore`: store interface
- `InMemoryChatStateStore`: dict-backed store
- `SqlChatStateStore`: SQLAlchemy-backed store
- `DatabaseResource`: async engine and session lifecycle
- `create_state_store()`: builds the backend selected in settings
"""

from .base import ChatStateStore
from .database import DatabaseResource
from .memory import InMemoryChatStateStore
from .sql import SqlChatStateStore
from ..config.settings import Settings
from ..observability.failure_sink import FailureSink


async def create_state_store(settings: Settings, failure_sink: FailureSink) -> ChatStateStore:
    """Build and initialize the configured state store."""
    if settings.storage_backend == "memory":
        return InMemoryChatStateStore(failure_sink)

    database = await DatabaseResource(settings.database_url).init()
    if settings.create_schema:
        await database.create_schema()
    return SqlChatStateStore(database, failure_sink)


__all__ = [
    "ChatStateStore",
    "DatabaseResource",
    "InMemoryChatStateStore",
    "SqlChatStateStore",
    "create_state_store",
]
