"""SQLAlchemy-backed state store.

Creation relies on the UNIQUE constraint on ``chat_state.conversation_id``:
a losing concurrent insert rolls back and re-reads the winner's row. Step
increments run as a single ``UPDATE ... SET step = step + 1`` so concurrent
writers cannot lose an increment. History rows are ordered by their
autoincrement id.
"""

from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .base import ChatStateStore
from .database import DatabaseResource
from .entities import ChatStateEntity, ExchangeEntity
from ..core.errors import ConversationNotFound, StoreUnavailable
from ..core.state import ConversationState, Exchange
from ..observability.failure_sink import FailureSink


class SqlChatStateStore(ChatStateStore):
    """Persist conversation states through an async SQLAlchemy engine."""

    def __init__(self, database: DatabaseResource, failure_sink: FailureSink) -> None:
        super().__init__(failure_sink)
        self.database = database

    async def get_or_create(self, conversation_id: int) -> ConversationState:
        try:
            async with self.database.get_session() as session:
                entity = await self._find(session, conversation_id)
                if entity is None:
                    entity = await self._insert(session, conversation_id)
                return await self._to_state(session, entity)
        except SQLAlchemyError as e:
            raise StoreUnavailable(
                "get_or_create", str(e), {"conversation_id": conversation_id}
            ) from e

    async def advance_step(self, conversation_id: int) -> None:
        context = {"conversation_id": conversation_id, "operation": "advance_step"}
        try:
            async with self.database.get_session() as session:
                result = await session.execute(
                    update(ChatStateEntity)
                    .where(ChatStateEntity.conversation_id == conversation_id)
                    .values(step=ChatStateEntity.step + 1)
                )
                await session.commit()
        except SQLAlchemyError as e:
            self.failure_sink.report(
                StoreUnavailable("advance_step", str(e), {"conversation_id": conversation_id}),
                context,
            )
            return

        if result.rowcount == 0:
            self.failure_sink.report(ConversationNotFound(conversation_id), context)

    async def append_exchange(self, conversation_id: int, exchange: Exchange) -> None:
        try:
            async with self.database.get_session() as session:
                state_id = await session.scalar(
                    select(ChatStateEntity.id).where(
                        ChatStateEntity.conversation_id == conversation_id
                    )
                )
                if state_id is None:
                    raise ConversationNotFound(conversation_id)

                session.add(
                    ExchangeEntity(
                        chat_state_id=state_id,
                        user_text=exchange.user_text,
                        assistant_text=exchange.assistant_text,
                    )
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreUnavailable(
                "append_exchange", str(e), {"conversation_id": conversation_id}
            ) from e

    async def get(self, conversation_id: int) -> Optional[ConversationState]:
        try:
            async with self.database.get_session() as session:
                entity = await self._find(session, conversation_id)
                if entity is None:
                    return None
                return await self._to_state(session, entity)
        except SQLAlchemyError as e:
            raise StoreUnavailable(
                "get", str(e), {"conversation_id": conversation_id}
            ) from e

    async def close(self) -> None:
        await self.database.shutdown()

    @staticmethod
    async def _find(
        session: AsyncSession, conversation_id: int
    ) -> Optional[ChatStateEntity]:
        return await session.scalar(
            select(ChatStateEntity)
            .where(ChatStateEntity.conversation_id == conversation_id)
            .execution_options(populate_existing=True)
        )

    async def _insert(self, session: AsyncSession, conversation_id: int) -> ChatStateEntity:
        """Insert a fresh record, falling back to a re-read on a unique conflict."""
        session.add(ChatStateEntity(conversation_id=conversation_id, step=0))
        try:
            await session.commit()
            self.logger.info(f"Created conversation state: {conversation_id}")
        except IntegrityError:
            await session.rollback()
            self.logger.info(
                f"Conversation {conversation_id} created concurrently; reusing record"
            )

        entity = await self._find(session, conversation_id)
        if entity is None:
            raise StoreUnavailable(
                "get_or_create",
                "record missing after insert",
                {"conversation_id": conversation_id},
            )
        return entity

    @staticmethod
    async def _to_state(session: AsyncSession, entity: ChatStateEntity) -> ConversationState:
        rows = await session.execute(
            select(ExchangeEntity.user_text, ExchangeEntity.assistant_text)
            .where(ExchangeEntity.chat_state_id == entity.id)
            .order_by(ExchangeEntity.id)
        )
        history: List[Exchange] = [
            Exchange(user_text=user_text, assistant_text=assistant_text)
            for user_text, assistant_text in rows.all()
        ]
        return ConversationState(
            conversation_id=entity.conversation_id, step=entity.step, history=history
        )
