"""SQLAlchemy entities for persisted conversation state."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Integer, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# SQLite only autoincrements INTEGER primary keys.
_Identifier = BigInteger().with_variant(Integer(), "sqlite")


class BaseEntity(DeclarativeBase):
    """Base class for all database entities."""

    id: Mapped[int] = mapped_column(_Identifier, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"


class ChatStateEntity(BaseEntity):
    """One row per conversation; ``conversation_id`` is unique."""

    __tablename__ = "chat_state"

    conversation_id: Mapped[int] = mapped_column(
        BigInteger, unique=True, nullable=False
    )
    step: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class ExchangeEntity(BaseEntity):
    """One user/assistant exchange; ``id`` order is arrival order."""

    __tablename__ = "chat_exchange"

    chat_state_id: Mapped[int] = mapped_column(
        ForeignKey("chat_state.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_text: Mapped[str] = mapped_column(Text, nullable=False)
    assistant_text: Mapped[str] = mapped_column(Text, nullable=False)
