"""Database engine and session lifecycle."""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from .entities import BaseEntity


class DatabaseResource:
    """Own the async engine and hand out sessions."""

    def __init__(self, database_url: str):
        self.database_url = database_url
        self.engine = None
        self.session_factory = None

    async def init(self) -> "DatabaseResource":
        """Initialize database connection."""
        self.engine = create_async_engine(
            self.database_url,
            echo=False,
            pool_pre_ping=True,
            pool_recycle=3600,
        )
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        return self

    async def create_schema(self) -> None:
        """Create missing tables. Migrations are handled outside the service."""
        if self.engine is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        async with self.engine.begin() as connection:
            await connection.run_sync(BaseEntity.metadata.create_all)

    def get_session(self) -> AsyncSession:
        """Get database session (synchronous accessor)."""
        if self.session_factory is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        return self.session_factory()

    async def shutdown(self) -> None:
        """Shutdown database connection."""
        if self.engine:
            await self.engine.dispose()
