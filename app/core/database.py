import logging
from typing import AsyncIterator, Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class DatabaseNotConnectedError(RuntimeError):
    """Raised when a session is requested before connect() or after disconnect()."""
    pass


class Database:
    """
    Owned handle to the chat store.

    Created once per application (see app.main lifespan) and handed to
    request handlers through get_session. Nothing in the package keeps a
    module-level engine.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._session_maker: Optional[async_sessionmaker[AsyncSession]] = None

    async def connect(self) -> None:
        """Create the engine and tables. Calling it twice is a no-op."""
        if self._engine is not None:
            logger.info("Database already connected")
            return

        kwargs = {"echo": self.echo}
        if self.url.startswith("sqlite") and ":memory:" in self.url:
            # One shared connection, otherwise every session sees an empty database
            kwargs["poolclass"] = StaticPool
            kwargs["connect_args"] = {"check_same_thread": False}

        self._engine = create_async_engine(self.url, **kwargs)
        self._session_maker = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

        from app.models import chat  # noqa: F401
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        logger.info("Connected to chat store")

    def is_connected(self) -> bool:
        return self._engine is not None

    async def disconnect(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._session_maker = None
        logger.info("Disconnected from chat store")

    def session(self) -> AsyncSession:
        if self._session_maker is None:
            raise DatabaseNotConnectedError("Database is not connected")
        return self._session_maker()


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    database: Database = request.app.state.database
    async with database.session() as session:
        try:
            yield session
        finally:
            await session.close()
