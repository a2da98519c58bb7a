from abc import ABC
from contextlib import asynccontextmanager
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront_webhooks.core.logging import get_logger


class BaseService(ABC):
    """
    Base service class with common functionality.

    Services receive a session factory rather than a live session so each
    operation runs in its own short transaction.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory
        self.logger = get_logger(self.__class__.__name__)

    @asynccontextmanager
    async def session_scope(self, read_only: bool = False) -> AsyncGenerator[AsyncSession, None]:
        """Open a session, commit on success and roll back on error."""
        async with self.session_factory() as session:
            try:
                yield session
                if not read_only:
                    await session.commit()
            except Exception as e:
                self.logger.error(f"Error in database transaction: {e}")
                await session.rollback()
                raise
