from typing import Generic, TypeVar, Type, Optional, Any, Dict
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
import logging

from storefront_webhooks.core.database import Base

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository class with common CRUD operations."""

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    @property
    def dialect_name(self) -> str:
        return self.session.bind.dialect.name

    def insert(self):
        """
        Dialect specific INSERT, so upserts can use ON CONFLICT.

        PostgreSQL in production, SQLite in tests; both expose
        on_conflict_do_update with the same signature.
        """
        if self.dialect_name == "postgresql":
            return postgresql.insert(self.model)
        if self.dialect_name == "sqlite":
            return sqlite.insert(self.model)
        raise NotImplementedError(f"Upsert not supported on dialect {self.dialect_name}")

    async def get_by_id(self, id: Any) -> Optional[ModelType]:
        """Get a record by ID."""
        try:
            result = await self.session.execute(select(self.model).where(self.model.id == id))
            return result.scalars().first()
        except Exception as e:
            logger.error(f"Error getting {self.model.__name__} by ID {id}: {e}")
            raise

    async def create(self, obj_data: Dict[str, Any]) -> ModelType:
        """Create a new record."""
        try:
            db_obj = self.model(**obj_data)
            self.session.add(db_obj)
            await self.session.flush()
            await self.session.refresh(db_obj)
            return db_obj
        except Exception as e:
            logger.error(f"Error creating {self.model.__name__}: {e}")
            await self.session.rollback()
            raise
