"""
Generic repository over a single model.
"""

from typing import Any, Dict, Generic, Optional, Type, TypeVar, Union
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from forum_access.core.database import Base

logger = structlog.get_logger()

ModelType = TypeVar("ModelType", bound=Base)


class CRUDBase(Generic[ModelType]):
    def __init__(self, model: Type[ModelType]):
        self.model = model

    def _visible(self, query, include_deleted: bool = False):
        """Hide soft-deleted rows unless asked for them"""
        if hasattr(self.model, "is_deleted") and not include_deleted:
            query = query.where(self.model.is_deleted == False)  # noqa: E712
        return query

    async def get(
        self,
        db: AsyncSession,
        id: Union[UUID, str],
        include_deleted: bool = False
    ) -> Optional[ModelType]:
        query = self._visible(select(self.model).where(self.model.id == id), include_deleted)
        record = (await db.execute(query)).scalar_one_or_none()
        if record is None:
            logger.debug("Record not found", model=self.model.__name__, id=str(id))
        return record

    async def update(
        self,
        db: AsyncSession,
        *,
        db_obj: ModelType,
        obj_in: Dict[str, Any],
        commit: bool = True
    ) -> ModelType:
        """
        Apply ``obj_in`` to ``db_obj``

        With ``commit=False`` the change is only flushed so callers can batch
        several updates in one transaction.
        """
        for field, value in obj_in.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)

        try:
            if commit:
                await db.commit()
                await db.refresh(db_obj)
            else:
                await db.flush()
        except Exception as exc:
            if commit:
                await db.rollback()
            logger.error("Error updating record", model=self.model.__name__, id=str(db_obj.id), error=str(exc))
            raise

        logger.info("Record updated", model=self.model.__name__, id=str(db_obj.id))
        return db_obj
