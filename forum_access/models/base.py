"""
Declarative base classes shared by all tables.

Column types are portable: ``Uuid`` maps to native UUID on PostgreSQL and
CHAR(32) on SQLite, ``JSONType`` to JSONB and JSON respectively.
"""

import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from forum_access.core.database import Base

JSONType = JSON().with_variant(JSONB(), "postgresql")


class BaseModel(Base):
    """UUID primary key plus created/updated timestamps"""
    __abstract__ = True

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class SoftDeleteModel(BaseModel):
    """Rows are flagged deleted instead of removed; repositories skip them"""
    __abstract__ = True

    deleted_at = Column(DateTime(timezone=True), nullable=True)
    is_deleted = Column(Boolean, default=False, nullable=False, index=True)
