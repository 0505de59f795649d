"""
User Model
The principal whose permissions and monthly key are managed here.
Account creation and password handling belong to the forum front end.
"""

from sqlalchemy import Column, String, Boolean, Index
from sqlalchemy.orm import relationship
from forum_access.models.base import SoftDeleteModel


class User(SoftDeleteModel):
    """Forum user as seen by the access core"""
    __tablename__ = "users"

    email = Column(String(254), nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=True)

    is_active = Column(Boolean, default=True, nullable=False, index=True)

    # Role assignments are loaded eagerly; async sessions cannot lazy-load
    role_assignments = relationship(
        "UserRole",
        back_populates="user",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index('ix_user_email_active', 'email', 'is_active'),
    )

    def __repr__(self):
        return f"<User(email='{self.email}', name='{self.name}')>"

