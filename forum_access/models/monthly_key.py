"""
Monthly Key Attempt Model
One row per user holding verification attempts and lockout state.
"""

from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, SmallInteger, Uuid
from forum_access.models.base import BaseModel


class MonthlyKeyAuth(BaseModel):
    """Credential attempt record for a user"""
    __tablename__ = "monthly_key_auth"

    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )

    # Period of the last successful verification
    period_year = Column(SmallInteger, nullable=True)
    period_month = Column(SmallInteger, nullable=True)
    key_echo = Column(String(16), nullable=True)

    attempts = Column(Integer, default=0, nullable=False)
    locked_until = Column(DateTime(timezone=True), nullable=True)
    last_verified_at = Column(DateTime(timezone=True), nullable=False)
    is_valid = Column(Boolean, default=False, nullable=False)

    # Optimistic concurrency token; bumped on every state write
    version = Column(Integer, default=0, nullable=False)

    def __repr__(self):
        return f"<MonthlyKeyAuth(user_id='{self.user_id}', attempts={self.attempts}, version={self.version})>"
