"""
Admin Log Model
Audit trail of administrative actions.
"""

from sqlalchemy import Column, String, ForeignKey, Uuid
from forum_access.models.base import BaseModel, JSONType


class AdminLog(BaseModel):
    """One administrative action"""
    __tablename__ = "admin_logs"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    action = Column(String(100), nullable=False, index=True)
    resource = Column(String(100), nullable=False)
    resource_id = Column(String(100), nullable=True)
    details = Column(JSONType, default=dict, nullable=False)
    ip = Column(String(64), nullable=True)

    def __repr__(self):
        return f"<AdminLog(action='{self.action}', resource_id='{self.resource_id}')>"
