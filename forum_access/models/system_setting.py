"""
System Setting Model
Operator-editable key/value parameters.
"""

from sqlalchemy import Column, String, Text
from forum_access.models.base import BaseModel


class SystemSetting(BaseModel):
    """Runtime parameter stored as text"""
    __tablename__ = "system_settings"

    key = Column(String(100), nullable=False, unique=True, index=True)
    value = Column(Text, nullable=False)
    description = Column(Text, nullable=True)

    def __repr__(self):
        return f"<SystemSetting(key='{self.key}')>"
