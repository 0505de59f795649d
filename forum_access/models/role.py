"""
Role and RoleAssignment Models
"""

from sqlalchemy import Column, String, Text, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from forum_access.models.base import BaseModel, JSONType


class Role(BaseModel):
    """Named bundle of permission tokens"""
    __tablename__ = "roles"

    name = Column(String(100), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)

    # Canonical JSON array, or the legacy "{a,b}" literal written by older tooling
    permissions = Column(JSONType, default=list, nullable=False)

    def __repr__(self):
        return f"<Role(name='{self.name}')>"


class UserRole(BaseModel):
    """Many-to-many assignment of roles to users"""
    __tablename__ = "user_roles"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role_id = Column(Uuid(as_uuid=True), ForeignKey("roles.id", ondelete="CASCADE"), nullable=False, index=True)

    user = relationship("User", back_populates="role_assignments")
    role = relationship("Role", lazy="selectin")

    __table_args__ = (
        UniqueConstraint("user_id", "role_id", name="uq_user_roles_user_role"),
    )

    def __repr__(self):
        return f"<UserRole(user_id='{self.user_id}', role_id='{self.role_id}')>"
