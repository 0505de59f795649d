"""
Permission view schemas.
"""

from __future__ import annotations

from pydantic import Field, field_validator

from forum_access.schemas.base import BaseSchema


class PermissionsResponse(BaseSchema):
    permissions: list[str] = Field(default_factory=list)
    is_admin: bool


class SyncCheckRequest(BaseSchema):
    cached_permissions: list[str] = Field(default_factory=list, max_length=500)

    @field_validator("cached_permissions")
    @classmethod
    def strip_tokens(cls, values: list[str]) -> list[str]:
        return [v.strip() for v in values if v and v.strip()]


class SyncCheckResponse(BaseSchema):
    needs_resync: bool
    missing: list[str] = Field(default_factory=list)
    extra: list[str] = Field(default_factory=list)
    permissions: list[str] = Field(default_factory=list)
