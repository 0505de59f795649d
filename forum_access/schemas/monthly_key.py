"""
Monthly key request and response schemas.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from forum_access.schemas.base import BaseSchema


class CredentialStatus(BaseSchema):
    verified: bool
    attempts: int = Field(..., ge=0)
    max_attempts: int = Field(..., ge=1)
    locked: bool
    locked_until: Optional[datetime] = None
    retry_after_seconds: int = 0
    last_verified_at: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    year: int
    month: int


class VerifyKeyRequest(BaseSchema):
    # Blank input is not rejected here; it counts as a failed attempt
    key: str = Field(..., max_length=64, description="Monthly key as entered by the user")


class VerifyKeyResponse(BaseSchema):
    verified: bool = True
    message: str = "Monthly key verified"
    valid_until: datetime


class UnlockRequest(BaseSchema):
    user_id: UUID


class UserKeyInfo(BaseSchema):
    user_id: UUID
    name: Optional[str] = None
    email: str
    year: int
    month: int
    monthly_key: str


class UserKeyOverviewItem(UserKeyInfo):
    verified: bool
    attempts: int
    max_attempts: int
    locked: bool
    locked_until: Optional[datetime] = None
    last_verified_at: Optional[datetime] = None
