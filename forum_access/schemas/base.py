"""
Shared response envelopes and the schema base class.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseSchema(BaseModel):
    """Reads ORM objects and strips surrounding whitespace from strings"""
    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        use_enum_values=True,
    )


class PaginatedResponse(BaseModel):
    items: List[Any]
    total: int = Field(..., ge=0)
    skip: int = Field(..., ge=0)
    limit: int = Field(..., ge=1)
    has_next: bool
    has_prev: bool

    @classmethod
    def create(cls, items: List[Any], total: int, skip: int, limit: int) -> "PaginatedResponse":
        """Wrap one page of ``items`` out of ``total``"""
        return cls(
            items=items,
            total=total,
            skip=skip,
            limit=limit,
            has_next=skip + len(items) < total,
            has_prev=skip > 0,
        )


class SuccessResponse(BaseModel):
    message: str
    data: Optional[Dict[str, Any]] = None
    timestamp: datetime = Field(default_factory=_utcnow)


class HealthCheck(BaseModel):
    status: str = Field(..., description="healthy or unhealthy")
    service: str
    version: str
    timestamp: datetime = Field(default_factory=_utcnow)
    checks: Dict[str, Any] = Field(default_factory=dict)
