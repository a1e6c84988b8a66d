"""Pydantic records decoded from database rows at the store boundary."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator


class _RecordBase(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: object) -> object:
        # Drivers hand back uuid columns as UUID objects and serial keys as ints.
        if isinstance(v, (UUID, int)) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def created_at_text(self) -> str:
        return self.created_at.isoformat() if self.created_at else ""


class CampaignApplicationRecord(_RecordBase):
    """A row from ``campaign_applications``."""

    position: Optional[str] = None
    segment: Optional[str] = None
    cv_url: Optional[str] = None
    cv_filename: Optional[str] = None


class CandidateRecord(_RecordBase):
    """A row from ``candidates``."""

    primary_role: Optional[str] = None
    cv_key: Optional[str] = None
