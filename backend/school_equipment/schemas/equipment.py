"""Equipment schemas for CRUD operations."""
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class EquipmentSummary(BaseModel):
    """Minimal equipment representation."""

    id: uuid.UUID
    name: str
    location: str | None = None

    model_config = ConfigDict(from_attributes=True)


class EquipmentCreate(BaseModel):
    """Payload for registering equipment."""

    name: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=1024)
    location: str | None = Field(default=None, max_length=255)
    available: bool = True


class EquipmentUpdate(BaseModel):
    """Mutable equipment fields; ``available`` withdraws it from booking."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=1024)
    location: str | None = Field(default=None, max_length=255)
    available: bool | None = None


class EquipmentRead(EquipmentSummary):
    """Equipment listing entry."""

    description: str | None = None
    available: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
