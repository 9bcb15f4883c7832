"""Teacher schemas for CRUD operations."""
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class TeacherSummary(BaseModel):
    """Minimal teacher representation."""

    id: uuid.UUID
    first_name: str
    last_name: str
    course: str | None = None

    model_config = ConfigDict(from_attributes=True)


class TeacherCreate(BaseModel):
    """Payload for registering a teacher."""

    first_name: str = Field(min_length=1, max_length=120)
    last_name: str = Field(min_length=1, max_length=120)
    course: str | None = Field(default=None, max_length=32)
    subject: str | None = Field(default=None, max_length=120)


class TeacherUpdate(BaseModel):
    """Mutable teacher fields."""

    first_name: str | None = Field(default=None, min_length=1, max_length=120)
    last_name: str | None = Field(default=None, min_length=1, max_length=120)
    course: str | None = Field(default=None, max_length=32)
    subject: str | None = Field(default=None, max_length=120)


class TeacherRead(TeacherSummary):
    """Serialized teacher response."""

    subject: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
