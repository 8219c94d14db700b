"""Response models for managed-store lessons."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class LessonResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    slug: str
    title: str
    description: str | None = None
    content: str
    difficulty: str | None = None
    duration_minutes: int | None = None
    order_index: int = 0
    created_at: datetime | None = None
