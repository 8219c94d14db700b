"""Request/response models for progression endpoints.

Request bodies accept the web client's camelCase keys (``eventType``,
``xpDelta``…) as well as snake_case.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel

from aiquest.progression.levels import level_progress

EventType = Literal["quiz_pass", "project_complete", "unit_complete", "streak_update"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Requests ---


class SuperpowerPayload(_CamelModel):
    id: str = Field(min_length=1)
    name: str
    icon: str | None = None
    color: str | None = None
    level_delta: int = 1
    unlocked_at: str | None = None

    @field_validator("level_delta", mode="before")
    @classmethod
    def _default_level_delta(cls, v: Any) -> Any:
        return 1 if v is None else v


class ProgressionEvent(_CamelModel):
    event_type: EventType
    unit_id: str | None = None
    xp_delta: int = 0
    minutes_delta: int = 0
    superpower: SuperpowerPayload | None = None

    @field_validator("xp_delta", "minutes_delta", mode="before")
    @classmethod
    def _missing_delta_is_zero(cls, v: Any) -> Any:
        return 0 if v is None else v


# --- Responses ---


class CharacterResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    name: str
    avatar_emoji: str
    level: int
    xp: int
    current_streak: int
    total_learning_minutes: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def xp_into_level(self) -> int:
        return level_progress(self.xp)["xp_into_level"]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def next_level_xp(self) -> int:
        return level_progress(self.xp)["next_level_xp"]


class SuperpowerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    superpower_id: str
    name: str
    icon: str | None = None
    color: str | None = None
    level: int
    unlocked_at: str | None = None
    created_at: datetime | None = None


class ActivityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    event_type: str
    unit_id: str | None = None
    xp_delta: int
    metadata: dict[str, Any] | None = Field(
        default=None, validation_alias="extra_data"
    )
    created_at: datetime | None = None


class ProgressionResponse(BaseModel):
    character: CharacterResponse | None
    superpowers: list[SuperpowerResponse]
    activity: list[ActivityResponse]


class AckResponse(BaseModel):
    ok: bool = True


class SuperpowerCatalogEntry(BaseModel):
    id: str
    name: str
    description: str
    icon: str
    color: str
    unlocked_at: str
    max_level: int


class SuperpowerCatalogResponse(BaseModel):
    superpowers: list[SuperpowerCatalogEntry]
