"""Pydantic models for file-based lesson content.

Frontmatter is authored by hand, so the models are lenient: known fields are
typed where the value fits, and anything that does not fit is kept exactly as
authored instead of rejecting the lesson.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator


def _empty_if_none(v: Any) -> Any:
    return [] if v is None else v


# A list field that an author may leave blank (``prereqs:``) or fill with anything
AuthoredList = Annotated[Any, BeforeValidator(_empty_if_none)]


class LessonVideo(BaseModel):
    """Video segment reference; ``start < end`` is expected but not enforced."""

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    platform: str | None = None
    id: str
    start: int | float | str | None = None
    end: int | float | str | None = None


class QuizQuestion(BaseModel):
    model_config = ConfigDict(extra="allow")

    q: str
    options: list[Any] = []
    answer: int | str = 0
    explain: str | None = None


# Typed when the value fits the model, otherwise passed through untouched
VideoField = Annotated[LessonVideo | Any, Field(union_mode="left_to_right")]
QuizItem = Annotated[QuizQuestion | Any, Field(union_mode="left_to_right")]
QuizField = Annotated[list[QuizItem] | Any, Field(union_mode="left_to_right"), BeforeValidator(_empty_if_none)]


class LessonFrontmatter(BaseModel):
    """Authored lesson metadata.

    Field names follow the authored keys (``duration_min``, ``prereqs``,
    ``next``) through aliases; unknown keys are kept as-is.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True, coerce_numbers_to_str=True)

    id: str | None = None
    title: str | Any = None
    duration_minutes: int | float | str | Any = Field(default=None, alias="duration_min")
    prerequisites: AuthoredList = Field(default_factory=list, alias="prereqs")
    tags: AuthoredList = Field(default_factory=list)
    video: VideoField = None
    widgets: AuthoredList = Field(default_factory=list)
    goals: AuthoredList = Field(default_factory=list)
    quiz: QuizField = Field(default_factory=list)
    tasks: AuthoredList = Field(default_factory=list)
    reflection: AuthoredList = Field(default_factory=list)
    next_id: str | Any = Field(default=None, alias="next")

    @model_validator(mode="before")
    @classmethod
    def _string_keys(cls, data: Any) -> Any:
        # YAML allows non-string keys (``1: intro``)
        if isinstance(data, dict):
            return {str(k): v for k, v in data.items()}
        return data

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_string(cls, v: Any) -> Any:
        return None if v is None else str(v)

    def as_authored(self) -> dict[str, Any]:
        """Dump back to the authored key names, JSON-safe, without invented defaults."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


@dataclass(frozen=True)
class LessonDocument:
    """A parsed lesson file and where it was found."""

    frontmatter: LessonFrontmatter
    body: str
    path: Path
    track: str
    chapter: str

    @property
    def id(self) -> str | None:
        return self.frontmatter.id

    @property
    def slug(self) -> str:
        return self.path.stem


class Flashcard(BaseModel):
    """One positional deck row, keyed the way the web client reads it."""

    track: str
    card_front: str
    card_back: str


# --- Responses ---


class LessonContentResponse(BaseModel):
    frontmatter: dict[str, Any]
    content: str
    slug: str

    @classmethod
    def from_document(cls, doc: LessonDocument) -> LessonContentResponse:
        return cls(frontmatter=doc.frontmatter.as_authored(), content=doc.body, slug=doc.slug)


class LegacyLessonResponse(BaseModel):
    frontmatter: dict[str, Any]
    content: str
