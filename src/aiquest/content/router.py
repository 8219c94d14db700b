"""File-based content endpoints — lessons and flashcards.

Handlers are plain ``def`` so FastAPI runs the blocking file reads in its
threadpool.
"""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException

from aiquest.config import get_settings
from aiquest.content.flashcards import load_flashcard_table, load_flashcards
from aiquest.content.resolver import ContentResolver
from aiquest.content.schemas import Flashcard, LegacyLessonResponse, LessonContentResponse

router = APIRouter(prefix="/api/v1", tags=["Content"])


def get_content_resolver() -> ContentResolver:
    """Resolver over the configured content root (FastAPI dependency)."""
    settings = get_settings()
    return ContentResolver(
        settings.content_root,
        legacy_tracks=settings.legacy_tracks,
        legacy_chapters=settings.legacy_chapters,
    )


def get_content_root() -> Path:
    return Path(get_settings().content_root)


@router.get("/content/lessons", response_model=list[LessonContentResponse])
def list_lessons(resolver: ContentResolver = Depends(get_content_resolver)):
    """Every parsed lesson across all tracks; empty when the content tree is absent."""
    return [LessonContentResponse.from_document(doc) for doc in resolver.resolve_all()]


@router.get("/content/lessons/{lesson_id}", response_model=LessonContentResponse)
def get_lesson(lesson_id: str, resolver: ContentResolver = Depends(get_content_resolver)):
    """Resolve one lesson by its frontmatter id."""
    doc = resolver.resolve_by_id(lesson_id)
    if doc is None:
        raise HTTPException(404, "Lesson not found")
    return LessonContentResponse.from_document(doc)


@router.get("/content/flashcards/{track}", response_model=list[Flashcard])
def list_flashcards(track: str, root: Path = Depends(get_content_root)):
    """Flashcards for a track; a track without a deck has none."""
    return load_flashcards(root, track)


@router.get("/content/{track_name}/lessons/{lesson_id}", response_model=LegacyLessonResponse)
def get_legacy_lesson(
    track_name: str,
    lesson_id: str,
    resolver: ContentResolver = Depends(get_content_resolver),
):
    """Resolve one lesson by frontmatter id within a legacy track (awakening, builder)."""
    doc = resolver.resolve_legacy(track_name, lesson_id)
    if doc is None:
        raise HTTPException(404, "Lesson not found")
    return LegacyLessonResponse(frontmatter=doc.frontmatter.as_authored(), content=doc.body)


@router.get("/flashcards/{track}")
def get_flashcard_table(track: str, root: Path = Depends(get_content_root)) -> list[dict[str, str]]:
    """Flashcards keyed by the deck's own header row."""
    rows = load_flashcard_table(root, track)
    if rows is None:
        raise HTTPException(404, "Flashcards not found")
    return rows
