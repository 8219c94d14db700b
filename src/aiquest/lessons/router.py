"""Managed-store lesson endpoints.

These rows live in the ``lessons`` table and are a separate dataset from the
Markdown content served under ``/content``.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from aiquest.database import get_session
from aiquest.db.models import Lesson
from aiquest.lessons.schemas import LessonResponse

router = APIRouter(prefix="/api/v1/lessons", tags=["Lessons"])


@router.get("", response_model=list[LessonResponse])
async def list_lessons(db: AsyncSession = Depends(get_session)):
    """All managed lessons ordered by id."""
    result = await db.execute(select(Lesson).order_by(Lesson.id))
    return list(result.scalars().all())


@router.get("/{slug}", response_model=LessonResponse)
async def get_lesson(slug: str, db: AsyncSession = Depends(get_session)):
    """One managed lesson by slug."""
    result = await db.execute(select(Lesson).where(Lesson.slug == slug))
    lesson = result.scalar_one_or_none()
    if lesson is None:
        raise HTTPException(404, "Lesson not found")
    return lesson
