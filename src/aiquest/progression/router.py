"""Progression API endpoints — learner state reads and event writes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from aiquest.auth.dependencies import Identity, get_current_identity
from aiquest.config import get_settings
from aiquest.database import get_session
from aiquest.progression.catalog import SUPERPOWER_CATALOG
from aiquest.progression.schemas import (
    AckResponse,
    ActivityResponse,
    CharacterResponse,
    ProgressionEvent,
    ProgressionResponse,
    SuperpowerCatalogEntry,
    SuperpowerCatalogResponse,
    SuperpowerResponse,
)
from aiquest.progression.service import ProgressionLedger

router = APIRouter(prefix="/api/v1/progression", tags=["Progression"])


def _ledger(db: AsyncSession) -> ProgressionLedger:
    return ProgressionLedger(db, activity_limit=get_settings().activity_feed_limit)


@router.get("", response_model=ProgressionResponse)
async def get_progression(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
):
    """The authenticated learner's character, superpowers and recent activity."""
    state = await _ledger(db).get_progression(identity.user_id)
    character = state["character"]
    return ProgressionResponse(
        character=CharacterResponse.model_validate(character) if character else None,
        superpowers=[SuperpowerResponse.model_validate(p) for p in state["superpowers"]],
        activity=[ActivityResponse.model_validate(a) for a in state["activity"]],
    )


@router.post("", response_model=AckResponse)
async def apply_progression_event(
    event: ProgressionEvent,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
):
    """Apply one progression event for the authenticated learner.

    The acknowledgement carries no state; read it back with GET.
    """
    await _ledger(db).apply_event(identity.user_id, event)
    return AckResponse()


@router.get("/superpowers", response_model=SuperpowerCatalogResponse)
async def list_superpowers():
    """The static catalog of known superpowers."""
    return SuperpowerCatalogResponse(
        superpowers=[SuperpowerCatalogEntry(**entry) for entry in SUPERPOWER_CATALOG]
    )
