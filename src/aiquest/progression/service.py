"""Progression ledger — learner characters, superpowers and the activity log.

Writes apply client-computed deltas. The activity record is committed on its
own first so an event is always logged; the character and superpower changes
then commit together. Character and superpower rows are created with
conditional upserts (INSERT ... ON CONFLICT) and XP, minutes and levels change
in single SQL statements, so concurrent events for one learner, including a
brand-new one, neither collide nor lose increments.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import Integer, case, cast, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from aiquest.db.models import UserActivity, UserCharacter, UserSuperpower
from aiquest.progression.catalog import get_superpower
from aiquest.progression.levels import XP_PER_LEVEL
from aiquest.progression.schemas import ProgressionEvent, SuperpowerPayload

logger = structlog.get_logger()

DEFAULT_CHARACTER_NAME = "AI Explorer"
DEFAULT_AVATAR_EMOJI = "\U0001f916"
ACTIVITY_FEED_LIMIT = 50


def _floor_at(expr: Any, floor: int) -> Any:
    """SQL ``max(floor, expr)`` that works on PostgreSQL and SQLite alike."""
    return case((expr < floor, floor), else_=expr)


def _upsert_insert(db: AsyncSession) -> Any:
    """The dialect `insert` that supports ON CONFLICT for the session's database."""
    return sqlite_insert if db.get_bind().dialect.name == "sqlite" else pg_insert


class ProgressionLedger:
    """Read and write a learner's progression state."""

    def __init__(self, db: AsyncSession, activity_limit: int = ACTIVITY_FEED_LIMIT) -> None:
        self.db = db
        self.activity_limit = activity_limit

    # --- Reads ---

    async def get_character(self, user_id: str) -> UserCharacter | None:
        result = await self.db.execute(
            select(UserCharacter)
            .where(UserCharacter.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_progression(self, user_id: str) -> dict:
        """Character (None for a fresh learner), superpowers and recent activity, newest first."""
        character = await self.get_character(user_id)

        powers = await self.db.execute(
            select(UserSuperpower)
            .where(UserSuperpower.user_id == user_id)
            .order_by(UserSuperpower.created_at.desc(), UserSuperpower.id.desc())
            .execution_options(populate_existing=True)
        )
        activity = await self.db.execute(
            select(UserActivity)
            .where(UserActivity.user_id == user_id)
            .order_by(UserActivity.created_at.desc(), UserActivity.id.desc())
            .limit(self.activity_limit)
        )
        return {
            "character": character,
            "superpowers": list(powers.scalars().all()),
            "activity": list(activity.scalars().all()),
        }

    # --- Writes ---

    async def apply_event(self, user_id: str, event: ProgressionEvent) -> None:
        """Log the event, then apply its XP/minutes deltas and superpower change."""
        now = datetime.now(timezone.utc)

        await self._append_activity(user_id, event, now)
        await self.db.commit()

        try:
            await self._ensure_character(user_id, now)
            await self._apply_character_deltas(user_id, event.xp_delta, event.minutes_delta, now)
            if event.superpower is not None:
                await self._upsert_superpower(user_id, event.superpower, event.unit_id, now)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            logger.error(
                "progression_event_partially_applied",
                user_id=user_id,
                event_type=event.event_type,
                exc_info=True,
            )
            raise

        logger.info(
            "progression_event_applied",
            user_id=user_id,
            event_type=event.event_type,
            xp_delta=event.xp_delta,
            minutes_delta=event.minutes_delta,
            superpower=event.superpower.id if event.superpower else None,
        )

    async def _append_activity(self, user_id: str, event: ProgressionEvent, now: datetime) -> UserActivity:
        metadata = None
        if event.superpower is not None:
            metadata = {"superpower": event.superpower.model_dump(by_alias=True, exclude_none=True)}

        record = UserActivity(
            user_id=user_id,
            event_type=event.event_type,
            unit_id=event.unit_id,
            xp_delta=event.xp_delta,
            extra_data=metadata,
            created_at=now,
        )
        self.db.add(record)
        await self.db.flush()
        return record

    async def _ensure_character(self, user_id: str, now: datetime) -> None:
        """Create the character row with seed values unless the learner already has one."""
        insert = _upsert_insert(self.db)
        stmt = insert(UserCharacter).values(
            user_id=user_id,
            name=DEFAULT_CHARACTER_NAME,
            avatar_emoji=DEFAULT_AVATAR_EMOJI,
            level=1,
            xp=0,
            current_streak=0,
            total_learning_minutes=0,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_nothing(index_elements=["user_id"]).returning(UserCharacter.user_id)
        result = await self.db.execute(stmt)
        if result.scalar_one_or_none() is not None:
            logger.info("character_created", user_id=user_id)

    async def _apply_character_deltas(self, user_id: str, xp_delta: int, minutes_delta: int, now: datetime) -> None:
        # Every SET expression reads the pre-update row, so level derives from the new xp
        new_xp = _floor_at(UserCharacter.xp + xp_delta, 0)
        await self.db.execute(
            update(UserCharacter)
            .where(UserCharacter.user_id == user_id)
            .values(
                xp=new_xp,
                level=cast(new_xp, Integer) // XP_PER_LEVEL + 1,
                total_learning_minutes=_floor_at(UserCharacter.total_learning_minutes + minutes_delta, 0),
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )

    async def _upsert_superpower(
        self,
        user_id: str,
        payload: SuperpowerPayload,
        unit_id: str | None,
        now: datetime,
    ) -> None:
        """Unlock a superpower, or move an unlocked one by ``levelDelta`` (never below 1)."""
        if get_superpower(payload.id) is None:
            logger.info("superpower_not_in_catalog", user_id=user_id, superpower_id=payload.id)

        insert = _upsert_insert(self.db)
        stmt = insert(UserSuperpower).values(
            user_id=user_id,
            superpower_id=payload.id,
            name=payload.name,
            icon=payload.icon,
            color=payload.color,
            level=max(1, payload.level_delta),
            unlocked_at=payload.unlocked_at or unit_id,
            created_at=now,
        )
        # Name, icon and unlock point stay as first recorded
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "superpower_id"],
            set_={"level": _floor_at(UserSuperpower.level + payload.level_delta, 1)},
        )
        await self.db.execute(stmt)
