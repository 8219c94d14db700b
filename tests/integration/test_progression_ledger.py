"""Progression ledger tests — XP/level bookkeeping, superpower upserts, activity log."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from aiquest.database import get_session
from aiquest.db.models import UserActivity, UserCharacter, UserSuperpower
from aiquest.progression.schemas import ProgressionEvent
from aiquest.progression.service import ProgressionLedger
from tests.conftest import LEARNER_ID, OTHER_LEARNER_ID


def _event(**fields) -> ProgressionEvent:
    fields.setdefault("eventType", "quiz_pass")
    return ProgressionEvent.model_validate(fields)


async def _count(db: AsyncSession, model, user_id: str = LEARNER_ID) -> int:
    result = await db.execute(select(func.count()).select_from(model).where(model.user_id == user_id))
    return result.scalar_one()


class TestCharacterLevels:
    """Level is always floor(xp / 100) + 1."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "deltas,expected_xp,expected_level",
        [
            ([0], 0, 1),
            ([50, 49], 99, 1),
            ([60, 40], 100, 2),
            ([100, 100, 50], 250, 3),
        ],
    )
    async def test_level_tracks_xp(self, db_session, deltas, expected_xp, expected_level):
        ledger = ProgressionLedger(db_session)
        for delta in deltas:
            await ledger.apply_event(LEARNER_ID, _event(xpDelta=delta))

        character = await ledger.get_character(LEARNER_ID)
        assert character is not None
        assert character.xp == expected_xp
        assert character.level == expected_level

    @pytest.mark.asyncio
    async def test_level_drops_with_negative_delta(self, db_session):
        ledger = ProgressionLedger(db_session)
        await ledger.apply_event(LEARNER_ID, _event(xpDelta=250))
        await ledger.apply_event(LEARNER_ID, _event(xpDelta=-200))

        character = await ledger.get_character(LEARNER_ID)
        assert character.xp == 50
        assert character.level == 1


class TestFloorClamp:
    @pytest.mark.asyncio
    async def test_xp_never_negative(self, db_session):
        ledger = ProgressionLedger(db_session)
        await ledger.apply_event(LEARNER_ID, _event(xpDelta=30))
        await ledger.apply_event(LEARNER_ID, _event(xpDelta=-500))

        character = await ledger.get_character(LEARNER_ID)
        assert character.xp == 0
        assert character.level == 1

    @pytest.mark.asyncio
    async def test_negative_first_event(self, db_session):
        ledger = ProgressionLedger(db_session)
        await ledger.apply_event(LEARNER_ID, _event(xpDelta=-10, minutesDelta=-10))

        character = await ledger.get_character(LEARNER_ID)
        assert character.xp == 0
        assert character.total_learning_minutes == 0

    @pytest.mark.asyncio
    async def test_minutes_accumulate_and_clamp(self, db_session):
        ledger = ProgressionLedger(db_session)
        await ledger.apply_event(LEARNER_ID, _event(minutesDelta=15))
        await ledger.apply_event(LEARNER_ID, _event(minutesDelta=10))
        character = await ledger.get_character(LEARNER_ID)
        assert character.total_learning_minutes == 25

        await ledger.apply_event(LEARNER_ID, _event(minutesDelta=-40))
        character = await ledger.get_character(LEARNER_ID)
        assert character.total_learning_minutes == 0


class TestCharacterCreation:
    @pytest.mark.asyncio
    async def test_fresh_learner_has_no_character(self, db_session):
        state = await ProgressionLedger(db_session).get_progression(LEARNER_ID)
        assert state == {"character": None, "superpowers": [], "activity": []}

    @pytest.mark.asyncio
    async def test_created_once_with_seed_values(self, db_session):
        ledger = ProgressionLedger(db_session)
        await ledger.apply_event(LEARNER_ID, _event(eventType="streak_update"))

        character = await ledger.get_character(LEARNER_ID)
        assert character.name == "AI Explorer"
        assert character.avatar_emoji == "\U0001f916"
        assert character.xp == 0
        assert character.level == 1
        assert character.current_streak == 0
        assert character.total_learning_minutes == 0

        await ledger.apply_event(LEARNER_ID, _event(xpDelta=10))
        assert await _count(db_session, UserCharacter) == 1
        character = await ledger.get_character(LEARNER_ID)
        assert character.xp == 10

    @pytest.mark.asyncio
    async def test_learners_are_isolated(self, db_session):
        ledger = ProgressionLedger(db_session)
        await ledger.apply_event(LEARNER_ID, _event(xpDelta=70))
        await ledger.apply_event(OTHER_LEARNER_ID, _event(xpDelta=5))

        assert (await ledger.get_character(LEARNER_ID)).xp == 70
        assert (await ledger.get_character(OTHER_LEARNER_ID)).xp == 5
        state = await ledger.get_progression(OTHER_LEARNER_ID)
        assert len(state["activity"]) == 1


class TestSuperpowerUpsert:
    @pytest.mark.asyncio
    async def test_first_unlock_then_level_up(self, db_session):
        ledger = ProgressionLedger(db_session)
        await ledger.apply_event(LEARNER_ID, _event(
            eventType="unit_complete",
            unitId="what-is-ai",
            superpower={"id": "perception", "name": "AI Perception", "levelDelta": 1},
        ))
        await ledger.apply_event(LEARNER_ID, _event(
            eventType="unit_complete",
            superpower={"id": "perception", "name": "AI Perception", "levelDelta": 2},
        ))

        state = await ledger.get_progression(LEARNER_ID)
        assert len(state["superpowers"]) == 1
        power = state["superpowers"][0]
        assert power.superpower_id == "perception"
        assert power.level == 3
        assert power.unlocked_at == "what-is-ai"

    @pytest.mark.asyncio
    async def test_level_never_below_one(self, db_session):
        ledger = ProgressionLedger(db_session)
        await ledger.apply_event(LEARNER_ID, _event(superpower={"id": "programming", "name": "AI Programming", "levelDelta": -3}))
        state = await ledger.get_progression(LEARNER_ID)
        assert state["superpowers"][0].level == 1

        await ledger.apply_event(LEARNER_ID, _event(superpower={"id": "programming", "name": "AI Programming", "levelDelta": -3}))
        state = await ledger.get_progression(LEARNER_ID)
        assert state["superpowers"][0].level == 1

    @pytest.mark.asyncio
    async def test_level_is_not_capped_by_catalog(self, db_session):
        ledger = ProgressionLedger(db_session)
        await ledger.apply_event(LEARNER_ID, _event(superpower={"id": "data-sight", "name": "Data Sight", "levelDelta": 7}))
        state = await ledger.get_progression(LEARNER_ID)
        assert state["superpowers"][0].level == 7

    @pytest.mark.asyncio
    async def test_explicit_unlocked_at_wins_over_unit(self, db_session):
        ledger = ProgressionLedger(db_session)
        await ledger.apply_event(LEARNER_ID, _event(
            unitId="unit-9",
            superpower={"id": "perception", "name": "AI Perception", "unlockedAt": "what-is-ai", "icon": "eye", "color": "text-blue-500"},
        ))
        (power,) = (await ledger.get_progression(LEARNER_ID))["superpowers"]
        assert power.unlocked_at == "what-is-ai"
        assert power.icon == "eye"
        assert power.color == "text-blue-500"

    @pytest.mark.asyncio
    async def test_newest_superpower_first(self, db_session):
        ledger = ProgressionLedger(db_session)
        await ledger.apply_event(LEARNER_ID, _event(superpower={"id": "perception", "name": "AI Perception"}))
        await ledger.apply_event(LEARNER_ID, _event(superpower={"id": "programming", "name": "AI Programming"}))
        ids = [p.superpower_id for p in (await ledger.get_progression(LEARNER_ID))["superpowers"]]
        assert ids == ["programming", "perception"]
        assert await _count(db_session, UserSuperpower) == 2


class TestActivityLog:
    @pytest.mark.asyncio
    async def test_one_record_per_event(self, db_session):
        ledger = ProgressionLedger(db_session)
        for i in range(5):
            await ledger.apply_event(LEARNER_ID, _event(xpDelta=i, unitId=f"unit-{i}"))

        assert await _count(db_session, UserActivity) == 5
        activity = (await ledger.get_progression(LEARNER_ID))["activity"]
        assert [a.unit_id for a in activity] == ["unit-4", "unit-3", "unit-2", "unit-1", "unit-0"]

    @pytest.mark.asyncio
    async def test_superpower_payload_embedded_in_metadata(self, db_session):
        ledger = ProgressionLedger(db_session)
        await ledger.apply_event(LEARNER_ID, _event(superpower={"id": "perception", "name": "AI Perception", "levelDelta": 2}))
        await ledger.apply_event(LEARNER_ID, _event(xpDelta=5))

        newest, oldest = (await ledger.get_progression(LEARNER_ID))["activity"]
        assert newest.extra_data is None
        assert oldest.extra_data == {"superpower": {"id": "perception", "name": "AI Perception", "levelDelta": 2}}

    @pytest.mark.asyncio
    async def test_recent_activity_is_limited(self, db_session):
        ledger = ProgressionLedger(db_session, activity_limit=3)
        for _ in range(5):
            await ledger.apply_event(LEARNER_ID, _event())
        assert len((await ledger.get_progression(LEARNER_ID))["activity"]) == 3

    @pytest.mark.asyncio
    async def test_activity_survives_failed_character_update(self, db_session):
        ledger = ProgressionLedger(db_session)
        await ledger.apply_event(LEARNER_ID, _event(xpDelta=40))

        failing = AsyncMock(side_effect=RuntimeError("store went away"))
        with patch.object(ProgressionLedger, "_apply_character_deltas", failing):
            with pytest.raises(RuntimeError):
                await ledger.apply_event(LEARNER_ID, _event(xpDelta=40))

        assert await _count(db_session, UserActivity) == 2
        character = await ledger.get_character(LEARNER_ID)
        assert character.xp == 40

    @pytest.mark.asyncio
    async def test_failed_superpower_step_rolls_back_character_change(self, db_session):
        ledger = ProgressionLedger(db_session)
        failing = AsyncMock(side_effect=RuntimeError("constraint"))
        with patch.object(ProgressionLedger, "_upsert_superpower", failing):
            with pytest.raises(RuntimeError):
                await ledger.apply_event(LEARNER_ID, _event(xpDelta=40, superpower={"id": "perception", "name": "AI Perception"}))

        assert await _count(db_session, UserActivity) == 1
        assert await ledger.get_character(LEARNER_ID) is None


class TestScenario:
    @pytest.mark.asyncio
    async def test_two_quiz_passes(self, db_session):
        ledger = ProgressionLedger(db_session)
        await ledger.apply_event(LEARNER_ID, _event(eventType="quiz_pass", xpDelta=20))
        await ledger.apply_event(LEARNER_ID, _event(eventType="quiz_pass", xpDelta=20))

        state = await ledger.get_progression(LEARNER_ID)
        assert state["character"].xp == 40
        assert state["character"].level == 1
        assert len(state["activity"]) == 2


async def _apply_in_own_session(user_id: str, event: ProgressionEvent) -> None:
    async for session in get_session():
        await ProgressionLedger(session).apply_event(user_id, event)


class TestConcurrentEvents:
    """Simultaneous events for one learner each land exactly once."""

    @pytest.mark.asyncio
    async def test_first_events_for_new_learner(self, db_session):
        await asyncio.gather(
            _apply_in_own_session(LEARNER_ID, _event(xpDelta=20)),
            _apply_in_own_session(LEARNER_ID, _event(xpDelta=20)),
        )

        assert await _count(db_session, UserCharacter) == 1
        assert await _count(db_session, UserActivity) == 2
        character = await ProgressionLedger(db_session).get_character(LEARNER_ID)
        assert character.xp == 40

    @pytest.mark.asyncio
    async def test_first_unlocks_of_same_superpower(self, db_session):
        power = {"id": "perception", "name": "AI Perception", "levelDelta": 1}
        await asyncio.gather(
            _apply_in_own_session(LEARNER_ID, _event(superpower=power)),
            _apply_in_own_session(LEARNER_ID, _event(superpower=power)),
        )

        assert await _count(db_session, UserSuperpower) == 1
        (unlocked,) = (await ProgressionLedger(db_session).get_progression(LEARNER_ID))["superpowers"]
        assert unlocked.level == 2

    @pytest.mark.asyncio
    async def test_repeat_event_does_not_recreate_character(self, db_session):
        ledger = ProgressionLedger(db_session)
        await ledger.apply_event(LEARNER_ID, _event(xpDelta=30))
        first = await ledger.get_character(LEARNER_ID)
        created_at = first.created_at

        await ledger.apply_event(LEARNER_ID, _event(xpDelta=30))
        again = await ledger.get_character(LEARNER_ID)
        assert again.created_at == created_at
        assert again.xp == 60
