"""Character level math.

Levels are a flat 100 XP each and MUST match the web client's
calculateCharacterLevel() / getNextLevelXP().
"""

from __future__ import annotations

XP_PER_LEVEL = 100


def compute_level(xp: int) -> int:
    """Level for a total XP amount: floor(xp / 100) + 1, never below 1."""
    return max(0, xp) // XP_PER_LEVEL + 1


def next_level_xp(level: int) -> int:
    """Total XP at which ``level`` is left behind."""
    return level * XP_PER_LEVEL


def level_progress(xp: int) -> dict:
    """Level plus how far into it a learner is."""
    level = compute_level(xp)
    floor_xp = (level - 1) * XP_PER_LEVEL
    return {
        "level": level,
        "xp_into_level": max(0, xp) - floor_xp,
        "xp_for_level": XP_PER_LEVEL,
        "next_level_xp": next_level_xp(level),
    }
