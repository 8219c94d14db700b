"""Superpower catalog — static, matching the web client's superpower list.

The ledger stores whatever superpower id an event names; this catalog only
describes the known ones. ``max_level`` is informational and is not enforced
when levels are written.
"""

from __future__ import annotations

SUPERPOWER_CATALOG: list[dict] = [
    {
        "id": "perception",
        "name": "AI Perception",
        "description": "See AI systems in everyday life",
        "icon": "\U0001f441\ufe0f",
        "color": "text-blue-500",
        "unlocked_at": "what-is-ai",
        "max_level": 5,
    },
    {
        "id": "pattern-recognition",
        "name": "Pattern Recognition",
        "description": "Identify patterns in any system",
        "icon": "\U0001f50d",
        "color": "text-green-500",
        "unlocked_at": "ai-in-daily-life",
        "max_level": 5,
    },
    {
        "id": "programming",
        "name": "AI Programming",
        "description": "Write code for AI applications",
        "icon": "\U0001f4bb",
        "color": "text-purple-500",
        "unlocked_at": "first-python-code",
        "max_level": 5,
    },
    {
        "id": "data-sight",
        "name": "Data Sight",
        "description": "See insights in any dataset",
        "icon": "\U0001f4ca",
        "color": "text-orange-500",
        "unlocked_at": "data-exploration",
        "max_level": 5,
    },
]

_BY_ID = {entry["id"]: entry for entry in SUPERPOWER_CATALOG}


def get_superpower(superpower_id: str) -> dict | None:
    """Catalog entry for a superpower id, or None when unknown."""
    return _BY_ID.get(superpower_id)
