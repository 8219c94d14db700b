"""Flashcard decks — one comma-separated file per track under ``flashcards/``."""

from __future__ import annotations

import csv
import io
from pathlib import Path

import structlog

from aiquest.content.schemas import Flashcard

logger = structlog.get_logger()

FLASHCARDS_DIR = "flashcards"
DELIMITER = ","


def deck_path(root: Path, track: str) -> Path | None:
    """Path of a track's deck, or None when the track name could escape the directory."""
    if not track or "/" in track or "\\" in track or track.startswith("."):
        return None
    return root / FLASHCARDS_DIR / f"{track}.csv"


def load_flashcards(root: Path, track: str) -> list[Flashcard]:
    """Positional deck read: header skipped, fields are track, card_front, card_back.

    Fields are split on the bare delimiter with no quoting support. Rows with
    fewer than three fields are skipped; extra fields are ignored. An absent
    deck is an empty deck.
    """
    path = deck_path(root, track)
    if path is None or not path.is_file():
        return []

    lines = path.read_text(encoding="utf-8").strip().splitlines()
    cards: list[Flashcard] = []
    for lineno, line in enumerate(lines[1:], start=2):
        if not line.strip():
            continue
        values = line.split(DELIMITER)
        if len(values) < 3:
            logger.warning("flashcard_row_skipped", track=track, line=lineno, fields=len(values))
            continue
        cards.append(Flashcard(track=values[0].strip(), card_front=values[1].strip(), card_back=values[2].strip()))
    return cards


def load_flashcard_table(root: Path, track: str) -> list[dict[str, str]] | None:
    """Header-keyed deck read (quoted fields allowed); None when the deck is absent."""
    path = deck_path(root, track)
    if path is None or not path.is_file():
        return None

    text = path.read_text(encoding="utf-8")
    reader = csv.DictReader(io.StringIO(text), skipinitialspace=True)
    rows = []
    for row in reader:
        # overflow fields land under the None key
        card = {k.strip(): (v or "").strip() for k, v in row.items() if k is not None}
        if any(card.values()):
            rows.append(card)
    return rows
