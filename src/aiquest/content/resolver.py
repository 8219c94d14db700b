"""Content resolver — locates lesson documents in the file-based content tree.

Two layouts are served from ``content_root``:

* tracks layout: ``tracks/{track}/{chapter}/*.md`` (dynamic tracks and chapters)
* legacy layout: ``{track}/{chapter}/*.md`` for a fixed set of track names and
  a fixed list of chapter directories

Lessons are matched on the ``id`` declared in their frontmatter, never on the
filename. Directory listings are sorted so the first match is deterministic.
Documents whose metadata cannot be parsed are logged and skipped; metadata that
parses is served as authored. Any other I/O error propagates.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from pathlib import Path

import structlog

from aiquest.content.parser import DocumentParseError, read_document, read_metadata
from aiquest.content.schemas import LessonDocument, LessonFrontmatter

logger = structlog.get_logger()

LESSON_SUFFIX = ".md"
TRACKS_DIR = "tracks"

# A document is unusable only when its metadata block cannot be parsed
_SKIPPABLE = (DocumentParseError, UnicodeDecodeError)


def _subdirs(path: Path) -> list[Path]:
    return sorted(p for p in path.iterdir() if p.is_dir())


def _lesson_files(path: Path) -> list[Path]:
    return sorted(p for p in path.iterdir() if p.is_file() and p.suffix == LESSON_SUFFIX)


class ContentResolver:
    """Read-only lookups over the lesson content tree. No caching."""

    def __init__(
        self,
        root: Path | str,
        legacy_tracks: Sequence[str] = (),
        legacy_chapters: Sequence[str] = (),
    ) -> None:
        self.root = Path(root)
        self.legacy_tracks = tuple(legacy_tracks)
        self.legacy_chapters = tuple(legacy_chapters)

    @property
    def tracks_root(self) -> Path:
        return self.root / TRACKS_DIR

    # --- Traversal ---

    def iter_lesson_paths(self) -> Iterator[tuple[str, str, Path]]:
        """Yield (track, chapter, path) for every lesson file in the tracks layout."""
        if not self.tracks_root.is_dir():
            return
        for track_dir in _subdirs(self.tracks_root):
            for chapter_dir in _subdirs(track_dir):
                for path in _lesson_files(chapter_dir):
                    yield track_dir.name, chapter_dir.name, path

    def iter_legacy_paths(self, track: str) -> Iterator[tuple[str, str, Path]]:
        """Yield (track, chapter, path) for a legacy track, chapters in configured order."""
        if track not in self.legacy_tracks:
            return
        for chapter in self.legacy_chapters:
            chapter_dir = self.root / track / chapter
            if not chapter_dir.is_dir():
                continue
            for path in _lesson_files(chapter_dir):
                yield track, chapter, path

    # --- Parsing ---

    def _load(self, track: str, chapter: str, path: Path) -> LessonDocument | None:
        try:
            metadata, body = read_document(path)
            frontmatter = LessonFrontmatter.model_validate(metadata)
        except _SKIPPABLE as e:
            logger.warning("content_document_skipped", path=str(path), error=str(e))
            return None
        return LessonDocument(frontmatter=frontmatter, body=body, path=path, track=track, chapter=chapter)

    def _declared_id(self, path: Path) -> str | None:
        try:
            metadata = read_metadata(path)
        except _SKIPPABLE as e:
            logger.warning("content_document_skipped", path=str(path), error=str(e))
            return None
        declared = metadata.get("id")
        return None if declared is None else str(declared)

    def _find(self, candidates: Iterator[tuple[str, str, Path]], lesson_id: str) -> LessonDocument | None:
        for track, chapter, path in candidates:
            if self._declared_id(path) != lesson_id:
                continue
            doc = self._load(track, chapter, path)
            if doc is not None:
                return doc
        return None

    # --- Operations ---

    def resolve_by_id(self, lesson_id: str) -> LessonDocument | None:
        """First lesson in the tracks layout whose frontmatter id equals ``lesson_id``."""
        doc = self._find(self.iter_lesson_paths(), lesson_id)
        if doc is None:
            logger.debug("lesson_not_found", lesson_id=lesson_id)
        return doc

    def resolve_legacy(self, track: str, lesson_id: str) -> LessonDocument | None:
        """First lesson of a legacy track whose frontmatter id equals ``lesson_id``."""
        return self._find(self.iter_legacy_paths(track), lesson_id)

    def resolve_all(self) -> list[LessonDocument]:
        """Every well-formed lesson in the tracks layout, in traversal order."""
        documents: list[LessonDocument] = []
        seen: dict[str, Path] = {}
        for track, chapter, path in self.iter_lesson_paths():
            doc = self._load(track, chapter, path)
            if doc is None:
                continue
            if doc.id is not None:
                if doc.id in seen:
                    logger.warning(
                        "content_duplicate_lesson_id",
                        lesson_id=doc.id,
                        path=str(path),
                        first_path=str(seen[doc.id]),
                    )
                else:
                    seen[doc.id] = path
            documents.append(doc)
        return documents
