"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
import yaml
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from aiquest.auth.jwt import create_access_token
from aiquest.config import get_settings
from aiquest.database import close_db, create_schema, get_session, init_db

TEST_JWT_SECRET = "test-secret-for-learner-tokens-0123456789"
LEARNER_ID = "5b0e6f2a-3d4c-4f8e-9a1b-2c3d4e5f6a7b"
OTHER_LEARNER_ID = "9f8e7d6c-5b4a-4392-8170-6f5e4d3c2b1a"


def write_lesson(path: Path, frontmatter: dict | None, body: str = "") -> Path:
    """Write a Markdown lesson with a YAML frontmatter block."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if frontmatter is None:
        path.write_text(body, encoding="utf-8")
    else:
        meta = yaml.safe_dump(frontmatter, sort_keys=False)
        path.write_text(f"---\n{meta}---\n{body}", encoding="utf-8")
    return path


def build_content_tree(root: Path) -> Path:
    """Two tracks of lessons, a malformed file, legacy tracks and a flashcard deck."""
    tracks = root / "tracks"
    write_lesson(
        tracks / "foundations" / "chapter1" / "01-what-is-ai.md",
        {
            "id": "what-is-ai",
            "title": "What is AI?",
            "duration_min": 12,
            "prereqs": [],
            "tags": ["beginner"],
            "video": {"platform": "youtube", "id": "aircAruvnKk", "start": 0, "end": 300},
            "quiz": [
                {
                    "q": "Which of these is a machine learning task?",
                    "options": ["Sorting a list", "Classifying spam", "Printing text"],
                    "answer": 1,
                    "explain": "Spam filters learn from labelled examples.",
                }
            ],
            "next": "neural-networks",
        },
        "# What is AI?\n\nArtificial intelligence is everywhere.\n",
    )
    write_lesson(
        tracks / "foundations" / "chapter1" / "02-broken.md",
        None,
        "---\nid: broken-lesson\ntitle: [unterminated\n---\nBody\n",
    )
    write_lesson(
        tracks / "foundations" / "chapter2" / "neural-nets.md",
        {"id": "neural-networks", "title": "Neural Networks", "prereqs": ["what-is-ai"], "tags": ["intermediate"]},
        "Neurons and layers.\n",
    )
    write_lesson(
        tracks / "python-track" / "week1" / "first-code.md",
        {"id": "first-python-code", "title": "Your first Python", "duration_min": 20},
        "print('hello')\n",
    )
    (tracks / "python-track" / "week1" / "notes.txt").write_text("not a lesson", encoding="utf-8")

    write_lesson(
        root / "awakening" / "chapter1" / "awaken.md",
        {"id": "awaken-intro", "title": "The Awakening"},
        "You open your eyes.\n",
    )
    write_lesson(
        root / "builder" / "chapter3" / "project.md",
        {"id": "builder-project", "title": "Mini Project"},
        "Build a classifier.\n",
    )
    write_lesson(
        root / "builder" / "chapter9" / "hidden.md",
        {"id": "builder-hidden", "title": "Outside the chapter list"},
        "",
    )

    decks = root / "flashcards"
    decks.mkdir(parents=True, exist_ok=True)
    (decks / "foundations.csv").write_text(
        "track,card_front,card_back\n"
        "foundations,What is AI?,Machines performing tasks that need intelligence\n"
        "foundations,What is a neuron?,A weighted sum followed by an activation\n",
        encoding="utf-8",
    )
    return root


@pytest.fixture(autouse=True)
def test_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Point settings at a temp database and content tree for every test."""
    monkeypatch.setenv("AIQ_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'aiquest.db'}")
    monkeypatch.setenv("AIQ_CONTENT_ROOT", str(tmp_path / "content"))
    monkeypatch.setenv("AIQ_JWT_SECRET", TEST_JWT_SECRET)
    monkeypatch.setenv("AIQ_LOG_FORMAT", "console")
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


@pytest.fixture
def content_root(test_settings) -> Path:
    return build_content_tree(Path(test_settings.content_root))


@pytest_asyncio.fixture
async def db_session(test_settings) -> AsyncGenerator[AsyncSession, None]:
    """A session on a freshly created schema."""
    await init_db(test_settings.database_url)
    await create_schema()
    async for session in get_session():
        yield session
        break
    await close_db()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client; the database is initialised by db_session."""
    from aiquest.main import create_app

    app = create_app()
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def learner_token() -> str:
    return create_access_token(LEARNER_ID, email="learner@example.com")


@pytest_asyncio.fixture
async def authed_client(client: AsyncClient, learner_token: str) -> AsyncClient:
    """Client carrying the learner's bearer token."""
    client.headers["Authorization"] = f"Bearer {learner_token}"
    return client
