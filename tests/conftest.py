"""
Pytest configuration for the song catalog.

Provides fixtures for:
- An in-memory SQLite database behind the API
- A FastAPI TestClient
- A factory for in-memory catalog records
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient

from song_catalog.api import db
from song_catalog.api.main import app
from song_catalog.api.schemas import SongResponse

_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture()
def database(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Fresh in-memory database for one test."""
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    db.reset_engine()
    db.init_db()
    yield
    db.reset_engine()


@pytest.fixture()
def api_client(database) -> Generator[TestClient, None, None]:
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture()
def make_record() -> Callable[..., SongResponse]:
    """
    Build SongResponse records. Each call gets a later created_at than the
    previous one, so creation order is preserved.
    """
    counter = {"n": 0}

    def _make(title: str = "Song", artist: str = "Artist", **overrides) -> SongResponse:
        counter["n"] += 1
        stamp = _EPOCH + timedelta(minutes=counter["n"])
        values = {
            "id": uuid.uuid4(),
            "title": title,
            "artist": artist,
            "album": "Album",
            "year": 2000,
            "genre": "Rock",
            "duration": "3:00",
            "created_at": stamp,
            "updated_at": stamp,
        }
        values.update(overrides)
        return SongResponse(**values)

    return _make
