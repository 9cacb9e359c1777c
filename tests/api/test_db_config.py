from __future__ import annotations

import pytest

from song_catalog.api import db
from song_catalog.errors import Conflict, InvalidInput, NotFound, Unknown, error_for_status


def test_redacts_password() -> None:
    url = "postgresql+psycopg2://catalog:s3cret@db:5432/songs"

    assert db._redact_database_url(url) == "postgresql+psycopg2://catalog:***@db:5432/songs"
    assert db._redact_database_url("sqlite:///catalog.db") == "sqlite:///catalog.db"


def test_database_url_wins(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgres://u:p@h/db")

    assert db._build_database_url() == "postgresql://u:p@h/db"


def test_postgres_parts(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("POSTGRES_PORT", raising=False)
    monkeypatch.setenv("POSTGRES_URL", "db.internal:6543")
    monkeypatch.setenv("POSTGRES_USER", "catalog")
    monkeypatch.setenv("POSTGRES_PASSWORD", "pw")
    monkeypatch.setenv("POSTGRES_DB", "songs")

    assert db._build_database_url() == "postgresql+psycopg2://catalog:pw@db.internal:6543/songs"


def test_missing_configuration_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("POSTGRES_URL", raising=False)

    with pytest.raises(RuntimeError):
        db._build_database_url()


@pytest.mark.parametrize(
    "status_code,expected",
    [(400, InvalidInput), (422, InvalidInput), (404, NotFound), (409, Conflict), (500, Unknown), (418, Unknown)],
)
def test_error_for_status(status_code: int, expected: type) -> None:
    assert type(error_for_status(status_code, "message")) is expected


def test_error_detail_includes_field_messages() -> None:
    error = InvalidInput("Validation error", ["title: Field required"])

    assert error.to_detail() == {
        "error": "invalid_input",
        "message": "Validation error",
        "errors": ["title: Field required"],
    }
    assert Conflict("dup").to_detail() == {"error": "conflict", "message": "dup"}


def test_postgres_full_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("POSTGRES_PORT", raising=False)
    monkeypatch.delenv("POSTGRES_DB", raising=False)
    monkeypatch.setenv("POSTGRES_URL", "postgresql://db.internal:5432/songs")
    monkeypatch.setenv("POSTGRES_USER", "catalog")
    monkeypatch.setenv("POSTGRES_PASSWORD", "pw")

    assert db._build_database_url() == "postgresql+psycopg2://catalog:pw@db.internal:5432/songs"


def test_postgres_full_url_parts_are_overridable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("POSTGRES_USER", raising=False)
    monkeypatch.delenv("POSTGRES_PASSWORD", raising=False)
    monkeypatch.setenv("POSTGRES_URL", "postgres://u:p@h:6000/x")
    monkeypatch.setenv("POSTGRES_DB", "songs")
    monkeypatch.setenv("POSTGRES_PORT", "7000")

    assert db._build_database_url() == "postgresql+psycopg2://u:p@h:7000/songs"


def test_postgres_full_url_without_credentials_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("POSTGRES_USER", raising=False)
    monkeypatch.delenv("POSTGRES_PASSWORD", raising=False)
    monkeypatch.setenv("POSTGRES_URL", "postgresql://db.internal/songs")

    with pytest.raises(RuntimeError):
        db._build_database_url()
