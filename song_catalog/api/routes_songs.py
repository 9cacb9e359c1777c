"""
Song endpoints (public):
- GET /api/songs (list all songs, newest first)
- GET /api/songs/search?q= (case-insensitive substring search)
- GET /api/songs/{id}
- POST /api/songs
- PUT /api/songs/{id}
- DELETE /api/songs/{id}
- POST /api/songs/import?term= (import from iTunes Search)

Errors use the JSON shape {"detail": {"error", "message", "errors"?}}.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Generator, List, NoReturn, Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import desc, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from song_catalog.api.db import db_session_dep
from song_catalog.api.itunes import search_itunes
from song_catalog.api.models import Song
from song_catalog.api.schemas import SongFields, SongResponse
from song_catalog.errors import CatalogError, Conflict, InvalidInput, NotFound

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/songs", tags=["Songs"])

DEFAULT_GENRE = "Unknown"
DEFAULT_DURATION = "0:00"


def _raise(error: CatalogError) -> NoReturn:
    """Raise a JSON HTTP error with a predictable shape."""
    raise HTTPException(status_code=error.status_code, detail=error.to_detail())


def _with_defaults(fields: SongFields) -> Dict[str, Any]:
    return {
        "title": fields.title,
        "artist": fields.artist,
        "album": fields.album,
        "year": fields.year or datetime.now(timezone.utc).year,
        "genre": fields.genre or DEFAULT_GENRE,
        "duration": fields.duration or DEFAULT_DURATION,
    }


def _find_duplicate(db: Session, title: str, artist: str, exclude_id: Optional[uuid.UUID] = None) -> Optional[Song]:
    stmt = select(Song).where(
        func.lower(Song.title) == title.lower(),
        func.lower(Song.artist) == artist.lower(),
    )
    if exclude_id is not None:
        stmt = stmt.where(Song.id != exclude_id)
    return db.execute(stmt.limit(1)).scalar_one_or_none()


def _get_or_404(db: Session, song_id: uuid.UUID) -> Song:
    song = db.get(Song, song_id)
    if song is None:
        _raise(NotFound("Song not found"))
    return song


def _commit_or_conflict(db: Session, message: str) -> None:
    # The unique index catches duplicates that slip past the explicit check.
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        _raise(Conflict(message))


# PUBLIC_INTERFACE
def itunes_client_dep() -> Generator[httpx.Client, None, None]:
    """FastAPI dependency yielding the HTTP client used for iTunes lookups."""
    with httpx.Client(timeout=10.0) as client:
        yield client


@router.get(
    "",
    response_model=List[SongResponse],
    summary="List all songs",
    description="Returns all songs in the catalog, newest first.",
    operation_id="list_songs",
)
def list_songs(db: Session = Depends(db_session_dep)) -> List[SongResponse]:
    """List all songs in the catalog."""
    songs = db.execute(select(Song).order_by(desc(Song.created_at))).scalars().all()
    logger.info("list_songs: count=%d", len(songs))
    return [SongResponse.model_validate(s) for s in songs]


@router.get(
    "/search",
    response_model=List[SongResponse],
    summary="Search songs",
    description="Case-insensitive substring match on title, artist, album and genre.",
    operation_id="search_songs",
)
def search_songs(
    q: Optional[str] = Query(None, description="Search text."),
    db: Session = Depends(db_session_dep),
) -> List[SongResponse]:
    """Search songs by free text."""
    term = (q or "").strip().lower()
    if not term:
        _raise(InvalidInput("Search query is required"))

    columns = (Song.title, Song.artist, Song.album, Song.genre)
    stmt = (
        select(Song)
        .where(or_(*(func.lower(c).contains(term, autoescape=True) for c in columns)))
        .order_by(desc(Song.created_at))
    )
    songs = db.execute(stmt).scalars().all()
    logger.info("search_songs: q=%r count=%d", term, len(songs))
    return [SongResponse.model_validate(s) for s in songs]


@router.post(
    "/import",
    response_model=List[SongResponse],
    status_code=201,
    summary="Import songs from iTunes",
    description="Searches the iTunes catalog and stores every result not already in the catalog.",
    operation_id="import_songs",
)
def import_songs(
    term: str = Query(..., description="iTunes search term."),
    limit: int = Query(20, ge=1, le=200, description="Maximum number of iTunes results."),
    db: Session = Depends(db_session_dep),
    client: httpx.Client = Depends(itunes_client_dep),
) -> List[SongResponse]:
    """Import songs from the iTunes Search API, skipping duplicates."""
    try:
        found = search_itunes(term, limit=limit, client=client)
    except InvalidInput as exc:
        _raise(exc)
    except CatalogError as exc:
        raise HTTPException(status_code=502, detail=exc.to_detail())

    now = datetime.now(timezone.utc)
    created: List[Song] = []
    for fields in found:
        if _find_duplicate(db, fields.title, fields.artist) is not None:
            logger.debug("import_songs_skip_duplicate: title=%r artist=%r", fields.title, fields.artist)
            continue
        song = Song(id=uuid.uuid4(), created_at=now, updated_at=now, **_with_defaults(fields))
        db.add(song)
        db.flush()
        created.append(song)

    payload = [SongResponse.model_validate(s) for s in created]
    _commit_or_conflict(db, "Imported songs collided with existing songs")
    logger.info("import_songs: term=%r found=%d created=%d", term, len(found), len(created))
    return payload


@router.get(
    "/{song_id}",
    response_model=SongResponse,
    summary="Get a song",
    operation_id="get_song",
    responses={404: {"description": "Not found"}},
)
def get_song(song_id: uuid.UUID, db: Session = Depends(db_session_dep)) -> SongResponse:
    """Return one song by id."""
    return SongResponse.model_validate(_get_or_404(db, song_id))


@router.post(
    "",
    response_model=SongResponse,
    status_code=201,
    summary="Create a song",
    description="Creates a song. Title, artist and album are required; (title, artist) must be unique.",
    operation_id="create_song",
    responses={409: {"description": "Duplicate title and artist"}},
)
def create_song(fields: SongFields, db: Session = Depends(db_session_dep)) -> SongResponse:
    """Create a new song with defaults for year, genre and duration."""
    if _find_duplicate(db, fields.title, fields.artist) is not None:
        _raise(Conflict("Song with this title and artist already exists"))

    now = datetime.now(timezone.utc)
    song = Song(id=uuid.uuid4(), created_at=now, updated_at=now, **_with_defaults(fields))
    db.add(song)
    payload = SongResponse.model_validate(song)
    _commit_or_conflict(db, "Song with this title and artist already exists")

    logger.info("create_song: id=%s", song.id)
    return payload


@router.put(
    "/{song_id}",
    response_model=SongResponse,
    summary="Update a song",
    operation_id="update_song",
    responses={404: {"description": "Not found"}, 409: {"description": "Duplicate title and artist"}},
)
def update_song(song_id: uuid.UUID, fields: SongFields, db: Session = Depends(db_session_dep)) -> SongResponse:
    """Replace the editable fields of a song."""
    song = _get_or_404(db, song_id)
    if _find_duplicate(db, fields.title, fields.artist, exclude_id=song_id) is not None:
        _raise(Conflict("Another song with this title and artist already exists"))

    for name, value in _with_defaults(fields).items():
        setattr(song, name, value)
    song.updated_at = datetime.now(timezone.utc)
    payload = SongResponse.model_validate(song)
    _commit_or_conflict(db, "Another song with this title and artist already exists")

    logger.info("update_song: id=%s", song_id)
    return payload


@router.delete(
    "/{song_id}",
    response_model=SongResponse,
    summary="Delete a song",
    description="Deletes a song and returns the deleted record.",
    operation_id="delete_song",
    responses={404: {"description": "Not found"}},
)
def delete_song(song_id: uuid.UUID, db: Session = Depends(db_session_dep)) -> SongResponse:
    """Delete a song by id."""
    song = _get_or_404(db, song_id)
    payload = SongResponse.model_validate(song)
    db.delete(song)
    db.commit()

    logger.info("delete_song: id=%s", song_id)
    return payload
