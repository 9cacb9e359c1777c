"""
iTunes Search importer.

Looks up songs on the public iTunes Search API and maps each track onto the
catalog's editable fields:

    trackName -> title, artistName -> artist, collectionName -> album,
    releaseDate -> year, trackTimeMillis -> duration ("m:ss")
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from song_catalog.api.schemas import SongFields
from song_catalog.errors import InvalidInput, Transport

logger = logging.getLogger(__name__)

_DEFAULT_SEARCH_URL = "https://itunes.apple.com/search"
_TIMEOUT_SECONDS = 10.0


def _search_url() -> str:
    return os.getenv("ITUNES_SEARCH_URL", _DEFAULT_SEARCH_URL).strip() or _DEFAULT_SEARCH_URL


def _format_duration(millis: Any) -> Optional[str]:
    """Format a millisecond count as 'm:ss'; None when unknown."""
    try:
        total_seconds = int(millis) // 1000
    except (TypeError, ValueError):
        return None
    if total_seconds <= 0:
        return None
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes}:{seconds:02d}"


def _release_year(release_date: Any) -> Optional[int]:
    if not isinstance(release_date, str) or not release_date:
        return None
    try:
        return datetime.fromisoformat(release_date.replace("Z", "+00:00")).year
    except ValueError:
        return None


# PUBLIC_INTERFACE
def track_to_fields(track: Dict[str, Any]) -> Optional[SongFields]:
    """Map one iTunes result onto SongFields; tracks missing title/artist/album are skipped."""
    try:
        return SongFields(
            title=track.get("trackName") or "",
            artist=track.get("artistName") or "",
            album=track.get("collectionName") or "",
            year=_release_year(track.get("releaseDate")),
            genre=track.get("primaryGenreName"),
            duration=_format_duration(track.get("trackTimeMillis")),
        )
    except ValidationError:
        logger.debug("itunes_track_skipped: track_id=%s", track.get("trackId"))
        return None


# PUBLIC_INTERFACE
def search_itunes(term: str, limit: int = 20, client: Optional[httpx.Client] = None) -> List[SongFields]:
    """
    Search iTunes for songs matching `term`.

    Raises:
        InvalidInput: if the term is blank.
        Transport: if the iTunes API cannot be reached or answers with an error.
    """
    term = (term or "").strip()
    if not term:
        raise InvalidInput("Search term is required")

    params = {"term": term, "entity": "song", "limit": limit}
    owns_client = client is None
    http = client or httpx.Client(timeout=_TIMEOUT_SECONDS)
    try:
        response = http.get(_search_url(), params=params)
        response.raise_for_status()
        payload = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("itunes_search_failed: term=%r exc=%s", term, exc.__class__.__name__)
        raise Transport("iTunes search failed", [exc.__class__.__name__]) from exc
    finally:
        if owns_client:
            http.close()

    if not isinstance(payload, dict):
        logger.warning("itunes_search_malformed: term=%r type=%s", term, type(payload).__name__)
        raise Transport("iTunes search returned an unexpected response")
    results = payload.get("results") or []
    if not isinstance(results, list):
        raise Transport("iTunes search returned an unexpected response")
    fields = [f for f in (track_to_fields(t) for t in results) if f is not None]
    logger.info("itunes_search: term=%r results=%d usable=%d", term, len(results), len(fields))
    return fields
