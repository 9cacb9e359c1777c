"""
Async HTTP client for the record store API.

Every failure is raised as a `song_catalog.errors.CatalogError`:
400/422 -> InvalidInput, 404 -> NotFound, 409 -> Conflict,
connection problems -> Transport, anything else -> Unknown.
"""

from __future__ import annotations

import logging
import os
import uuid
from typing import Any, Dict, List, Mapping, Optional, Union

import httpx
from pydantic import ValidationError

from song_catalog.api.schemas import SongFields, SongResponse
from song_catalog.errors import CatalogError, Transport, Unknown, error_for_status

logger = logging.getLogger(__name__)

_DEFAULT_BASE_URL = "http://localhost:5000"
_SONGS_PATH = "/api/songs"

Fields = Union[SongFields, Mapping[str, Any]]


def _base_url() -> str:
    return os.getenv("CATALOG_API_BASE_URL", _DEFAULT_BASE_URL).rstrip("/")


def _payload(fields: Fields) -> Dict[str, Any]:
    if isinstance(fields, SongFields):
        return fields.model_dump(exclude_none=True)
    return {k: v for k, v in fields.items() if k != "id"}


def _error_from_response(response: httpx.Response) -> CatalogError:
    message = f"Request failed with status {response.status_code}"
    errors: List[str] = []
    try:
        body = response.json()
    except ValueError:
        body = None
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, dict):
        message = detail.get("message") or message
        errors = [str(e) for e in detail.get("errors") or []]
    elif isinstance(detail, str):
        message = detail
    return error_for_status(response.status_code, message, errors)


def _records(data: Any) -> List[SongResponse]:
    if not isinstance(data, list):
        raise Unknown("Malformed response from the song catalog")
    return [_record(item) for item in data]


def _record(data: Any) -> SongResponse:
    try:
        return SongResponse.model_validate(data)
    except ValidationError as exc:
        logger.warning("store_malformed_record: errors=%d", exc.error_count())
        raise Unknown("Malformed response from the song catalog") from exc


class RecordStoreClient:
    """Talks to `/api/songs`; pass `client` to reuse or stub the transport."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url or _base_url(), timeout=timeout)

    async def __aenter__(self) -> "RecordStoreClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, _SONGS_PATH + path, **kwargs)
        except httpx.TransportError as exc:
            logger.warning("store_unreachable: method=%s path=%s exc=%s", method, path, exc.__class__.__name__)
            raise Transport(f"Could not reach the song catalog: {exc}") from exc
        except httpx.HTTPError as exc:
            raise Unknown(str(exc) or exc.__class__.__name__) from exc

        if response.is_error:
            error = _error_from_response(response)
            logger.info(
                "store_request_failed: method=%s path=%s status=%s error=%s",
                method,
                path,
                response.status_code,
                error.code,
            )
            raise error
        try:
            return response.json()
        except ValueError as exc:
            raise Unknown("Malformed response from the song catalog") from exc

    # PUBLIC_INTERFACE
    async def list_records(self) -> List[SongResponse]:
        """Full snapshot of the catalog, newest first."""
        return _records(await self._request("GET", ""))

    # PUBLIC_INTERFACE
    async def search_records(self, query: str) -> List[SongResponse]:
        """Server-side case-insensitive search over title, artist, album and genre."""
        data = await self._request("GET", "/search", params={"q": query})
        return _records(data)

    # PUBLIC_INTERFACE
    async def get_record(self, record_id: uuid.UUID) -> SongResponse:
        return _record(await self._request("GET", f"/{record_id}"))

    # PUBLIC_INTERFACE
    async def create_record(self, fields: Fields) -> SongResponse:
        """Create a record; the store assigns its id."""
        return _record(await self._request("POST", "", json=_payload(fields)))

    # PUBLIC_INTERFACE
    async def update_record(self, record_id: uuid.UUID, fields: Fields) -> SongResponse:
        return _record(await self._request("PUT", f"/{record_id}", json=_payload(fields)))

    # PUBLIC_INTERFACE
    async def delete_record(self, record_id: uuid.UUID) -> SongResponse:
        """Delete a record and return it as it was."""
        return _record(await self._request("DELETE", f"/{record_id}"))
