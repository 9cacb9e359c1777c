"""
FastAPI application entrypoint for the song catalog backend.

This backend is intentionally PUBLIC (no authentication):
- GET/POST /api/songs, GET /api/songs/search
- GET/PUT/DELETE /api/songs/{song_id}
- POST /api/songs/import

CORS is enabled for local development (http://localhost:3000) and can be extended
via environment variables.
"""

from __future__ import annotations

import logging
import os as _os
from contextlib import asynccontextmanager
from typing import List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from song_catalog.api.db import init_db
from song_catalog.api.routes_songs import router as songs_router
from song_catalog.errors import InvalidInput

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "Songs", "description": "Create, list, search, update and delete songs (public)."},
    {"name": "Health", "description": "Service health and basic runtime info."},
]


@asynccontextmanager
async def lifespan(_app: FastAPI):
    try:
        init_db()
    except (RuntimeError, SQLAlchemyError) as exc:
        # Routes answer 503 while the database is unreachable.
        logger.warning("init_db_failed: exc=%s message=%s", exc.__class__.__name__, exc)
    yield


app = FastAPI(
    title="Song Catalog API",
    description=(
        "Song metadata catalog: title, artist, album, year, genre and duration.\n\n"
        "Authentication: none (public API)"
    ),
    version="1.0.0",
    openapi_tags=openapi_tags,
    lifespan=lifespan,
)

# Add additional origins via CORS_ALLOW_ORIGINS or ALLOWED_ORIGINS (comma-separated).
cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

_allow_origins_raw = _os.getenv("CORS_ALLOW_ORIGINS") or _os.getenv("ALLOWED_ORIGINS", "")
cors_origins.extend(o.strip() for o in _allow_origins_raw.split(",") if o.strip())

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(songs_router)


def _field_messages(exc: RequestValidationError) -> List[str]:
    messages = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc)
        messages.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
    return messages


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    """Answer request validation failures with 400 and flattened field messages."""
    error = InvalidInput("Validation error", _field_messages(exc))
    return JSONResponse(status_code=error.status_code, content={"detail": error.to_detail()})


@app.get(
    "/",
    summary="Health check",
    description="Simple health check endpoint.",
    tags=["Health"],
)
def health_check():
    """Return basic service health information."""
    return {"status": "ok"}


# PUBLIC_INTERFACE
def run() -> None:
    """Run the API with uvicorn, configured from HOST, PORT and LOG_LEVEL."""
    import uvicorn

    log_level = _os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    uvicorn.run(
        app,
        host=_os.getenv("HOST", "0.0.0.0"),
        port=int(_os.getenv("PORT", "5000")),
        log_level=log_level.lower(),
    )


if __name__ == "__main__":
    run()
