"""
Pydantic models (request/response shapes) for API endpoints.

`SongResponse` is also the record shape the catalog client keeps in memory.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SongFields(BaseModel):
    """Editable fields of a song, as sent on create and update."""

    title: str = Field(..., min_length=1, description="Song title (required).")
    artist: str = Field(..., min_length=1, description="Song artist (required).")
    album: str = Field(..., min_length=1, description="Album name (required).")
    year: Optional[int] = Field(None, description="Release year. Defaults to the current year.")
    genre: Optional[str] = Field(None, description="Genre. Defaults to 'Unknown'.")
    duration: Optional[str] = Field(None, description="Free-form duration such as '3:45'. Defaults to '0:00'.")

    @field_validator("title", "artist", "album", "genre", "duration", mode="before")
    @classmethod
    def _strip_text(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value


class SongResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: uuid.UUID = Field(..., description="Song UUID, assigned by the store.")
    title: str = Field(..., description="Song title.")
    artist: str = Field(..., description="Song artist.")
    album: str = Field(..., description="Album name.")
    year: int = Field(..., description="Release year.")
    genre: str = Field(..., description="Genre.")
    duration: str = Field(..., description="Free-form duration.")
    created_at: datetime = Field(..., description="Creation timestamp.")
    updated_at: datetime = Field(..., description="Last update timestamp.")
