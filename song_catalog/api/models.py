"""
SQLAlchemy models for the song catalog.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, Text, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""


class Song(Base):
    """Song catalog entry.

    The (title, artist) pair is unique regardless of letter case; the
    functional index backs up the explicit check done by the routes.
    """

    __tablename__ = "songs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    title: Mapped[str] = mapped_column(Text, nullable=False)
    artist: Mapped[str] = mapped_column(Text, nullable=False)
    album: Mapped[str] = mapped_column(Text, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    genre: Mapped[str] = mapped_column(Text, nullable=False, default="Unknown")
    duration: Mapped[str] = mapped_column(Text, nullable=False, default="0:00")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


Index("uq_songs_title_artist_ci", func.lower(Song.title), func.lower(Song.artist), unique=True)
