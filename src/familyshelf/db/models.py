"""SQLAlchemy ORM models for local SQLite storage.

Tables:
- families: Families sharing a catalog
- members: Family members
- family_books: The shared family book catalog
- library_entries: Per-member ownership and reading status
- series: Shared series records
"""

import json
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from .schemas import BookStatus


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def generate_uuid() -> str:
    """Generate a UUID string for primary keys."""
    return str(uuid4())


def utc_now() -> str:
    """Current UTC time as an ISO string."""
    return datetime.now(timezone.utc).isoformat()


class Family(Base):
    """Family model."""

    __tablename__ = "families"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    created_at: Mapped[str] = mapped_column(String(32), default=utc_now)

    def __repr__(self) -> str:
        return f"<Family(id={self.id}, name='{self.name}')>"


class Member(Base):
    """Family member model."""

    __tablename__ = "members"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    family_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    avatar_url: Mapped[Optional[str]] = mapped_column(Text)
    color: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[str] = mapped_column(String(32), default=utc_now)

    def __repr__(self) -> str:
        return f"<Member(id={self.id}, name='{self.name}')>"


class FamilyBook(Base):
    """Catalog book shared by every member of a family."""

    __tablename__ = "family_books"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    family_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    # Core fields
    title: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    author: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(Text)
    google_books_id: Mapped[Optional[str]] = mapped_column(String(50), index=True)
    genres: Mapped[Optional[str]] = mapped_column(Text)  # JSON array
    year: Mapped[Optional[int]] = mapped_column(Integer)

    # Series
    series_id: Mapped[Optional[str]] = mapped_column(String(36), index=True)
    series_order: Mapped[Optional[int]] = mapped_column(Integer)

    # Provenance
    added_by: Mapped[str] = mapped_column(String(36), nullable=False)
    added_at: Mapped[str] = mapped_column(String(32), default=utc_now, index=True)

    def __repr__(self) -> str:
        return f"<FamilyBook(id={self.id}, title='{self.title}')>"

    def get_genres(self) -> list[str]:
        """Get genres as list."""
        if self.genres:
            return json.loads(self.genres)
        return []

    def set_genres(self, genres: list[str]) -> None:
        """Set genres from list."""
        self.genres = json.dumps(genres) if genres else None


class LibraryEntry(Base):
    """A member's library entry pointing at a catalog book."""

    __tablename__ = "library_entries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    family_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    member_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    book_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(20), default=BookStatus.TO_READ.value, index=True
    )
    added_at: Mapped[str] = mapped_column(String(32), default=utc_now, index=True)

    def __repr__(self) -> str:
        return f"<LibraryEntry(member_id={self.member_id}, book_id={self.book_id}, status={self.status})>"


class Series(Base):
    """Series model."""

    __tablename__ = "series"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    family_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    total_books: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[Optional[str]] = mapped_column(String(20))  # None means derived
    thumbnail_url: Mapped[Optional[str]] = mapped_column(Text)
    created_by: Mapped[Optional[str]] = mapped_column(String(36))
    created_at: Mapped[str] = mapped_column(String(32), default=utc_now)

    def __repr__(self) -> str:
        return f"<Series(id={self.id}, name='{self.name}')>"
