"""Pydantic schemas for the shared family collections.

These are the plain records handed out by the repository: families, members,
the family book catalog, per-member library entries and series.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class BookStatus(str, Enum):
    """Reading status of a book in a member's library."""

    TO_READ = "to-read"
    READING = "reading"
    READ = "read"


class SeriesStatus(str, Enum):
    """Reading status of a whole series."""

    TO_READ = "to-read"
    READING = "reading"
    READ = "read"
    STOPPED = "stopped"


# Status filter value meaning "no filtering"
ALL_STATUSES = "all"


# ============================================================================
# Families and Members
# ============================================================================


class FamilyCreate(BaseModel):
    """Schema for creating a family."""

    name: str = Field(..., min_length=1, max_length=200)
    owner_id: str = Field(..., min_length=1, description="Auth UID of the owner")


class Family(BaseModel):
    """A family sharing one book catalog."""

    id: str
    name: str
    owner_id: str
    created_at: datetime

    model_config = {"from_attributes": True}


class MemberCreate(BaseModel):
    """Schema for adding a member to a family."""

    name: str = Field(..., min_length=1, max_length=200)
    avatar_url: Optional[str] = None
    color: str = Field(default="#8B5A2B", max_length=20)


class MemberUpdate(BaseModel):
    """Schema for updating a member."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    avatar_url: Optional[str] = None
    color: Optional[str] = Field(None, max_length=20)


class Member(BaseModel):
    """A family member with a personal library."""

    id: str
    family_id: str
    name: str
    avatar_url: Optional[str] = None
    color: str

    model_config = {"from_attributes": True}


# ============================================================================
# Family Book Catalog
# ============================================================================


class BookFields(BaseModel):
    """Catalog fields shared by stored books and their derived views."""

    title: str = Field(..., min_length=1)
    author: str = Field(..., min_length=1)
    thumbnail_url: Optional[str] = None
    google_books_id: Optional[str] = None
    genres: list[str] = Field(default_factory=list)
    series_id: Optional[str] = None
    series_order: Optional[int] = Field(None, ge=1, description="1-based position in series")
    year: Optional[int] = None


class FamilyBookCreate(BookFields):
    """Schema for adding a book to the family catalog."""

    added_by: str = Field(..., min_length=1, description="Member who added the book")


class FamilyBookUpdate(BaseModel):
    """Schema for updating catalog metadata."""

    title: Optional[str] = Field(None, min_length=1)
    author: Optional[str] = Field(None, min_length=1)
    thumbnail_url: Optional[str] = None
    google_books_id: Optional[str] = None
    genres: Optional[list[str]] = None
    series_id: Optional[str] = None
    series_order: Optional[int] = Field(None, ge=1)
    year: Optional[int] = None


class FamilyBook(BookFields):
    """A book known to the family, independent of who owns it."""

    id: str
    added_by: str
    added_at: datetime

    model_config = {"from_attributes": True}


# ============================================================================
# Member Library
# ============================================================================


class MemberLibraryEntry(BaseModel):
    """One member's relationship to a catalog book."""

    id: str
    book_id: str
    status: BookStatus = BookStatus.TO_READ
    added_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# ============================================================================
# Series
# ============================================================================


class SeriesCreate(BaseModel):
    """Schema for creating a series."""

    name: str = Field(..., min_length=1, max_length=500)
    total_books: int = Field(default=0, ge=0)
    status: Optional[SeriesStatus] = None
    thumbnail_url: Optional[str] = None


class SeriesUpdate(BaseModel):
    """Schema for updating a series."""

    name: Optional[str] = Field(None, min_length=1, max_length=500)
    total_books: Optional[int] = Field(None, ge=0)
    status: Optional[SeriesStatus] = None
    thumbnail_url: Optional[str] = None


class Series(BaseModel):
    """A shared, ordered grouping of catalog books."""

    id: str
    name: str
    total_books: int = 0
    status: Optional[SeriesStatus] = None  # Explicit override, None means derive
    thumbnail_url: Optional[str] = None
    created_by: Optional[str] = None

    model_config = {"from_attributes": True}
