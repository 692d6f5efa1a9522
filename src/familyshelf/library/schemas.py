"""Pydantic schemas for a member's library views and operations."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ..db.schemas import BookFields, BookStatus


class MemberBook(BookFields):
    """A catalog book joined with one member's library entry.

    Ephemeral: rebuilt on every snapshot, never stored.
    """

    id: str  # FamilyBook.id
    added_by: Optional[str] = None
    library_entry_id: str
    status: BookStatus
    added_at: Optional[datetime] = None  # When the member added it, not the catalog


class AddBookRequest(BaseModel):
    """Input for adding a book to a member's library."""

    title: str = Field(..., min_length=1)
    author: str = Field(..., min_length=1)
    status: BookStatus = BookStatus.TO_READ
    thumbnail_url: Optional[str] = None
    google_books_id: Optional[str] = None
    genres: list[str] = Field(default_factory=list)
    series_id: Optional[str] = None
    series_order: Optional[int] = Field(None, ge=1)
    year: Optional[int] = None


class AddBookResult(BaseModel):
    """Outcome of adding a book."""

    book_id: str
    library_entry_id: str
    is_new_book: bool


class AddSeriesResult(BaseModel):
    """Outcome of adding every book of a series to a library."""

    added: int
    skipped: int


class StatusCounts(BaseModel):
    """Book counts per status for the filter tabs."""

    all: int = 0
    to_read: int = 0
    reading: int = 0
    read: int = 0
