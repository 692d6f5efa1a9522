"""Mutations on members' libraries and the family catalog."""

import logging
from typing import Optional, Union

from ..db.schemas import (
    BookStatus,
    FamilyBook,
    FamilyBookCreate,
    FamilyBookUpdate,
    MemberLibraryEntry,
)
from ..db.sqlite import Database, get_db
from .schemas import AddBookRequest, AddBookResult, AddSeriesResult
from .status import next_status

logger = logging.getLogger(__name__)


class LibraryManager:
    """Adds, updates and removes books in a member's library."""

    def __init__(self, db: Optional[Database] = None):
        """Initialize library manager.

        Args:
            db: Database instance
        """
        self.db = db or get_db()

    # ========================================================================
    # Adding Books
    # ========================================================================

    def add_book(
        self, family_id: str, member_id: str, request: AddBookRequest
    ) -> AddBookResult:
        """Add a book to a member's library.

        The book is looked up in the family catalog (by Google Books ID, then
        by exact title and author) and created there when missing; then the
        member gets a library entry for it.

        Args:
            family_id: Family ID
            member_id: Member adding the book
            request: Book data and initial status

        Returns:
            Catalog book ID, library entry ID and whether the book was new
        """
        book = self.db.find_family_book(
            family_id,
            google_books_id=request.google_books_id,
            title=request.title,
            author=request.author,
        )
        is_new_book = book is None

        if book is None:
            book = self.db.create_family_book(family_id, FamilyBookCreate(
                title=request.title,
                author=request.author,
                thumbnail_url=request.thumbnail_url,
                google_books_id=request.google_books_id,
                genres=request.genres,
                series_id=request.series_id,
                series_order=request.series_order,
                year=request.year,
                added_by=member_id,
            ))
            logger.info("Added '%s' to family catalog %s", book.title, family_id)

        entry = self.add_to_library(family_id, member_id, book.id, request.status)

        return AddBookResult(
            book_id=book.id,
            library_entry_id=entry.id,
            is_new_book=is_new_book,
        )

    def add_to_library(
        self,
        family_id: str,
        member_id: str,
        book_id: str,
        status: Union[BookStatus, str] = BookStatus.TO_READ,
    ) -> MemberLibraryEntry:
        """Add a catalog book to a member's library.

        Returns the existing entry unchanged when the member already has the book.
        """
        existing = self.db.find_library_entry(family_id, member_id, book_id)
        if existing:
            return existing
        return self.db.create_library_entry(family_id, member_id, book_id, BookStatus(status))

    def add_series_to_library(
        self,
        family_id: str,
        member_id: str,
        series_id: str,
        status: Union[BookStatus, str] = BookStatus.TO_READ,
    ) -> AddSeriesResult:
        """Add every catalog book of a series to a member's library.

        Returns:
            How many books were added and how many were already there
        """
        added = 0
        skipped = 0

        for book in self.db.get_series_books_from_catalog(family_id, series_id):
            if self.db.find_library_entry(family_id, member_id, book.id):
                skipped += 1
            else:
                self.db.create_library_entry(family_id, member_id, book.id, BookStatus(status))
                added += 1

        return AddSeriesResult(added=added, skipped=skipped)

    # ========================================================================
    # Status Changes
    # ========================================================================

    def update_book_status(
        self,
        family_id: str,
        member_id: str,
        library_entry_id: str,
        status: Union[BookStatus, str],
    ) -> MemberLibraryEntry:
        """Set the reading status of a library entry.

        Raises:
            ValueError: If the entry does not exist
        """
        entry = self.db.update_library_entry(
            family_id, member_id, library_entry_id, BookStatus(status)
        )
        if entry is None:
            raise ValueError(f"Library entry not found: {library_entry_id}")
        return entry

    def cycle_book_status(
        self, family_id: str, member_id: str, library_entry_id: str
    ) -> MemberLibraryEntry:
        """Advance a library entry to the next status in the cycle.

        Raises:
            ValueError: If the entry does not exist
        """
        entry = self.db.get_library_entry(family_id, member_id, library_entry_id)
        if entry is None:
            raise ValueError(f"Library entry not found: {library_entry_id}")
        return self.update_book_status(
            family_id, member_id, library_entry_id, next_status(entry.status)
        )

    def add_or_update_book_status(
        self,
        family_id: str,
        member_id: str,
        book_id: str,
        status: Union[BookStatus, str],
        library_entry_id: Optional[str] = None,
    ) -> str:
        """Set a book's status, adding it to the library first when needed.

        Series views list every book of a series, including ones the member
        does not own yet; changing the status of those adds them.

        Returns:
            The existing or newly created library entry ID
        """
        if library_entry_id:
            self.update_book_status(family_id, member_id, library_entry_id, status)
            return library_entry_id

        if self.db.get_family_book(family_id, book_id) is None:
            raise ValueError(f"Book not found: {book_id}")
        return self.add_to_library(family_id, member_id, book_id, status).id

    def remove_book(self, family_id: str, member_id: str, library_entry_id: str) -> None:
        """Remove a book from a member's library. The catalog book stays.

        Raises:
            ValueError: If the entry does not exist
        """
        if not self.db.delete_library_entry(family_id, member_id, library_entry_id):
            raise ValueError(f"Library entry not found: {library_entry_id}")

    # ========================================================================
    # Catalog Metadata
    # ========================================================================

    def fetch_book(self, family_id: str, book_id: str) -> Optional[FamilyBook]:
        """Get a catalog book by ID."""
        return self.db.get_family_book(family_id, book_id)

    def update_book_metadata(
        self, family_id: str, book_id: str, update: FamilyBookUpdate
    ) -> FamilyBook:
        """Update catalog metadata shared by the whole family.

        Raises:
            ValueError: If the book does not exist
        """
        book = self.db.update_family_book(family_id, book_id, update)
        if book is None:
            raise ValueError(f"Book not found: {book_id}")
        return book

    def get_series_books(self, family_id: str, series_id: str) -> list[FamilyBook]:
        """Catalog books of a series in series order."""
        return self.db.get_series_books_from_catalog(family_id, series_id)

    def add_book_to_series(
        self,
        family_id: str,
        book_id: str,
        series_id: str,
        series_order: Optional[int] = None,
    ) -> FamilyBook:
        """Put a catalog book into a series.

        Without an explicit position the book is appended after the books
        already in the series.

        Raises:
            ValueError: If the book or the series does not exist
        """
        from ..series.progress import compute_next_series_order

        if self.db.get_series(family_id, series_id) is None:
            raise ValueError(f"Series not found: {series_id}")

        if series_order is None:
            in_series = [
                b for b in self.db.get_series_books_from_catalog(family_id, series_id)
                if b.id != book_id
            ]
            series_order = compute_next_series_order(in_series)

        return self.update_book_metadata(
            family_id,
            book_id,
            FamilyBookUpdate(series_id=series_id, series_order=series_order),
        )
