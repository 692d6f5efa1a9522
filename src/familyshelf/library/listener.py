"""Real-time view of the selected member's library.

Subscribes to the member's library entries and the family catalog, and keeps
the joined list of MemberBook records current.
"""

import logging
from typing import Callable, Optional, Union

from ..db.schemas import ALL_STATUSES, BookStatus, FamilyBook, MemberLibraryEntry
from ..db.sqlite import Database
from .join import join_member_books
from .schemas import MemberBook, StatusCounts

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[], None]


class BooksListener:
    """Owns the joined MemberBook collection for one family member."""

    def __init__(self, db: Database):
        """Initialize the listener with nothing selected.

        Args:
            db: Database instance providing snapshot listeners
        """
        self.db = db
        self.family_id: Optional[str] = None
        self.member_id: Optional[str] = None

        self.library_entries: list[MemberLibraryEntry] = []
        self.family_books: list[FamilyBook] = []
        self.books: list[MemberBook] = []
        self.is_loading = False
        self.error: Optional[Exception] = None

        self._unsubscribers: list[Callable[[], None]] = []
        self._callbacks: list[ChangeCallback] = []
        self._generation = 0

    def __enter__(self) -> "BooksListener":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ========================================================================
    # Selection
    # ========================================================================

    def select(self, family_id: Optional[str], member_id: Optional[str]) -> None:
        """Switch to another family member.

        Prior subscriptions are torn down and the derived list cleared before
        the new member's collections are subscribed.

        Args:
            family_id: Family ID, or None to clear
            member_id: Member ID, or None to clear
        """
        self._teardown()
        self.family_id = family_id
        self.member_id = member_id

        if not family_id or not member_id:
            self._changed()
            return

        logger.debug("Listening to library of member %s in family %s", member_id, family_id)
        self.is_loading = True
        generation = self._generation

        def on_entries(entries: list[MemberLibraryEntry]) -> None:
            if generation != self._generation:
                return
            self.library_entries = entries
            self.is_loading = False
            self._recompute()

        def on_books(books: list[FamilyBook]) -> None:
            if generation != self._generation:
                return
            self.family_books = books
            self._recompute()

        def on_error(error: Exception) -> None:
            if generation != self._generation:
                return
            self.error = error
            self.is_loading = False
            self._changed()

        self._unsubscribers.append(
            self.db.on_member_library_snapshot(family_id, member_id, on_entries, on_error)
        )
        self._unsubscribers.append(
            self.db.on_family_books_snapshot(family_id, on_books, on_error)
        )

    def close(self) -> None:
        """Tear down subscriptions and forget the selection."""
        self.select(None, None)

    def add_listener(self, callback: ChangeCallback) -> Callable[[], None]:
        """Register a callback run after every recompute.

        Returns:
            Function removing the callback
        """
        self._callbacks.append(callback)

        def remove() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return remove

    # ========================================================================
    # Derived Views
    # ========================================================================

    def filtered(self, status_filter: Optional[Union[BookStatus, str]] = None) -> list[MemberBook]:
        """Books matching a status filter; 'all' or None returns every book."""
        if status_filter is None or status_filter == ALL_STATUSES:
            return list(self.books)
        status = BookStatus(status_filter)
        return [book for book in self.books if book.status == status]

    def books_by_status(self) -> dict[BookStatus, list[MemberBook]]:
        """Group books by reading status."""
        grouped: dict[BookStatus, list[MemberBook]] = {status: [] for status in BookStatus}
        for book in self.books:
            grouped[book.status].append(book)
        return grouped

    def counts(self) -> StatusCounts:
        """Count books per status."""
        grouped = self.books_by_status()
        return StatusCounts(
            all=len(self.books),
            to_read=len(grouped[BookStatus.TO_READ]),
            reading=len(grouped[BookStatus.READING]),
            read=len(grouped[BookStatus.READ]),
        )

    # ========================================================================
    # Helper Methods
    # ========================================================================

    def _teardown(self) -> None:
        """Unsubscribe everything and clear derived state."""
        self._generation += 1
        unsubscribers, self._unsubscribers = self._unsubscribers, []
        for unsubscribe in unsubscribers:
            unsubscribe()
        if unsubscribers:
            logger.debug("Tore down %d subscriptions", len(unsubscribers))

        self.library_entries = []
        self.family_books = []
        self.books = []
        self.is_loading = False
        self.error = None

    def _recompute(self) -> None:
        """Rebuild the joined list from the latest snapshots."""
        self.books = join_member_books(self.library_entries, self.family_books)
        self._changed()

    def _changed(self) -> None:
        for callback in list(self._callbacks):
            callback()
