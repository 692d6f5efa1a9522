"""Library session tying the books and series listeners to one selection."""

from typing import Optional, Union

from .booklist.grouping import group_books_by_series
from .booklist.schemas import BookListItem
from .db.schemas import BookStatus
from .db.sqlite import Database
from .library.listener import BooksListener
from .series.listener import SeriesListener


class LibrarySession:
    """The family and member currently being viewed, with their live views.

    The selection is always passed in explicitly through ``select``.
    """

    def __init__(self, db: Database):
        self.db = db
        self.books = BooksListener(db)
        self.series = SeriesListener(db, self.books)

    def __enter__(self) -> "LibrarySession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def family_id(self) -> Optional[str]:
        return self.series.family_id

    @property
    def member_id(self) -> Optional[str]:
        return self.books.member_id

    def select(self, family_id: Optional[str], member_id: Optional[str] = None) -> None:
        """Switch family and member; everything from the old selection is dropped."""
        self.series.select(None)
        self.books.select(family_id, member_id)
        self.series.select(family_id)

    def book_list(
        self, status_filter: Optional[Union[BookStatus, str]] = None
    ) -> list[BookListItem]:
        """Grouped display list for the selected member."""
        return group_books_by_series(self.books.books, self.series.series, status_filter)

    def close(self) -> None:
        """Release every subscription."""
        self.series.close()
        self.books.close()
