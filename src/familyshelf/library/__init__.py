"""Member libraries: status cycle, catalog join and mutations."""

from .join import join_member_books
from .listener import BooksListener
from .manager import LibraryManager
from .schemas import (
    AddBookRequest,
    AddBookResult,
    AddSeriesResult,
    MemberBook,
    StatusCounts,
)
from .status import STATUS_CYCLE, next_status

__all__ = [
    "join_member_books",
    "BooksListener",
    "LibraryManager",
    "AddBookRequest",
    "AddBookResult",
    "AddSeriesResult",
    "MemberBook",
    "StatusCounts",
    "STATUS_CYCLE",
    "next_status",
]
