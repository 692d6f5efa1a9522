"""Join a member's library entries with the family catalog."""

import logging
from typing import Iterable

from ..db.schemas import FamilyBook, MemberLibraryEntry
from .schemas import MemberBook

logger = logging.getLogger(__name__)


def join_member_books(
    library_entries: Iterable[MemberLibraryEntry],
    family_books: Iterable[FamilyBook],
) -> list[MemberBook]:
    """Inner-join library entries with catalog books on book ID.

    Entries keep their input order. Entries whose book is missing from the
    catalog are dropped; this happens transiently while multi-document writes
    settle.
    """
    books_by_id = {book.id: book for book in family_books}

    joined = []
    for entry in library_entries:
        book = books_by_id.get(entry.book_id)
        if book is None:
            logger.debug("Dropping library entry %s: no catalog book %s", entry.id, entry.book_id)
            continue

        joined.append(MemberBook(
            id=book.id,
            title=book.title,
            author=book.author,
            thumbnail_url=book.thumbnail_url,
            google_books_id=book.google_books_id,
            genres=list(book.genres),
            series_id=book.series_id,
            series_order=book.series_order,
            year=book.year,
            added_by=book.added_by,
            library_entry_id=entry.id,
            status=entry.status,
            added_at=entry.added_at,
        ))

    return joined
