"""Series status derivation.

When a series has no stored status it is derived from the member's books,
with one product rule on top of the obvious cases: a series with some books
read and others still unread counts as "reading" even when no single book is
flagged as reading.
"""

from typing import Iterable, Optional, Protocol

from ..db.schemas import BookStatus, SeriesStatus


class HasStatus(Protocol):
    status: BookStatus


def derive_series_status(
    books_in_series: Iterable[HasStatus],
    stored_status: Optional[SeriesStatus],
) -> SeriesStatus:
    """Derive a series status from its books unless one is stored.

    Args:
        books_in_series: The member's books in the series
        stored_status: Explicit override, always wins when not None

    Returns:
        The effective series status
    """
    if stored_status is not None:
        return SeriesStatus(stored_status)

    statuses = [BookStatus(book.status) for book in books_in_series]
    total_owned = len(statuses)
    books_read = statuses.count(BookStatus.READ)

    if total_owned > 0 and books_read == total_owned:
        return SeriesStatus.READ
    if BookStatus.READING in statuses:
        return SeriesStatus.READING
    if 0 < books_read < total_owned:
        return SeriesStatus.READING
    return SeriesStatus.TO_READ
