"""Collapse a member's books into a display list of series and standalone books.

Series status trumps book status: with a status filter active, a series shows
up only when its own status matches, whatever the statuses of the books in it.
A series with status 'reading' never appears under 'read' or 'to-read', even
when some of its books are read or unread.
"""

import logging
import unicodedata
from typing import Optional, Sequence, Union

from ..db.schemas import ALL_STATUSES, BookStatus
from ..library.schemas import MemberBook
from ..series.schemas import SeriesWithProgress
from .schemas import BookItem, BookListItem, SeriesListItem

logger = logging.getLogger(__name__)


def _series_name_key(name: str) -> tuple[str, str, str]:
    # Accents and case ignored first, then accents, then lowercase before uppercase
    decomposed = unicodedata.normalize("NFKD", name)
    base = "".join(c for c in decomposed if not unicodedata.combining(c))
    return (base.casefold(), name.casefold(), name.swapcase())


def _added_at_seconds(book: MemberBook) -> float:
    if book.added_at is None:
        return 0.0
    return book.added_at.timestamp()


def _sort_key(item: BookListItem) -> tuple:
    if isinstance(item, SeriesListItem):
        return (0, _series_name_key(item.series.name), 0.0)
    return (1, ("", "", ""), -_added_at_seconds(item.book))


def group_books_by_series(
    all_books: Sequence[MemberBook],
    series_with_progress: Sequence[SeriesWithProgress],
    status_filter: Optional[Union[BookStatus, str]] = None,
) -> list[BookListItem]:
    """Group books by series and build the combined display list.

    Args:
        all_books: Every book in the member's library, unfiltered
        series_with_progress: Series with the member's complete book lists
        status_filter: Book status to show; None or 'all' shows everything

    Returns:
        Series items first (by name), then standalone books (newest first)
    """
    series_by_id = {s.id: s for s in series_with_progress}
    series_ids: list[str] = []

    if status_filter is not None and status_filter != ALL_STATUSES:
        wanted = BookStatus(status_filter)
        standalone = [b for b in all_books if not b.series_id and b.status == wanted]
        for s in series_with_progress:
            if s.status == wanted and s.books_owned > 0 and s.id not in series_ids:
                series_ids.append(s.id)
    else:
        standalone = [b for b in all_books if not b.series_id]
        for book in all_books:
            if book.series_id and book.series_id not in series_ids:
                series_ids.append(book.series_id)

    items: list[BookListItem] = []
    for series_id in series_ids:
        series = series_by_id.get(series_id)
        if series is not None:
            # All owned books, not only those matching the filter
            items.append(SeriesListItem(series=series, books=list(series.books_in_series)))
        else:
            logger.debug("No series record for %s, listing its books individually", series_id)
            items.extend(BookItem(book=b) for b in all_books if b.series_id == series_id)

    items.extend(BookItem(book=b) for b in standalone)

    items.sort(key=_sort_key)
    return items


def get_book_list_item_key(item: BookListItem) -> str:
    """Unique key for a list item."""
    if isinstance(item, SeriesListItem):
        return f"series-{item.series.id}"
    return f"book-{item.book.id}"
