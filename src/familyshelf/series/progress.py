"""Series progress aggregation.

Joins series records, the family catalog and a member's joined library into
SeriesWithProgress views, plus the smaller derivations the series screens
need (catalog-wide totals, detail overlays, covers, next position).
"""

import math
from collections import defaultdict
from typing import Iterable, Optional, Sequence

from ..db.schemas import BookStatus, FamilyBook, Series
from ..library.schemas import MemberBook
from .schemas import SeriesBookDisplay, SeriesDetail, SeriesWithProgress
from .status import derive_series_status


def compute_series_total_books_from_books(books: Iterable) -> int:
    """Total books of a series as the highest position seen among its books.

    Books without a series_order are ignored; no positioned books yields 0.
    """
    orders = [book.series_order for book in books if getattr(book, "series_order", None) is not None]
    return max(orders, default=0)


def compute_progress_percent(books_read: int, total_books: int) -> int:
    """Percentage of the series read, rounded half up."""
    if total_books <= 0:
        return 0
    return math.floor(books_read / total_books * 100 + 0.5)


def compute_series_progress(
    series: Sequence[Series],
    family_books: Iterable[FamilyBook],
    member_books: Iterable[MemberBook],
) -> list[SeriesWithProgress]:
    """Build one progress record per series, preserving input order.

    Args:
        series: Every series record of the family
        family_books: The whole family catalog
        member_books: The selected member's joined library

    Returns:
        SeriesWithProgress for every series, zeroed when the member owns none
        of its books
    """
    catalog_by_series: dict[str, list[FamilyBook]] = defaultdict(list)
    for book in family_books:
        if book.series_id:
            catalog_by_series[book.series_id].append(book)

    owned_by_series: dict[str, list[MemberBook]] = defaultdict(list)
    for book in member_books:
        if book.series_id:
            owned_by_series[book.series_id].append(book)

    results = []
    for record in series:
        total_books = compute_series_total_books_from_books(catalog_by_series.get(record.id, []))
        books_in_series = list(owned_by_series.get(record.id, []))
        books_read = sum(1 for book in books_in_series if book.status == BookStatus.READ)
        books_owned = len(books_in_series)

        data = record.model_dump()
        data.update(
            total_books=total_books,
            status=derive_series_status(books_in_series, record.status),
            status_override=record.status,
            books_in_series=books_in_series,
            books_read=books_read,
            books_owned=books_owned,
            progress_percent=compute_progress_percent(books_read, total_books),
            is_in_library=books_owned > 0,
        )
        results.append(SeriesWithProgress(**data))

    return results


def _series_order_key(book) -> float:
    return book.series_order if book.series_order is not None else math.inf


def build_series_book_display(
    family_books_in_series: Iterable[FamilyBook],
    member_books: Iterable[MemberBook],
) -> list[SeriesBookDisplay]:
    """Overlay the member's library status on every catalog book of a series.

    Books the member does not own show as 'to-read' and not in library.
    Sorted by series_order, unpositioned books last.
    """
    owned = {book.id: book for book in member_books}

    display = []
    for book in family_books_in_series:
        member_book = owned.get(book.id)
        display.append(SeriesBookDisplay(
            id=book.id,
            title=book.title,
            author=book.author,
            thumbnail_url=book.thumbnail_url,
            google_books_id=book.google_books_id,
            genres=list(book.genres),
            series_id=book.series_id,
            series_order=book.series_order,
            year=book.year,
            library_entry_id=member_book.library_entry_id if member_book else None,
            status=member_book.status if member_book else BookStatus.TO_READ,
            is_in_library=member_book is not None,
        ))

    display.sort(key=_series_order_key)
    return display


def build_series_detail(
    series_id: str,
    series_with_progress: Iterable[SeriesWithProgress],
    family_books: Iterable[FamilyBook],
    member_books: Iterable[MemberBook],
) -> Optional[SeriesDetail]:
    """Assemble the detail view of one series, or None when it is unknown."""
    found = next((s for s in series_with_progress if s.id == series_id), None)
    if found is None:
        return None

    in_series = [book for book in family_books if book.series_id == series_id]
    total_books = compute_series_total_books_from_books(in_series)

    return SeriesDetail(
        series=found.model_copy(update={"total_books": total_books}),
        books=build_series_book_display(in_series, member_books),
    )


def get_series_cover_from_books(books: Iterable) -> Optional[str]:
    """Cover of the first book with a thumbnail, in series order."""
    for book in sorted(books, key=_series_order_key):
        if book.thumbnail_url:
            return book.thumbnail_url
    return None


def compute_next_series_order(books: Optional[Sequence]) -> int:
    """Position for a book appended to a series: current count plus one."""
    return len(books or []) + 1
