"""Combined display list of series and standalone books."""

from .grouping import get_book_list_item_key, group_books_by_series
from .schemas import BookItem, BookListItem, SeriesListItem

__all__ = [
    "get_book_list_item_key",
    "group_books_by_series",
    "BookItem",
    "BookListItem",
    "SeriesListItem",
]
