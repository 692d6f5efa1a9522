"""Book series: status derivation, progress and filtering."""

from .filters import filter_series
from .listener import SeriesListener
from .manager import SeriesManager
from .progress import (
    build_series_book_display,
    build_series_detail,
    compute_next_series_order,
    compute_progress_percent,
    compute_series_progress,
    compute_series_total_books_from_books,
    get_series_cover_from_books,
)
from .schemas import LibraryTab, SeriesBookDisplay, SeriesDetail, SeriesWithProgress
from .status import derive_series_status

__all__ = [
    "filter_series",
    "SeriesListener",
    "SeriesManager",
    "build_series_book_display",
    "build_series_detail",
    "compute_next_series_order",
    "compute_progress_percent",
    "compute_series_progress",
    "compute_series_total_books_from_books",
    "get_series_cover_from_books",
    "LibraryTab",
    "SeriesBookDisplay",
    "SeriesDetail",
    "SeriesWithProgress",
    "derive_series_status",
]
