"""Real-time series view for the selected family and member."""

import logging
from typing import Callable, Optional, Union

from ..db.schemas import FamilyBook, Series, SeriesStatus
from ..db.sqlite import Database
from ..library.listener import BooksListener, ChangeCallback
from .filters import filter_series
from .progress import build_series_detail, compute_series_progress
from .schemas import LibraryTab, SeriesDetail, SeriesWithProgress

logger = logging.getLogger(__name__)


class SeriesListener:
    """Keeps SeriesWithProgress current for the member of a BooksListener.

    Series are shared across the family; progress is per member.
    """

    def __init__(self, db: Database, books_listener: BooksListener):
        """Initialize the listener.

        Args:
            db: Database instance providing snapshot listeners
            books_listener: Source of the member's joined books
        """
        self.db = db
        self.books_listener = books_listener
        self.family_id: Optional[str] = None

        self.all_series: list[Series] = []
        self.family_books: list[FamilyBook] = []
        self.series: list[SeriesWithProgress] = []
        self.is_loading = False
        self.error: Optional[Exception] = None

        self._unsubscribers: list[Callable[[], None]] = []
        self._callbacks: list[ChangeCallback] = []
        self._generation = 0
        self._remove_books_callback = books_listener.add_listener(self._recompute)

    def __enter__(self) -> "SeriesListener":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def total_series(self) -> int:
        """Number of series in the family."""
        return len(self.all_series)

    def select(self, family_id: Optional[str]) -> None:
        """Switch to another family, tearing down the previous subscriptions."""
        self._teardown()
        self.family_id = family_id

        if not family_id:
            self._recompute()
            return

        logger.debug("Listening to series of family %s", family_id)
        self.is_loading = True
        generation = self._generation

        def on_series(series: list[Series]) -> None:
            if generation != self._generation:
                return
            self.all_series = series
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
            self.series = []
            self._changed()

        self._unsubscribers.append(self.db.on_series_snapshot(family_id, on_series, on_error))
        self._unsubscribers.append(self.db.on_family_books_snapshot(family_id, on_books, on_error))

    def close(self) -> None:
        """Tear down subscriptions and detach from the books listener."""
        self.select(None)
        self._remove_books_callback()

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

    def detail(self, series_id: str) -> Optional[SeriesDetail]:
        """Detail view of one series with every catalog book in it."""
        return build_series_detail(
            series_id, self.series, self.family_books, self.books_listener.books
        )

    def filtered(
        self,
        active_tab: Union[LibraryTab, str] = LibraryTab.IN_LIBRARY,
        search_query: str = "",
        status_filter: Optional[Union[SeriesStatus, str]] = None,
    ) -> list[SeriesWithProgress]:
        """Series for a tab, search query and status filter."""
        return filter_series(self.series, active_tab, search_query, status_filter)

    def _teardown(self) -> None:
        self._generation += 1
        unsubscribers, self._unsubscribers = self._unsubscribers, []
        for unsubscribe in unsubscribers:
            unsubscribe()

        self.all_series = []
        self.family_books = []
        self.series = []
        self.is_loading = False
        self.error = None

    def _recompute(self) -> None:
        """Rebuild progress from the latest snapshots."""
        if self.books_listener.family_id != self.family_id:
            # Books and series are mid-switch between families
            self.series = []
        else:
            self.series = compute_series_progress(
                self.all_series, self.family_books, self.books_listener.books
            )
        self._changed()

    def _changed(self) -> None:
        for callback in list(self._callbacks):
            callback()
