"""Manager for series operations."""

import logging
from typing import Optional, Union

from ..db.schemas import Series, SeriesCreate, SeriesStatus, SeriesUpdate
from ..db.sqlite import Database, get_db
from .progress import compute_series_total_books_from_books, get_series_cover_from_books

logger = logging.getLogger(__name__)


class SeriesManager:
    """Manager for series shared by a family."""

    def __init__(self, db: Optional[Database] = None):
        """Initialize the series manager.

        Args:
            db: Database instance
        """
        self.db = db or get_db()

    # ========================================================================
    # Series CRUD
    # ========================================================================

    def create_series(
        self, family_id: str, series: SeriesCreate, created_by: Optional[str] = None
    ) -> Series:
        """Create a new series.

        Args:
            family_id: Family ID
            series: Series data to create
            created_by: Member creating the series

        Returns:
            Created series
        """
        result = self.db.create_series(family_id, series, created_by)
        logger.info("Created series '%s' in family %s", result.name, family_id)
        return result

    def get_series(self, family_id: str, series_id: str) -> Optional[Series]:
        """Get a series by ID.

        Returns:
            Series or None if not found
        """
        return self.db.get_series(family_id, series_id)

    def list_series(self, family_id: str, search: Optional[str] = None) -> list[Series]:
        """List a family's series ordered by name.

        Args:
            family_id: Family ID
            search: Case-insensitive substring of the name

        Returns:
            Matching series
        """
        series = self.db.get_series_list(family_id)
        if search:
            query = search.casefold()
            series = [s for s in series if query in s.name.casefold()]
        return sorted(series, key=lambda s: s.name.casefold())

    def update_series(
        self, family_id: str, series_id: str, update: SeriesUpdate
    ) -> Optional[Series]:
        """Update a series.

        Returns:
            Updated series or None if not found
        """
        return self.db.update_series(family_id, series_id, update)

    def delete_series(self, family_id: str, series_id: str) -> bool:
        """Delete a series. Its books stay in the catalog.

        Returns:
            True if deleted, False if not found
        """
        return self.db.delete_series(family_id, series_id)

    # ========================================================================
    # Derived Fields
    # ========================================================================

    def set_series_status(
        self,
        family_id: str,
        series_id: str,
        status: Optional[Union[SeriesStatus, str]],
    ) -> Optional[Series]:
        """Set the stored status override; None goes back to deriving it.

        Returns:
            Updated series or None if not found
        """
        return self.db.update_series(
            family_id,
            series_id,
            SeriesUpdate(status=SeriesStatus(status) if status else None),
        )

    def recompute_series_total_books(self, family_id: str, series_id: str) -> Optional[Series]:
        """Store the total derived from the highest series_order in the catalog.

        Returns:
            Updated series or None if not found
        """
        if self.db.get_series(family_id, series_id) is None:
            return None

        books = self.db.get_series_books_from_catalog(family_id, series_id)
        total = compute_series_total_books_from_books(books)
        logger.debug("Series %s has %d books from catalog", series_id, total)
        return self.db.update_series(family_id, series_id, SeriesUpdate(total_books=total))

    def get_series_cover(self, family_id: str, series_id: str) -> Optional[str]:
        """Cover image of a series.

        The series' own thumbnail wins; otherwise the first book with a cover
        in series order is used.
        """
        series = self.db.get_series(family_id, series_id)
        if series is None:
            return None
        if series.thumbnail_url:
            return series.thumbnail_url
        return get_series_cover_from_books(
            self.db.get_series_books_from_catalog(family_id, series_id)
        )
