"""Pydantic schemas for series views."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from ..db.schemas import BookFields, BookStatus, Series, SeriesStatus
from ..library.schemas import MemberBook


class LibraryTab(str, Enum):
    """Tabs of the series screen."""

    IN_LIBRARY = "inLibrary"
    NOT_IN_LIBRARY = "notInLibrary"


class SeriesWithProgress(Series):
    """A series with the selected member's progress through it.

    ``status`` holds the effective status (stored override, else derived from
    the member's books); ``status_override`` keeps the stored value.
    """

    books_in_series: list[MemberBook] = Field(default_factory=list)
    books_read: int = 0
    books_owned: int = 0
    progress_percent: int = 0
    is_in_library: bool = False
    status_override: Optional[SeriesStatus] = None


class SeriesBookDisplay(BookFields):
    """A catalog book of a series with the member's library status overlaid."""

    id: str
    library_entry_id: Optional[str] = None
    status: BookStatus = BookStatus.TO_READ
    is_in_library: bool = False


class SeriesDetail(BaseModel):
    """One series with every catalog book in it."""

    series: SeriesWithProgress
    books: list[SeriesBookDisplay]
