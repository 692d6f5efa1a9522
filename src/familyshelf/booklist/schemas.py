"""Pydantic schemas for the combined book/series display list."""

from typing import Literal, Union

from pydantic import BaseModel

from ..library.schemas import MemberBook
from ..series.schemas import SeriesWithProgress


class SeriesListItem(BaseModel):
    """A series collapsed into one row, carrying all of the member's books in it."""

    type: Literal["series"] = "series"
    series: SeriesWithProgress
    books: list[MemberBook]


class BookItem(BaseModel):
    """A single book row."""

    type: Literal["book"] = "book"
    book: MemberBook


BookListItem = Union[SeriesListItem, BookItem]
