"""Pytest configuration and shared fixtures.

This module provides fixtures for testing familyshelf: an in-memory
database, a family with members, and factories for the plain records the
derivation functions work on.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Generator, Optional

import pytest

from familyshelf.config import reset_config
from familyshelf.db.schemas import (
    BookStatus,
    Family,
    FamilyBook,
    FamilyCreate,
    Member,
    MemberCreate,
    Series,
    SeriesStatus,
)
from familyshelf.db.sqlite import Database, reset_db
from familyshelf.library.schemas import MemberBook
from familyshelf.series.schemas import SeriesWithProgress

BASE_TIME = datetime(2025, 1, 1, tzinfo=timezone.utc)


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture(scope="function")
def db() -> Generator[Database, None, None]:
    """Create an in-memory test database."""
    reset_db()
    reset_config()

    database = Database(":memory:")
    database.create_tables()
    yield database

    reset_db()
    reset_config()


@pytest.fixture
def family(db: Database) -> Family:
    """Create a family in the database."""
    return db.create_family(FamilyCreate(name="The Lindqvists", owner_id="auth-uid-1"))


@pytest.fixture
def member(db: Database, family: Family) -> Member:
    """Create a family member."""
    return db.create_member(family.id, MemberCreate(name="Astrid"))


@pytest.fixture
def other_member(db: Database, family: Family) -> Member:
    """Create a second family member."""
    return db.create_member(family.id, MemberCreate(name="Nils", color="#335577"))


# ============================================================================
# Record Factories
# ============================================================================


@pytest.fixture
def make_member_book() -> Callable[..., MemberBook]:
    """Factory for joined member books."""

    def _make(
        book_id: str,
        status: BookStatus = BookStatus.TO_READ,
        series_id: Optional[str] = None,
        series_order: Optional[int] = None,
        minutes: Optional[int] = 0,
        **overrides,
    ) -> MemberBook:
        data = dict(
            id=book_id,
            title=f"Book {book_id}",
            author="Some Author",
            library_entry_id=f"entry-{book_id}",
            status=status,
            series_id=series_id,
            series_order=series_order,
            added_at=BASE_TIME + timedelta(minutes=minutes) if minutes is not None else None,
        )
        data.update(overrides)
        return MemberBook(**data)

    return _make


@pytest.fixture
def make_family_book() -> Callable[..., FamilyBook]:
    """Factory for catalog books."""

    def _make(
        book_id: str,
        series_id: Optional[str] = None,
        series_order: Optional[int] = None,
        **overrides,
    ) -> FamilyBook:
        data = dict(
            id=book_id,
            title=f"Book {book_id}",
            author="Some Author",
            series_id=series_id,
            series_order=series_order,
            added_by="member-1",
            added_at=BASE_TIME,
        )
        data.update(overrides)
        return FamilyBook(**data)

    return _make


@pytest.fixture
def make_series() -> Callable[..., Series]:
    """Factory for stored series records."""

    def _make(series_id: str, name: str, status: Optional[SeriesStatus] = None, **overrides) -> Series:
        return Series(id=series_id, name=name, status=status, **overrides)

    return _make


@pytest.fixture
def make_series_with_progress() -> Callable[..., SeriesWithProgress]:
    """Factory for series progress views."""

    def _make(
        series_id: str,
        name: str,
        status: SeriesStatus = SeriesStatus.TO_READ,
        books_owned: int = 0,
        **overrides,
    ) -> SeriesWithProgress:
        data = dict(
            id=series_id,
            name=name,
            status=status,
            books_owned=books_owned,
            is_in_library=books_owned > 0,
        )
        data.update(overrides)
        return SeriesWithProgress(**data)

    return _make
