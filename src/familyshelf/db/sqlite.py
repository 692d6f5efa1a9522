"""SQLite repository for the family collections.

Handles database connection, session management, CRUD operations and
real-time snapshot listeners. Every committed write pushes the complete new
snapshot of the affected collection to the listeners subscribed to it.
"""

import logging
import os
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Generator, Optional

from sqlalchemy import create_engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from . import models
from .models import Base
from .schemas import (
    BookStatus,
    Family,
    FamilyBook,
    FamilyBookCreate,
    FamilyBookUpdate,
    FamilyCreate,
    Member,
    MemberCreate,
    MemberLibraryEntry,
    MemberUpdate,
    Series,
    SeriesCreate,
    SeriesStatus,
    SeriesUpdate,
)

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[list], None]
ErrorCallback = Callable[[Exception], None]
Unsubscribe = Callable[[], None]


@dataclass(eq=False)
class _Listener:
    """A registered snapshot listener."""

    callback: SnapshotCallback
    on_error: Optional[ErrorCallback] = None


class Database:
    """Database connection, operations and snapshot listeners."""

    def __init__(self, db_path: Optional[str] = None):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file. If None, uses
                     FAMILYSHELF_DB_PATH env var or default location.
        """
        if db_path is None:
            db_path = os.environ.get(
                "FAMILYSHELF_DB_PATH",
                str(Path.home() / ".familyshelf" / "familyshelf.db"),
            )

        self.db_path = Path(db_path)
        self._is_memory = str(db_path) == ":memory:"

        if not self._is_memory:
            self._ensure_directory()

        # For in-memory databases, use StaticPool to reuse the same connection
        # This ensures all sessions share the same in-memory database
        if self._is_memory:
            self.engine = create_engine(
                "sqlite:///:memory:",
                echo=False,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.engine = create_engine(
                f"sqlite:///{self.db_path}",
                echo=False,
                connect_args={"check_same_thread": False},
            )
        self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)

        self._listeners: dict[tuple, list[_Listener]] = defaultdict(list)

    def _ensure_directory(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def create_tables(self) -> None:
        """Create all database tables."""
        Base.metadata.create_all(self.engine)

    def drop_tables(self) -> None:
        """Drop all database tables. Use with caution!"""
        Base.metadata.drop_all(self.engine)

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get a database session context manager."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ========================================================================
    # Family Operations
    # ========================================================================

    def create_family(self, family: FamilyCreate) -> Family:
        """Create a new family."""
        with self.get_session() as s:
            db_family = models.Family(name=family.name, owner_id=family.owner_id)
            s.add(db_family)
            s.flush()
            return self._to_family(db_family)

    def get_family(self, family_id: str) -> Optional[Family]:
        """Get a family by ID."""
        with self.get_session() as s:
            db_family = s.get(models.Family, family_id)
            return self._to_family(db_family) if db_family else None

    def get_family_by_owner(self, owner_id: str) -> Optional[Family]:
        """Get the first family owned by an auth user."""
        with self.get_session() as s:
            stmt = (
                select(models.Family)
                .where(models.Family.owner_id == owner_id)
                .order_by(models.Family.created_at)
                .limit(1)
            )
            db_family = s.execute(stmt).scalar_one_or_none()
            return self._to_family(db_family) if db_family else None

    # ========================================================================
    # Member Operations
    # ========================================================================

    def create_member(self, family_id: str, member: MemberCreate) -> Member:
        """Add a member to a family."""
        with self.get_session() as s:
            db_member = models.Member(
                family_id=family_id,
                name=member.name,
                avatar_url=member.avatar_url,
                color=member.color,
            )
            s.add(db_member)
            s.flush()
            result = self._to_member(db_member)

        self._notify(("members", family_id))
        return result

    def get_members(self, family_id: str) -> list[Member]:
        """Get all members of a family."""
        with self.get_session() as s:
            stmt = (
                select(models.Member)
                .where(models.Member.family_id == family_id)
                .order_by(models.Member.created_at)
            )
            return [self._to_member(m) for m in s.execute(stmt).scalars().all()]

    def get_member(self, family_id: str, member_id: str) -> Optional[Member]:
        """Get a member by ID."""
        with self.get_session() as s:
            db_member = s.get(models.Member, member_id)
            if not db_member or db_member.family_id != family_id:
                return None
            return self._to_member(db_member)

    def update_member(
        self, family_id: str, member_id: str, update: MemberUpdate
    ) -> Optional[Member]:
        """Update a member."""
        with self.get_session() as s:
            db_member = s.get(models.Member, member_id)
            if not db_member or db_member.family_id != family_id:
                return None

            for field, value in update.model_dump(exclude_unset=True).items():
                setattr(db_member, field, value)

            s.flush()
            result = self._to_member(db_member)

        self._notify(("members", family_id))
        return result

    def delete_member(self, family_id: str, member_id: str) -> bool:
        """Delete a member. Their library entries are left in place."""
        with self.get_session() as s:
            db_member = s.get(models.Member, member_id)
            if not db_member or db_member.family_id != family_id:
                return False
            s.delete(db_member)

        self._notify(("members", family_id))
        return True

    # ========================================================================
    # Family Book Catalog Operations
    # ========================================================================

    def find_family_book(
        self,
        family_id: str,
        google_books_id: Optional[str] = None,
        title: Optional[str] = None,
        author: Optional[str] = None,
    ) -> Optional[FamilyBook]:
        """Find a catalog book by Google Books ID, falling back to title+author."""
        with self.get_session() as s:
            if google_books_id:
                stmt = (
                    select(models.FamilyBook)
                    .where(
                        models.FamilyBook.family_id == family_id,
                        models.FamilyBook.google_books_id == google_books_id,
                    )
                    .limit(1)
                )
                db_book = s.execute(stmt).scalar_one_or_none()
                if db_book:
                    return self._to_family_book(db_book)

            if title and author:
                stmt = (
                    select(models.FamilyBook)
                    .where(
                        models.FamilyBook.family_id == family_id,
                        models.FamilyBook.title == title,
                        models.FamilyBook.author == author,
                    )
                    .limit(1)
                )
                db_book = s.execute(stmt).scalar_one_or_none()
                if db_book:
                    return self._to_family_book(db_book)

        return None

    def create_family_book(self, family_id: str, book: FamilyBookCreate) -> FamilyBook:
        """Add a book to the family catalog."""
        with self.get_session() as s:
            db_book = models.FamilyBook(
                family_id=family_id,
                title=book.title,
                author=book.author,
                thumbnail_url=book.thumbnail_url,
                google_books_id=book.google_books_id,
                series_id=book.series_id,
                series_order=book.series_order,
                year=book.year,
                added_by=book.added_by,
            )
            db_book.set_genres(book.genres)
            s.add(db_book)
            s.flush()
            result = self._to_family_book(db_book)

        self._notify(("books", family_id))
        return result

    def get_family_book(self, family_id: str, book_id: str) -> Optional[FamilyBook]:
        """Get a catalog book by ID."""
        with self.get_session() as s:
            db_book = s.get(models.FamilyBook, book_id)
            if not db_book or db_book.family_id != family_id:
                return None
            return self._to_family_book(db_book)

    def get_family_books(self, family_id: str) -> list[FamilyBook]:
        """Get the whole family catalog, most recently added first."""
        with self.get_session() as s:
            stmt = (
                select(models.FamilyBook)
                .where(models.FamilyBook.family_id == family_id)
                .order_by(models.FamilyBook.added_at.desc())
            )
            return [self._to_family_book(b) for b in s.execute(stmt).scalars().all()]

    def get_series_books_from_catalog(self, family_id: str, series_id: str) -> list[FamilyBook]:
        """Get catalog books in a series ordered by position, unpositioned last."""
        with self.get_session() as s:
            stmt = (
                select(models.FamilyBook)
                .where(
                    models.FamilyBook.family_id == family_id,
                    models.FamilyBook.series_id == series_id,
                )
                .order_by(
                    models.FamilyBook.series_order.is_(None),
                    models.FamilyBook.series_order,
                )
            )
            return [self._to_family_book(b) for b in s.execute(stmt).scalars().all()]

    def update_family_book(
        self, family_id: str, book_id: str, update: FamilyBookUpdate
    ) -> Optional[FamilyBook]:
        """Update catalog metadata."""
        with self.get_session() as s:
            db_book = s.get(models.FamilyBook, book_id)
            if not db_book or db_book.family_id != family_id:
                return None

            for field, value in update.model_dump(exclude_unset=True).items():
                if field == "genres":
                    db_book.set_genres(value or [])
                else:
                    setattr(db_book, field, value)

            s.flush()
            result = self._to_family_book(db_book)

        self._notify(("books", family_id))
        return result

    def delete_family_book(self, family_id: str, book_id: str) -> bool:
        """Delete a catalog book. Library entries pointing at it are not touched."""
        with self.get_session() as s:
            db_book = s.get(models.FamilyBook, book_id)
            if not db_book or db_book.family_id != family_id:
                return False
            s.delete(db_book)

        self._notify(("books", family_id))
        return True

    # ========================================================================
    # Member Library Operations
    # ========================================================================

    def find_library_entry(
        self, family_id: str, member_id: str, book_id: str
    ) -> Optional[MemberLibraryEntry]:
        """Find a member's entry for a catalog book."""
        with self.get_session() as s:
            stmt = (
                select(models.LibraryEntry)
                .where(
                    models.LibraryEntry.family_id == family_id,
                    models.LibraryEntry.member_id == member_id,
                    models.LibraryEntry.book_id == book_id,
                )
                .limit(1)
            )
            entry = s.execute(stmt).scalar_one_or_none()
            return self._to_library_entry(entry) if entry else None

    def create_library_entry(
        self,
        family_id: str,
        member_id: str,
        book_id: str,
        status: BookStatus = BookStatus.TO_READ,
    ) -> MemberLibraryEntry:
        """Add a catalog book to a member's library."""
        with self.get_session() as s:
            entry = models.LibraryEntry(
                family_id=family_id,
                member_id=member_id,
                book_id=book_id,
                status=BookStatus(status).value,
            )
            s.add(entry)
            s.flush()
            result = self._to_library_entry(entry)

        self._notify(("library", family_id, member_id))
        return result

    def get_library_entry(
        self, family_id: str, member_id: str, entry_id: str
    ) -> Optional[MemberLibraryEntry]:
        """Get a library entry by ID."""
        with self.get_session() as s:
            entry = s.get(models.LibraryEntry, entry_id)
            if not entry or entry.family_id != family_id or entry.member_id != member_id:
                return None
            return self._to_library_entry(entry)

    def get_library_entries(self, family_id: str, member_id: str) -> list[MemberLibraryEntry]:
        """Get a member's library entries, most recently added first."""
        with self.get_session() as s:
            stmt = (
                select(models.LibraryEntry)
                .where(
                    models.LibraryEntry.family_id == family_id,
                    models.LibraryEntry.member_id == member_id,
                )
                .order_by(models.LibraryEntry.added_at.desc())
            )
            return [self._to_library_entry(e) for e in s.execute(stmt).scalars().all()]

    def update_library_entry(
        self, family_id: str, member_id: str, entry_id: str, status: BookStatus
    ) -> Optional[MemberLibraryEntry]:
        """Change the reading status of a library entry."""
        with self.get_session() as s:
            entry = s.get(models.LibraryEntry, entry_id)
            if not entry or entry.family_id != family_id or entry.member_id != member_id:
                return None
            entry.status = BookStatus(status).value
            s.flush()
            result = self._to_library_entry(entry)

        self._notify(("library", family_id, member_id))
        return result

    def delete_library_entry(self, family_id: str, member_id: str, entry_id: str) -> bool:
        """Remove a book from a member's library."""
        with self.get_session() as s:
            entry = s.get(models.LibraryEntry, entry_id)
            if not entry or entry.family_id != family_id or entry.member_id != member_id:
                return False
            s.delete(entry)

        self._notify(("library", family_id, member_id))
        return True

    # ========================================================================
    # Series Operations
    # ========================================================================

    def create_series(
        self, family_id: str, series: SeriesCreate, created_by: Optional[str] = None
    ) -> Series:
        """Create a series shared by the family."""
        with self.get_session() as s:
            db_series = models.Series(
                family_id=family_id,
                name=series.name,
                total_books=series.total_books,
                status=series.status.value if series.status else None,
                thumbnail_url=series.thumbnail_url,
                created_by=created_by,
            )
            s.add(db_series)
            s.flush()
            result = self._to_series(db_series)

        self._notify(("series", family_id))
        return result

    def get_series(self, family_id: str, series_id: str) -> Optional[Series]:
        """Get a series by ID."""
        with self.get_session() as s:
            db_series = s.get(models.Series, series_id)
            if not db_series or db_series.family_id != family_id:
                return None
            return self._to_series(db_series)

    def get_series_list(self, family_id: str) -> list[Series]:
        """Get all series of a family in creation order."""
        with self.get_session() as s:
            stmt = (
                select(models.Series)
                .where(models.Series.family_id == family_id)
                .order_by(models.Series.created_at)
            )
            return [self._to_series(r) for r in s.execute(stmt).scalars().all()]

    def update_series(
        self, family_id: str, series_id: str, update: SeriesUpdate
    ) -> Optional[Series]:
        """Update a series."""
        with self.get_session() as s:
            db_series = s.get(models.Series, series_id)
            if not db_series or db_series.family_id != family_id:
                return None

            for field, value in update.model_dump(exclude_unset=True).items():
                if field == "status":
                    setattr(db_series, field, SeriesStatus(value).value if value else None)
                else:
                    setattr(db_series, field, value)

            s.flush()
            result = self._to_series(db_series)

        self._notify(("series", family_id))
        return result

    def delete_series(self, family_id: str, series_id: str) -> bool:
        """Delete a series. Catalog books keep their series_id."""
        with self.get_session() as s:
            db_series = s.get(models.Series, series_id)
            if not db_series or db_series.family_id != family_id:
                return False
            s.delete(db_series)

        self._notify(("series", family_id))
        return True

    # ========================================================================
    # Real-time Listeners
    # ========================================================================

    def on_members_snapshot(
        self,
        family_id: str,
        callback: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Unsubscribe:
        """Listen to a family's members."""
        return self._listen(("members", family_id), callback, on_error)

    def on_family_books_snapshot(
        self,
        family_id: str,
        callback: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Unsubscribe:
        """Listen to the family catalog."""
        return self._listen(("books", family_id), callback, on_error)

    def on_member_library_snapshot(
        self,
        family_id: str,
        member_id: str,
        callback: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Unsubscribe:
        """Listen to a member's library entries."""
        return self._listen(("library", family_id, member_id), callback, on_error)

    def on_series_snapshot(
        self,
        family_id: str,
        callback: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Unsubscribe:
        """Listen to a family's series records."""
        return self._listen(("series", family_id), callback, on_error)

    def listener_count(self) -> int:
        """Number of active snapshot listeners."""
        return sum(len(listeners) for listeners in self._listeners.values())

    def _listen(
        self, key: tuple, callback: SnapshotCallback, on_error: Optional[ErrorCallback]
    ) -> Unsubscribe:
        """Register a listener and deliver the current snapshot to it."""
        listener = _Listener(callback=callback, on_error=on_error)
        self._listeners[key].append(listener)
        logger.debug("Subscribed to %s (%d listeners)", key, len(self._listeners[key]))

        def unsubscribe() -> None:
            listeners = self._listeners.get(key)
            if listeners and listener in listeners:
                listeners.remove(listener)
                if not listeners:
                    del self._listeners[key]
                logger.debug("Unsubscribed from %s", key)

        try:
            self._dispatch(key, [listener])
        except SQLAlchemyError:
            unsubscribe()
            raise

        return unsubscribe

    def _notify(self, key: tuple) -> None:
        """Push the latest snapshot of a collection to its listeners."""
        listeners = list(self._listeners.get(key, ()))
        if listeners:
            self._dispatch(key, listeners)

    def _dispatch(self, key: tuple, listeners: list[_Listener]) -> None:
        """Read a snapshot once and hand it to each still-registered listener."""
        try:
            snapshot = self._read_snapshot(key)
        except SQLAlchemyError as e:
            logger.error("Snapshot read failed for %s: %s", key, e)
            handled = [listener for listener in listeners if listener.on_error]
            for listener in handled:
                listener.on_error(e)
            if len(handled) < len(listeners):
                raise
            return

        logger.debug("Dispatching %d records for %s", len(snapshot), key)
        for listener in listeners:
            # A callback earlier in this loop may have unsubscribed this one
            if listener in self._listeners.get(key, ()):
                listener.callback(list(snapshot))

    def _read_snapshot(self, key: tuple) -> list:
        """Read the full collection a listener key points at."""
        kind = key[0]
        if kind == "members":
            return self.get_members(key[1])
        if kind == "books":
            return self.get_family_books(key[1])
        if kind == "library":
            return self.get_library_entries(key[1], key[2])
        if kind == "series":
            return self.get_series_list(key[1])
        raise ValueError(f"Unknown collection: {kind}")

    # ========================================================================
    # Helper Methods
    # ========================================================================

    def _to_family(self, family: models.Family) -> Family:
        """Convert model to record schema."""
        return Family(
            id=family.id,
            name=family.name,
            owner_id=family.owner_id,
            created_at=datetime.fromisoformat(family.created_at),
        )

    def _to_member(self, member: models.Member) -> Member:
        """Convert model to record schema."""
        return Member.model_validate(member)

    def _to_family_book(self, book: models.FamilyBook) -> FamilyBook:
        """Convert model to record schema."""
        return FamilyBook(
            id=book.id,
            title=book.title,
            author=book.author,
            thumbnail_url=book.thumbnail_url,
            google_books_id=book.google_books_id,
            genres=book.get_genres(),
            series_id=book.series_id,
            series_order=book.series_order,
            year=book.year,
            added_by=book.added_by,
            added_at=datetime.fromisoformat(book.added_at),
        )

    def _to_library_entry(self, entry: models.LibraryEntry) -> MemberLibraryEntry:
        """Convert model to record schema."""
        return MemberLibraryEntry(
            id=entry.id,
            book_id=entry.book_id,
            status=BookStatus(entry.status),
            added_at=datetime.fromisoformat(entry.added_at) if entry.added_at else None,
        )

    def _to_series(self, series: models.Series) -> Series:
        """Convert model to record schema."""
        return Series(
            id=series.id,
            name=series.name,
            total_books=series.total_books or 0,
            status=SeriesStatus(series.status) if series.status else None,
            thumbnail_url=series.thumbnail_url,
            created_by=series.created_by,
        )


# Global database instance
_db: Optional[Database] = None


def get_db(db_path: Optional[str] = None) -> Database:
    """Get or create the global database instance."""
    global _db
    if _db is None:
        if db_path is None:
            from ..config import get_config

            db_path = str(get_config().db_path)
        _db = Database(db_path)
        _db.create_tables()
    return _db


def reset_db() -> None:
    """Reset the global database instance. Used for testing."""
    global _db
    _db = None
