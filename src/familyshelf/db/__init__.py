"""Database module for local SQLite storage."""

from .schemas import (
    ALL_STATUSES,
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
from .sqlite import Database, get_db, reset_db

__all__ = [
    "ALL_STATUSES",
    "BookStatus",
    "Family",
    "FamilyBook",
    "FamilyBookCreate",
    "FamilyBookUpdate",
    "FamilyCreate",
    "Member",
    "MemberCreate",
    "MemberLibraryEntry",
    "MemberUpdate",
    "Series",
    "SeriesCreate",
    "SeriesStatus",
    "SeriesUpdate",
    "Database",
    "get_db",
    "reset_db",
]
