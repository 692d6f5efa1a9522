"""familyshelf: shared family bookshelf with per-member reading progress."""

__version__ = "0.1.0"
