"""Families and their members."""

from .manager import FamilyManager

__all__ = ["FamilyManager"]
