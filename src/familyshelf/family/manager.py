"""Manager for families and their members."""

import logging
from typing import Optional

from ..db.schemas import Family, FamilyCreate, Member, MemberCreate, MemberUpdate
from ..db.sqlite import Database, get_db

logger = logging.getLogger(__name__)


class FamilyManager:
    """Creates families and manages who belongs to them."""

    def __init__(self, db: Optional[Database] = None):
        self.db = db or get_db()

    # ========================================================================
    # Families
    # ========================================================================

    def create_family(self, name: str, owner_id: str) -> Family:
        """Create a family owned by an auth user."""
        family = self.db.create_family(FamilyCreate(name=name, owner_id=owner_id))
        logger.info("Created family '%s' (%s)", family.name, family.id)
        return family

    def get_family(self, family_id: str) -> Optional[Family]:
        return self.db.get_family(family_id)

    def get_family_by_owner(self, owner_id: str) -> Optional[Family]:
        return self.db.get_family_by_owner(owner_id)

    # ========================================================================
    # Members
    # ========================================================================

    def add_member(self, family_id: str, member: MemberCreate) -> Optional[Member]:
        """Add a member to a family.

        Returns:
            The new member, or None if the family does not exist
        """
        if self.db.get_family(family_id) is None:
            return None
        return self.db.create_member(family_id, member)

    def list_members(self, family_id: str) -> list[Member]:
        return self.db.get_members(family_id)

    def get_member(self, family_id: str, member_id: str) -> Optional[Member]:
        return self.db.get_member(family_id, member_id)

    def update_member(
        self, family_id: str, member_id: str, update: MemberUpdate
    ) -> Optional[Member]:
        return self.db.update_member(family_id, member_id, update)

    def remove_member(self, family_id: str, member_id: str) -> bool:
        """Remove a member. Their library entries are kept."""
        return self.db.delete_member(family_id, member_id)
