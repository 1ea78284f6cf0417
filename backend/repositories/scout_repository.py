"""
Scout repository: scouts and their family links.
"""

from typing import List

from sqlalchemy.orm import Session

import repositories.db_models as db_models
from .base import BaseRepository


class ScoutRepository(BaseRepository[db_models.Scout]):
    """Repository for Scout entity and the family_scouts link table."""

    def __init__(self, db: Session):
        super().__init__(db_models.Scout, db)

    def is_linked(self, user_id: int, scout_id: int) -> bool:
        """
        Check whether a family member looks after a scout.

        Args:
            user_id: Family member ID
            scout_id: Scout ID

        Returns:
            True if a family_scouts row links them
        """
        link = db_models.family_scouts
        return (
            self.db.query(link)
            .filter(link.c.user_id == user_id, link.c.scout_id == scout_id)
            .first()
            is not None
        )

    def get_scout_ids_for_member(self, user_id: int) -> List[int]:
        link = db_models.family_scouts
        rows = self.db.query(link.c.scout_id).filter(link.c.user_id == user_id).all()
        return [row[0] for row in rows]

    def get_active_by_section(self, section: str) -> List[db_models.Scout]:
        return (
            self.db.query(db_models.Scout)
            .filter(
                db_models.Scout.section == section,
                db_models.Scout.is_active == True,  # noqa: E712
            )
            .order_by(db_models.Scout.id)
            .all()
        )

    def get_family_links(self, scout_ids: List[int]) -> List[tuple[int, int]]:
        """
        Get (family_member_id, scout_id) pairs for the given scouts.

        Only active family members are returned.

        Args:
            scout_ids: Scout IDs to resolve

        Returns:
            Pairs ordered by scout then family member
        """
        if not scout_ids:
            return []
        link = db_models.family_scouts
        rows = (
            self.db.query(link.c.user_id, link.c.scout_id)
            .join(db_models.User, db_models.User.id == link.c.user_id)
            .filter(
                link.c.scout_id.in_(scout_ids),
                db_models.User.is_active == True,  # noqa: E712
            )
            .order_by(link.c.scout_id, link.c.user_id)
            .all()
        )
        return [(row[0], row[1]) for row in rows]

    def link_family_member(self, user_id: int, scout_id: int) -> None:
        """Insert a family_scouts row (no commit)."""
        self.db.execute(
            db_models.family_scouts.insert().values(user_id=user_id, scout_id=scout_id)
        )
