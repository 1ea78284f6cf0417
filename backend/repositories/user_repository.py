"""
User repository for database operations.
"""

from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from models.notification_types import UserRole
from .base import BaseRepository


class UserRepository(BaseRepository[db_models.User]):
    """Repository for User entity database operations."""

    def __init__(self, db: Session):
        super().__init__(db_models.User, db)

    def get_by_email(self, email: str) -> Optional[db_models.User]:
        """
        Get user by email.

        Args:
            email: User email

        Returns:
            User if found, None otherwise
        """
        return (
            self.db.query(db_models.User).filter(db_models.User.email == email).first()
        )

    def get_staff_for_section(self, section: str) -> List[db_models.User]:
        """
        Get the active staff who should receive messages about a section.

        Monitors assigned to the section plus every admin.

        Args:
            section: Section name (e.g. "castores", "manada")

        Returns:
            Users ordered by id
        """
        return (
            self.db.query(db_models.User)
            .filter(
                db_models.User.is_active == True,  # noqa: E712
                or_(
                    db_models.User.role == UserRole.ADMIN,
                    (db_models.User.role == UserRole.MONITOR)
                    & (db_models.User.section == section),
                ),
            )
            .order_by(db_models.User.id)
            .all()
        )
