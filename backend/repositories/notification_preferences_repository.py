"""
Notification preferences repository.
"""

from typing import Optional

from sqlalchemy.orm import Session

import repositories.db_models as db_models

from .base import BaseRepository


class NotificationPreferencesRepository(
    BaseRepository[db_models.NotificationPreferences]
):
    """One preferences row per family member."""

    def __init__(self, db: Session):
        super().__init__(db_models.NotificationPreferences, db)

    def get_by_member(
        self, family_member_id: int
    ) -> Optional[db_models.NotificationPreferences]:
        return (
            self.db.query(db_models.NotificationPreferences)
            .filter(
                db_models.NotificationPreferences.family_member_id == family_member_id
            )
            .first()
        )

    def get_or_create(self, family_member_id: int) -> db_models.NotificationPreferences:
        """
        Get the member's preferences, creating a row with defaults on first read.

        Args:
            family_member_id: Owner ID

        Returns:
            Persisted preferences
        """
        preferences = self.get_by_member(family_member_id)
        if preferences is None:
            preferences = self.create(
                db_models.NotificationPreferences(family_member_id=family_member_id)
            )
        return preferences
