"""
Activity (calendar) repository.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

import repositories.db_models as db_models

from .base import BaseRepository

Activity = db_models.Activity


class ActivityRepository(BaseRepository[db_models.Activity]):
    """Repository for calendar activities."""

    def __init__(self, db: Session):
        super().__init__(db_models.Activity, db)

    def list_from(
        self,
        start: Optional[date] = None,
        section: Optional[str] = None,
        limit: int = 100,
    ) -> List[db_models.Activity]:
        """
        List activities in date order.

        Activities without a section are group-wide and match every section.

        Args:
            start: Earliest date to include
            section: Section filter
            limit: Maximum rows

        Returns:
            Activities ordered by date then time
        """
        query = self.db.query(Activity)
        if start is not None:
            query = query.filter(Activity.date >= start)
        if section:
            query = query.filter(
                or_(Activity.section == section, Activity.section.is_(None))
            )
        return query.order_by(Activity.date, Activity.time, Activity.id).limit(limit).all()
