"""
Generic repository shared by every model-specific repository.
"""

from typing import Generic, Iterable, Optional, TypeVar

from sqlalchemy.orm import Session

from repositories.database import Base

T = TypeVar("T", bound=Base)  # type: ignore[type-arg]


class BaseRepository(Generic[T]):
    """
    Common operations over a single SQLAlchemy model keyed by ``id``.

    Every write method commits.
    """

    def __init__(self, model: type[T], db: Session):
        self.model = model
        self.db = db

    def get_by_id(self, id: int) -> Optional[T]:
        return self.db.query(self.model).filter(self.model.id == id).first()

    def exists(self, id: int) -> bool:
        return (
            self.db.query(self.model.id).filter(self.model.id == id).first()
            is not None
        )

    def first_missing_id(self, ids: Iterable[int]) -> Optional[int]:
        """
        Return the first of ``ids`` with no row, or None when all exist.

        Args:
            ids: Candidate primary keys, checked in order

        Returns:
            The first unknown id
        """
        wanted = list(ids)
        if not wanted:
            return None
        found = {
            row[0]
            for row in self.db.query(self.model.id).filter(self.model.id.in_(wanted))
        }
        return next((id for id in wanted if id not in found), None)

    def create(self, entity: T) -> T:
        """Insert, commit and return the refreshed entity."""
        self.db.add(entity)
        self.db.commit()
        self.db.refresh(entity)
        return entity

    def create_many(self, entities: list[T]) -> list[T]:
        """Insert every entity in one transaction; all or none are stored."""
        self.db.add_all(entities)
        self.db.commit()
        for entity in entities:
            self.db.refresh(entity)
        return entities

    def update(self, entity: T) -> T:
        """Commit pending attribute changes on ``entity`` and refresh it."""
        self.db.commit()
        self.db.refresh(entity)
        return entity

    def delete(self, entity: T) -> None:
        self.db.delete(entity)
        self.db.commit()

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

    def refresh(self, entity: T) -> None:
        self.db.refresh(entity)
