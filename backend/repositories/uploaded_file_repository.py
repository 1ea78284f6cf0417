"""
Uploaded file metadata repository.
"""

from typing import List, Optional

from sqlalchemy.orm import Query, Session

import repositories.db_models as db_models

from .base import BaseRepository

UploadedFile = db_models.UploadedFile


class UploadedFileRepository(BaseRepository[db_models.UploadedFile]):
    """Repository for uploaded file metadata."""

    def __init__(self, db: Session):
        super().__init__(db_models.UploadedFile, db)

    def _filtered(
        self, folder: Optional[str] = None, type_prefix: Optional[str] = None
    ) -> Query:
        query = self.db.query(UploadedFile)
        if folder:
            query = query.filter(UploadedFile.folder == folder)
        if type_prefix:
            query = query.filter(UploadedFile.file_type.like(f"{type_prefix}%"))
        return query

    def list_files(
        self,
        folder: Optional[str] = None,
        type_prefix: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[db_models.UploadedFile]:
        """
        List files newest first.

        Args:
            folder: Exact folder filter
            type_prefix: MIME prefix filter (e.g. "image/")
            limit: Page size
            offset: Rows to skip

        Returns:
            Uploaded files
        """
        return (
            self._filtered(folder, type_prefix)
            .order_by(UploadedFile.uploaded_at.desc(), UploadedFile.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    def count_files(
        self, folder: Optional[str] = None, type_prefix: Optional[str] = None
    ) -> int:
        return self._filtered(folder, type_prefix).count()

    def get_by_backend(
        self, storage_backend: str, limit: Optional[int] = None
    ) -> List[db_models.UploadedFile]:
        query = (
            self.db.query(UploadedFile)
            .filter(UploadedFile.storage_backend == storage_backend)
            .order_by(UploadedFile.id)
        )
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def get_type_sizes(self) -> List[tuple[str, int]]:
        """Return (file_type, file_size) for every row, used for stats."""
        rows = self.db.query(UploadedFile.file_type, UploadedFile.file_size).all()
        return [(row[0], row[1]) for row in rows]
