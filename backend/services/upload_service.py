"""
Uploaded file management shared by the HTTP handlers and the migration CLI.

The storage backend is always passed in explicitly; it is created once at
startup (``app.state.storage``) or by the caller for migrations.
"""

import uuid
from typing import Any, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from helpers.file_validation import (
    ALLOWED_MIME_TYPES,
    DEFAULT_FOLDERS,
    content_matches,
    detect_mime_type,
    file_extension,
    file_type_bucket,
    is_allowed_mime_type,
    normalize_mime_type,
    sanitize_folder,
)
from helpers.pagination import build_pagination
from models.config import settings
from models.exceptions import (
    EmptyFileException,
    FileTooLargeException,
    InvalidMigrationException,
    StorageException,
    UnsupportedFileTypeException,
    UploadedFileNotFoundException,
)
from repositories.uploaded_file_repository import UploadedFileRepository
from services.storage import StorageBackend, create_storage_backend


class UploadService:
    """Service for uploaded file operations."""

    @staticmethod
    def validate_upload(content: bytes, declared_type: str) -> str:
        """
        Validate size and type of an upload.

        Args:
            content: File bytes
            declared_type: MIME type sent by the client

        Returns:
            Normalized MIME type to store

        Raises:
            EmptyFileException: If there is no content
            FileTooLargeException: If content exceeds UPLOAD_MAX_SIZE
            UnsupportedFileTypeException: If the type is not allowed or the
                content does not match it
        """
        if not content:
            raise EmptyFileException()

        if len(content) > settings.UPLOAD_MAX_SIZE:
            raise FileTooLargeException(len(content), settings.UPLOAD_MAX_SIZE)

        mime_type = normalize_mime_type(declared_type or "")
        if not is_allowed_mime_type(mime_type):
            raise UnsupportedFileTypeException(mime_type or "unknown")

        if settings.UPLOAD_SNIFF_CONTENT:
            detected_type = detect_mime_type(content)
            if not content_matches(mime_type, detected_type):
                logger.warning(
                    "Upload content does not match declared type",
                    declared_type=mime_type,
                    detected_type=detected_type,
                )
                raise UnsupportedFileTypeException(detected_type)

        return mime_type

    @classmethod
    def upload_file(
        cls,
        db: Session,
        storage: StorageBackend,
        content: bytes,
        original_name: str,
        declared_type: str,
        folder: Optional[str] = None,
        alt_text: str = "",
        title: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> db_models.UploadedFile:
        """
        Validate, store and record an uploaded file.

        Bytes are written first. If the metadata insert then fails the bytes
        are removed again (best effort, logged, not retried) and a
        StorageException is raised.

        Returns:
            Persisted UploadedFile row
        """
        mime_type = cls.validate_upload(content, declared_type)
        folder_name = sanitize_folder(folder)
        filename = f"{uuid.uuid4()}{file_extension(original_name, mime_type)}"
        key = f"{folder_name}/{filename}"

        file_url = storage.save(key, content, mime_type)

        record = db_models.UploadedFile(
            filename=filename,
            original_name=original_name,
            title=title or original_name,
            file_path=key,
            file_url=file_url,
            file_type=mime_type,
            file_size=len(content),
            alt_text=alt_text or "",
            folder=folder_name,
            storage_backend=storage.backend_name,
            uploaded_by=user_id,
        )
        repo = UploadedFileRepository(db)
        try:
            record = repo.create(record)
        except SQLAlchemyError as e:
            repo.rollback()
            logger.error(f"Failed to save metadata for {key}: {e}")
            try:
                storage.delete(key)
            except StorageException as cleanup_error:
                logger.error(
                    f"Could not remove orphaned file {key}: {cleanup_error.message}"
                )
            raise StorageException("Could not save file metadata") from e

        logger.info(
            "File uploaded",
            file_id=record.id,
            key=key,
            size=record.file_size,
            backend=storage.backend_name,
        )
        return record

    @staticmethod
    def list_files(
        db: Session,
        folder: Optional[str] = None,
        type_prefix: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[db_models.UploadedFile], dict[str, Any]]:
        """
        List files newest first.

        Returns:
            (files, pagination) where pagination has total/limit/offset/has_more
        """
        repo = UploadedFileRepository(db)
        files = repo.list_files(folder, type_prefix, limit, offset)
        total = repo.count_files(folder, type_prefix)
        return files, build_pagination(total, limit, offset)

    @staticmethod
    def resolve_backend(storage: StorageBackend, name: str) -> StorageBackend:
        """
        Return ``storage`` when it is the backend called ``name``, otherwise
        build the named backend from settings.

        Raises:
            InvalidMigrationException: If the backend cannot be built.
        """
        if storage.backend_name == name:
            return storage
        try:
            return create_storage_backend(settings, name)
        except ValueError as e:
            raise InvalidMigrationException(str(e)) from e

    @classmethod
    def delete_file(cls, db: Session, storage: StorageBackend, file_id: int) -> None:
        """
        Delete a file's bytes and its metadata row.

        A failure to delete the bytes is logged; the row is removed anyway.

        Raises:
            UploadedFileNotFoundException: If the row does not exist
        """
        repo = UploadedFileRepository(db)
        record = repo.get_by_id(file_id)
        if record is None:
            raise UploadedFileNotFoundException(file_id)

        try:
            backend = cls.resolve_backend(storage, record.storage_backend)
            backend.delete(record.file_path)
        except (StorageException, InvalidMigrationException) as e:
            logger.warning(
                f"Could not delete stored bytes for file {file_id} "
                f"on {record.storage_backend}: {e.message}"
            )

        repo.delete(record)
        logger.info("File deleted", file_id=file_id)

    @staticmethod
    def get_stats(db: Session) -> dict[str, Any]:
        """Total count, total size and counts per images/documents/others."""
        repo = UploadedFileRepository(db)
        by_type = {"images": 0, "documents": 0, "others": 0}
        total = 0
        total_size = 0
        for file_type, file_size in repo.get_type_sizes():
            by_type[file_type_bucket(file_type)] += 1
            total += 1
            total_size += file_size or 0
        return {"total": total, "total_size": total_size, "by_type": by_type}

    @staticmethod
    def get_folders(storage: StorageBackend) -> list[str]:
        """Folders present in the backend, or the default set when none exist."""
        folders = storage.list_folders()
        return folders or list(DEFAULT_FOLDERS)

    @staticmethod
    def get_storage_config(storage: StorageBackend) -> dict[str, Any]:
        return {
            "environment": settings.ENVIRONMENT,
            "storage_type": storage.backend_name,
            "max_file_size": settings.UPLOAD_MAX_SIZE,
            "allowed_types": list(ALLOWED_MIME_TYPES),
            "features": storage.features,
        }

    @staticmethod
    def migrate_files(
        db: Session,
        source: StorageBackend,
        target: StorageBackend,
        dry_run: bool = False,
        limit: Optional[int] = None,
    ) -> dict[str, Any]:
        """
        Copy every file recorded on ``source`` to ``target`` and repoint its row.

        Each file is handled on its own: a failure is recorded in the results
        and the batch continues. Source bytes are left in place.

        Args:
            db: Database session
            source: Backend the rows currently point to
            target: Backend to copy to
            dry_run: Only report what would be migrated
            limit: Maximum number of files to process

        Returns:
            Report with totals and per-file results

        Raises:
            InvalidMigrationException: If source and target are the same backend
        """
        if source.backend_name == target.backend_name:
            raise InvalidMigrationException(
                f"Source and target are both '{source.backend_name}'"
            )

        repo = UploadedFileRepository(db)
        records = repo.get_by_backend(source.backend_name, limit)
        results: list[dict[str, Any]] = []
        migrated = 0
        failed = 0

        for record in records:
            result: dict[str, Any] = {"id": record.id, "filename": record.filename}
            if dry_run:
                result["status"] = "dry-run"
                results.append(result)
                continue

            try:
                content = source.read(record.file_path)
                file_url = target.save(record.file_path, content, record.file_type)
                record.file_url = file_url
                record.storage_backend = target.backend_name
                repo.commit()
            except (StorageException, SQLAlchemyError) as e:
                repo.rollback()
                failed += 1
                message = e.message if isinstance(e, StorageException) else str(e)
                logger.warning(f"Migration failed for file {record.id}: {message}")
                result.update(status="error", error=message)
            else:
                migrated += 1
                result.update(status="success", file_url=file_url)
            results.append(result)

        logger.info(
            "Storage migration finished",
            source=source.backend_name,
            target=target.backend_name,
            dry_run=dry_run,
            migrated=migrated,
            failed=failed,
        )
        return {
            "source": source.backend_name,
            "target": target.backend_name,
            "dry_run": dry_run,
            "total": len(records),
            "migrated": migrated,
            "failed": failed,
            "results": results,
        }
