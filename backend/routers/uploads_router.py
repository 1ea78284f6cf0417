"""
Uploaded files router.

The storage backend is created once at startup and read from ``app.state``.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import PaginationLimit, PaginationOffset
from helpers.rate_limiter import limiter, upload_rate_key
from models.config import settings
from models.exceptions import FileTooLargeException
from repositories.database import get_db
from services.storage import StorageBackend
from services.upload_service import UploadService

router = APIRouter(prefix="/uploads", tags=["uploads"])


def get_storage(request: Request) -> StorageBackend:
    """Storage backend selected at startup."""
    return request.app.state.storage


@router.post(
    "",
    response_model=schemas.UploadResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.UPLOAD_RATE_LIMIT, key_func=upload_rate_key)
def upload_file(
    request: Request,
    file: UploadFile = File(...),
    folder: str = Form("general"),
    alt_text: str = Form(""),
    title: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
    current_user: db_models.User = Depends(auth.get_staff_user),
):
    """
    Upload a file (monitor/admin).

    Accepted: JPEG, PNG, GIF, WebP, PDF, DOC and DOCX up to UPLOAD_MAX_SIZE.
    """
    # Never buffer more than one byte past the limit
    content = file.file.read(settings.UPLOAD_MAX_SIZE + 1)
    if len(content) > settings.UPLOAD_MAX_SIZE:
        raise FileTooLargeException(
            file.size or len(content), settings.UPLOAD_MAX_SIZE
        )
    record = UploadService.upload_file(
        db,
        storage,
        content=content,
        original_name=file.filename or "file",
        declared_type=file.content_type or "",
        folder=folder,
        alt_text=alt_text,
        title=title,
        user_id=current_user.id,
    )
    return schemas.UploadResponse(message="File uploaded successfully", data=record)


@router.get("", response_model=schemas.UploadedFileListResponse)
def list_files(
    folder: Optional[str] = None,
    type: Optional[str] = Query(None, description="MIME prefix, e.g. 'image/'"),
    limit: PaginationLimit = 50,
    offset: PaginationOffset = 0,
    db: Session = Depends(get_db),
    _current_user: db_models.User = Depends(auth.get_current_active_user),
):
    files, pagination = UploadService.list_files(db, folder, type, limit, offset)
    return schemas.UploadedFileListResponse(data=files, pagination=pagination)


@router.get("/folders", response_model=schemas.FoldersResponse)
def list_folders(
    storage: StorageBackend = Depends(get_storage),
    _current_user: db_models.User = Depends(auth.get_current_active_user),
):
    return schemas.FoldersResponse(data=UploadService.get_folders(storage))


@router.get("/stats", response_model=schemas.FileStatsResponse)
def get_stats(
    db: Session = Depends(get_db),
    _current_user: db_models.User = Depends(auth.get_staff_user),
):
    return schemas.FileStatsResponse(data=UploadService.get_stats(db))


@router.get("/config", response_model=schemas.StorageConfigResponse)
def get_storage_config(
    storage: StorageBackend = Depends(get_storage),
    _current_user: db_models.User = Depends(auth.get_staff_user),
):
    return schemas.StorageConfigResponse(
        data=UploadService.get_storage_config(storage)
    )


@router.post("/migrate", response_model=schemas.MigrationResponse)
def migrate_files(
    payload: schemas.MigrationRequest,
    db: Session = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
    _current_admin: db_models.User = Depends(auth.get_admin_user),
):
    """
    Copy files between storage backends and repoint their rows (admin).

    Use ``dry_run`` to list what would be moved.
    """
    source = UploadService.resolve_backend(storage, payload.source)
    target = UploadService.resolve_backend(storage, payload.target)
    report = UploadService.migrate_files(
        db, source, target, dry_run=payload.dry_run, limit=payload.limit
    )
    return schemas.MigrationResponse(data=report)


@router.delete("/{file_id}", response_model=schemas.MessageResponse)
def delete_file(
    file_id: int,
    db: Session = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
    _current_user: db_models.User = Depends(auth.get_staff_user),
):
    UploadService.delete_file(db, storage, file_id)
    return schemas.MessageResponse(message="File deleted")
