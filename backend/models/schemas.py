import datetime as dt
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
)

from helpers.time_utils import ensure_utc
from models.notification_types import (
    NotificationCategory,
    NotificationFrequency,
    NotificationKind,
    NotificationPriority,
    NotificationState,
    UserRole,
)

HH_MM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


# User Schemas
class User(BaseModel):
    id: int
    email: EmailStr
    first_name: str
    last_name: str
    role: UserRole
    section: Optional[str] = None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


# Family notification schemas
class NotificationBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=5000)
    kind: NotificationKind
    priority: NotificationPriority = NotificationPriority.NORMAL
    category: Optional[NotificationCategory] = None
    action_url: Optional[str] = Field(None, max_length=500)
    metadata: Optional[Dict[str, Any]] = None
    expires_at: Optional[datetime] = None

    @field_validator("expires_at")
    @classmethod
    def store_expiry_as_naive_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Convert to UTC and drop the offset; the column holds naive UTC."""
        if v is None:
            return None
        return ensure_utc(v).replace(tzinfo=None)


class NotificationCreate(NotificationBase):
    family_member_id: int
    scout_id: Optional[int] = None


class NotificationBulkCreate(NotificationBase):
    """One notification per linked family member of each scout."""

    scout_ids: List[int] = Field(..., min_length=1)


class SectionNotificationCreate(NotificationBase):
    """Fan-out to every family of the active scouts in a section."""

    pass


class MonitorMessageCreate(BaseModel):
    """Message from a family member to the monitors of a scout's section."""

    scout_id: int
    subject: str = Field(..., min_length=1, max_length=200)
    body: str = Field(..., min_length=1, max_length=5000)
    category: NotificationCategory = NotificationCategory.GENERAL
    urgency: NotificationPriority = NotificationPriority.NORMAL


class Notification(BaseModel):
    id: int
    family_member_id: int
    scout_id: Optional[int] = None
    title: str
    message: str
    kind: NotificationKind
    priority: NotificationPriority
    category: Optional[NotificationCategory] = None
    action_url: Optional[str] = None
    # ORM attribute is extra_data (``metadata`` is reserved by SQLAlchemy)
    metadata: Optional[Dict[str, Any]] = Field(
        default=None, validation_alias=AliasChoices("extra_data", "metadata")
    )
    state: NotificationState
    sender_name: Optional[str] = None
    sender_role: Optional[str] = None
    created_at: datetime
    read_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class NotificationListResponse(BaseModel):
    success: bool = True
    data: List[Notification]


class NotificationResponse(BaseModel):
    success: bool = True
    data: Notification


class UnreadCount(BaseModel):
    unread: int


class UnreadCountResponse(BaseModel):
    success: bool = True
    data: UnreadCount


class AffectedCount(BaseModel):
    affected: int


class MarkAllReadResponse(BaseModel):
    success: bool = True
    data: AffectedCount


class NotificationsCreated(BaseModel):
    created: int
    ids: List[int]
    # Recipients whose email/SMS/push delivery waits for their delivery window
    deferred: int = 0


class NotificationsCreatedResponse(BaseModel):
    success: bool = True
    data: NotificationsCreated


class MessageResponse(BaseModel):
    success: bool = True
    message: str


# Notification preferences
class NotificationPreferences(BaseModel):
    email_enabled: bool
    email_urgent: bool
    email_important: bool
    email_informative: bool
    email_weekly_digest: bool
    sms_enabled: bool
    sms_urgent_only: bool
    push_enabled: bool
    push_urgent: bool
    push_important: bool
    quiet_hours_start: str
    quiet_hours_end: str
    weekend_schedule_enabled: bool
    weekend_start: str
    weekend_end: str
    do_not_disturb: bool
    vacation_enabled: bool
    vacation_start: Optional[dt.date] = None
    vacation_end: Optional[dt.date] = None
    frequency: NotificationFrequency
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class NotificationPreferencesUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    email_enabled: Optional[bool] = None
    email_urgent: Optional[bool] = None
    email_important: Optional[bool] = None
    email_informative: Optional[bool] = None
    email_weekly_digest: Optional[bool] = None
    sms_enabled: Optional[bool] = None
    sms_urgent_only: Optional[bool] = None
    push_enabled: Optional[bool] = None
    push_urgent: Optional[bool] = None
    push_important: Optional[bool] = None
    quiet_hours_start: Optional[str] = Field(None, pattern=HH_MM_PATTERN)
    quiet_hours_end: Optional[str] = Field(None, pattern=HH_MM_PATTERN)
    weekend_schedule_enabled: Optional[bool] = None
    weekend_start: Optional[str] = Field(None, pattern=HH_MM_PATTERN)
    weekend_end: Optional[str] = Field(None, pattern=HH_MM_PATTERN)
    do_not_disturb: Optional[bool] = None
    vacation_enabled: Optional[bool] = None
    vacation_start: Optional[dt.date] = None
    vacation_end: Optional[dt.date] = None
    frequency: Optional[NotificationFrequency] = None


class NotificationPreferencesResponse(BaseModel):
    success: bool = True
    data: NotificationPreferences


# Uploaded files
class UploadedFile(BaseModel):
    id: int
    filename: str
    original_name: str
    title: str
    file_path: str
    file_url: str
    file_type: str
    file_size: int
    alt_text: str
    folder: str
    storage_backend: str
    uploaded_by: Optional[int] = None
    uploaded_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UploadResponse(BaseModel):
    success: bool = True
    message: str
    data: UploadedFile


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class UploadedFileListResponse(BaseModel):
    success: bool = True
    data: List[UploadedFile]
    pagination: Pagination


class FileTypeBreakdown(BaseModel):
    images: int = 0
    documents: int = 0
    others: int = 0


class FileStats(BaseModel):
    total: int
    total_size: int
    by_type: FileTypeBreakdown


class FileStatsResponse(BaseModel):
    success: bool = True
    data: FileStats


class FoldersResponse(BaseModel):
    success: bool = True
    data: List[str]


class StorageFeatures(BaseModel):
    cdn: bool
    public_urls: bool
    persistent: bool


class StorageConfig(BaseModel):
    environment: str
    storage_type: str
    max_file_size: int
    allowed_types: List[str]
    features: StorageFeatures


class StorageConfigResponse(BaseModel):
    success: bool = True
    data: StorageConfig


class MigrationRequest(BaseModel):
    source: str = Field(..., pattern="^(local|supabase)$")
    target: str = Field(..., pattern="^(local|supabase)$")
    dry_run: bool = False
    limit: Optional[int] = Field(None, ge=1)


class MigrationFileResult(BaseModel):
    id: int
    filename: str
    status: str
    file_url: Optional[str] = None
    error: Optional[str] = None


class MigrationReport(BaseModel):
    source: str
    target: str
    dry_run: bool
    total: int
    migrated: int
    failed: int
    results: List[MigrationFileResult]


class MigrationResponse(BaseModel):
    success: bool = True
    data: MigrationReport


# Calendar activities
class ActivityCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    date: dt.date
    time: Optional[str] = Field(None, max_length=50)
    location: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    section: Optional[str] = Field(None, max_length=50)


class Activity(ActivityCreate):
    id: int
    created_by: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class GoogleCalendarLink(BaseModel):
    url: str
