"""
Database models using SQLAlchemy 2.0 style with Mapped type hints.

This module defines all database models with proper type annotations
for improved IDE support and type checking.
"""

import datetime as dt
from datetime import date, datetime, timezone
from typing import Any, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.notification_types import (
    NotificationCategory,
    NotificationFrequency,
    NotificationKind,
    NotificationPriority,
    NotificationState,
    UserRole,
)
from repositories.database import Base


def _utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


# Family member <-> scout link. A family member may look after several
# scouts and a scout may have several family members.
family_scouts = Table(
    "family_scouts",
    Base.metadata,
    Column("user_id", ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("scout_id", ForeignKey("scouts.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(150), default="", nullable=False)
    hashed_password: Mapped[str] = mapped_column(String, nullable=False)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole), default=UserRole.FAMILY, nullable=False
    )
    # Section a monitor is in charge of (None for families and admins)
    section: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    scouts: Mapped[List["Scout"]] = relationship(
        "Scout", secondary=family_scouts, back_populates="family_members"
    )
    notifications: Mapped[List["FamilyNotification"]] = relationship(
        "FamilyNotification",
        back_populates="family_member",
        cascade="all, delete-orphan",
        foreign_keys="[FamilyNotification.family_member_id]",
    )
    preferences: Mapped[Optional["NotificationPreferences"]] = relationship(
        "NotificationPreferences",
        back_populates="family_member",
        uselist=False,
        cascade="all, delete-orphan",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Scout(Base):
    """A child member of the group (educando)."""

    __tablename__ = "scouts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(150), default="", nullable=False)
    section: Mapped[str] = mapped_column(String(50), index=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    family_members: Mapped[List["User"]] = relationship(
        "User", secondary=family_scouts, back_populates="scouts"
    )


class FamilyNotification(Base):
    __tablename__ = "family_notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    family_member_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    scout_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("scouts.id", ondelete="SET NULL"), nullable=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    kind: Mapped[NotificationKind] = mapped_column(
        Enum(NotificationKind), nullable=False
    )
    priority: Mapped[NotificationPriority] = mapped_column(
        Enum(NotificationPriority), default=NotificationPriority.NORMAL, nullable=False
    )
    # Numeric mirror of priority so listings can sort high > normal > low
    priority_rank: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    category: Mapped[Optional[NotificationCategory]] = mapped_column(
        Enum(NotificationCategory), nullable=True
    )
    action_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    extra_data: Mapped[Optional[dict[str, Any]]] = mapped_column(
        "metadata", JSON, nullable=True
    )
    state: Mapped[NotificationState] = mapped_column(
        Enum(NotificationState), default=NotificationState.UNREAD, nullable=False
    )
    sender_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    sender_role: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    archived_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    family_member: Mapped["User"] = relationship(
        "User", back_populates="notifications", foreign_keys=[family_member_id]
    )
    scout: Mapped[Optional["Scout"]] = relationship("Scout")

    __table_args__ = (
        Index("ix_family_notifications_member_state", "family_member_id", "state"),
        Index("ix_family_notifications_expires_at", "expires_at"),
    )


class NotificationPreferences(Base):
    __tablename__ = "notification_preferences"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    family_member_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )

    # Email channel
    email_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    email_urgent: Mapped[bool] = mapped_column(Boolean, default=True)
    email_important: Mapped[bool] = mapped_column(Boolean, default=True)
    email_informative: Mapped[bool] = mapped_column(Boolean, default=False)
    email_weekly_digest: Mapped[bool] = mapped_column(Boolean, default=True)

    # SMS channel
    sms_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    sms_urgent_only: Mapped[bool] = mapped_column(Boolean, default=True)

    # Push channel
    push_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    push_urgent: Mapped[bool] = mapped_column(Boolean, default=True)
    push_important: Mapped[bool] = mapped_column(Boolean, default=True)

    # Quiet hours, "HH:MM" local time
    quiet_hours_start: Mapped[str] = mapped_column(String(5), default="09:00")
    quiet_hours_end: Mapped[str] = mapped_column(String(5), default="21:00")
    weekend_schedule_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    weekend_start: Mapped[str] = mapped_column(String(5), default="10:00")
    weekend_end: Mapped[str] = mapped_column(String(5), default="20:00")
    do_not_disturb: Mapped[bool] = mapped_column(Boolean, default=False)
    vacation_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    vacation_start: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    vacation_end: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    frequency: Mapped[NotificationFrequency] = mapped_column(
        Enum(NotificationFrequency),
        default=NotificationFrequency.IMMEDIATE,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utc_now, onupdate=_utc_now
    )

    family_member: Mapped["User"] = relationship("User", back_populates="preferences")


class UploadedFile(Base):
    __tablename__ = "uploaded_files"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    file_path: Mapped[str] = mapped_column(String(500), nullable=False)
    file_url: Mapped[str] = mapped_column(String(1000), nullable=False)
    file_type: Mapped[str] = mapped_column(String(150), index=True, nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    alt_text: Mapped[str] = mapped_column(Text, default="", nullable=False)
    folder: Mapped[str] = mapped_column(String(100), index=True, default="general")
    storage_backend: Mapped[str] = mapped_column(
        String(20), index=True, nullable=False, comment="'local' or 'supabase'"
    )
    uploaded_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    uploaded_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)


class Activity(Base):
    """A calendar activity (meeting, outing, camp day)."""

    __tablename__ = "activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, index=True, nullable=False)
    # Display time as entered, e.g. "17:00" or "17:00 - 19:00"
    time: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    section: Mapped[Optional[str]] = mapped_column(String(50), index=True, nullable=True)
    created_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
