"""Tests for UploadedFileRepository, ActivityRepository and preferences."""

from datetime import date, datetime, timedelta, timezone

from sqlalchemy.orm import Session

import repositories.db_models as db_models
from repositories.activity_repository import ActivityRepository
from repositories.notification_preferences_repository import (
    NotificationPreferencesRepository,
)
from repositories.uploaded_file_repository import UploadedFileRepository


def _file(name: str, file_type: str, size: int, **fields) -> db_models.UploadedFile:
    return db_models.UploadedFile(
        filename=name,
        original_name=name,
        title=name,
        file_path=f"{fields.get('folder', 'general')}/{name}",
        file_url=f"http://testserver/uploads/{name}",
        file_type=file_type,
        file_size=size,
        storage_backend=fields.pop("storage_backend", "local"),
        **fields,
    )


class TestUploadedFileRepository:
    def test_list_filters_and_order(self, db_session: Session) -> None:
        base = datetime.now(timezone.utc)
        older = _file("a.png", "image/png", 10, folder="activities", uploaded_at=base)
        newer = _file(
            "b.jpg",
            "image/jpeg",
            20,
            folder="activities",
            uploaded_at=base + timedelta(minutes=1),
        )
        doc = _file(
            "c.pdf",
            "application/pdf",
            30,
            folder="documents",
            uploaded_at=base + timedelta(seconds=30),
        )
        db_session.add_all([older, newer, doc])
        db_session.commit()
        repo = UploadedFileRepository(db_session)

        images = repo.list_files(type_prefix="image/")
        in_folder = repo.list_files(folder="documents")

        assert [f.filename for f in images] == ["b.jpg", "a.png"]
        assert [f.filename for f in in_folder] == ["c.pdf"]
        assert repo.count_files(type_prefix="image/") == 2
        assert [f.filename for f in repo.list_files(limit=1, offset=1)] == ["c.pdf"]

    def test_sizes(self, db_session: Session) -> None:
        db_session.add_all(
            [_file("a.png", "image/png", 10), _file("c.pdf", "application/pdf", 32)]
        )
        db_session.commit()
        repo = UploadedFileRepository(db_session)

        assert sorted(repo.get_type_sizes()) == [
            ("application/pdf", 32),
            ("image/png", 10),
        ]

    def test_get_by_backend(self, db_session: Session) -> None:
        db_session.add_all(
            [
                _file("a.png", "image/png", 1),
                _file("b.png", "image/png", 1),
                _file("c.png", "image/png", 1, storage_backend="supabase"),
            ]
        )
        db_session.commit()
        repo = UploadedFileRepository(db_session)

        assert [f.filename for f in repo.get_by_backend("local")] == ["a.png", "b.png"]
        assert len(repo.get_by_backend("local", limit=1)) == 1


class TestActivityRepository:
    def test_list_from_date_and_section(self, db_session: Session) -> None:
        db_session.add_all(
            [
                db_models.Activity(title="Pasado", date=date(2024, 1, 10)),
                db_models.Activity(
                    title="Manada", date=date(2024, 6, 20), section="manada"
                ),
                db_models.Activity(title="Grupo", date=date(2024, 6, 15)),
                db_models.Activity(title="Tropa", date=date(2024, 6, 16), section="tropa"),
            ]
        )
        db_session.commit()

        result = ActivityRepository(db_session).list_from(
            start=date(2024, 6, 1), section="manada"
        )

        assert [a.title for a in result] == ["Grupo", "Manada"]


class TestNotificationPreferencesRepository:
    def test_get_or_create_uses_defaults_once(
        self, db_session: Session, family_user: db_models.User
    ) -> None:
        repo = NotificationPreferencesRepository(db_session)

        first = repo.get_or_create(family_user.id)
        second = repo.get_or_create(family_user.id)

        assert first.id == second.id
        assert first.quiet_hours_start == "09:00"
        assert first.quiet_hours_end == "21:00"
        assert first.email_enabled is True
        assert first.do_not_disturb is False
        assert db_session.query(db_models.NotificationPreferences).count() == 1
