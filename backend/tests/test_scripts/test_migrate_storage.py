"""Tests for the storage migration command."""

from unittest.mock import MagicMock, patch

import pytest

from models.exceptions import InvalidMigrationException
from scripts.migrate_storage import build_parser, main


def _report(**overrides) -> dict:
    report = {
        "source": "local",
        "target": "supabase",
        "dry_run": False,
        "total": 2,
        "migrated": 2,
        "failed": 0,
        "results": [],
    }
    report.update(overrides)
    return report


@pytest.fixture
def session() -> MagicMock:
    with patch("scripts.migrate_storage.SessionLocal") as session_factory:
        yield session_factory.return_value


@pytest.fixture
def backends():
    with patch("scripts.migrate_storage.create_storage_backend") as factory:
        factory.side_effect = lambda config, name: MagicMock(backend_name=name)
        yield factory


class TestMigrateStorageCommand:
    def test_parser_requires_known_backends(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--source", "local", "--target", "s3"])

    def test_success(self, session: MagicMock, backends: MagicMock) -> None:
        with patch(
            "scripts.migrate_storage.UploadService.migrate_files",
            return_value=_report(),
        ) as migrate:
            code = main(["--source", "local", "--target", "supabase", "--limit", "5"])

        assert code == 0
        _, source, target = migrate.call_args.args
        assert (source.backend_name, target.backend_name) == ("local", "supabase")
        assert migrate.call_args.kwargs == {"dry_run": False, "limit": 5}
        session.close.assert_called_once()

    def test_dry_run_flag(self, session: MagicMock, backends: MagicMock) -> None:
        with patch(
            "scripts.migrate_storage.UploadService.migrate_files",
            return_value=_report(dry_run=True, migrated=0),
        ) as migrate:
            code = main(["--source", "local", "--target", "supabase", "--dry-run"])

        assert code == 0
        assert migrate.call_args.kwargs["dry_run"] is True

    def test_partial_failure_exit_code(
        self, session: MagicMock, backends: MagicMock
    ) -> None:
        report = _report(
            migrated=1,
            failed=1,
            results=[{"id": 4, "filename": "x.png", "status": "error", "error": "quota"}],
        )
        with patch(
            "scripts.migrate_storage.UploadService.migrate_files", return_value=report
        ):
            assert main(["--source", "local", "--target", "supabase"]) == 1

    def test_backend_cannot_be_built(self, session: MagicMock) -> None:
        with patch(
            "scripts.migrate_storage.create_storage_backend",
            side_effect=ValueError("SUPABASE_URL and SUPABASE_SERVICE_KEY are required"),
        ):
            assert main(["--source", "local", "--target", "supabase"]) == 1
        session.close.assert_called_once()

    def test_same_backend(self, session: MagicMock, backends: MagicMock) -> None:
        with patch(
            "scripts.migrate_storage.UploadService.migrate_files",
            side_effect=InvalidMigrationException("Source and target are both 'local'"),
        ):
            assert main(["--source", "local", "--target", "local"]) == 1
