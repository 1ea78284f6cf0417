#!/usr/bin/env python
"""
Copy uploaded files between storage backends and repoint their records.

Can be run via:
- Manual: python scripts/migrate_storage.py --source local --target supabase
- Preview: python scripts/migrate_storage.py --source local --target supabase --dry-run

Options:
    --source NAME: Backend the files are stored on now (local|supabase)
    --target NAME: Backend to copy them to (local|supabase)
    --dry-run: List the files that would be migrated without copying them
    --limit N: Process at most N files
"""

import argparse
import sys
from pathlib import Path

# Add the backend directory to the path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from loguru import logger
from sqlalchemy.orm import Session

from models.config import settings
from models.exceptions import DomainException
from repositories.database import SessionLocal
from services.storage import STORAGE_BACKENDS, create_storage_backend
from services.upload_service import UploadService


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Migrate uploaded files between storage backends"
    )
    parser.add_argument("--source", required=True, choices=STORAGE_BACKENDS)
    parser.add_argument("--target", required=True, choices=STORAGE_BACKENDS)
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be migrated without copying anything",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum number of files to process",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the storage migration. Returns the process exit code."""
    args = build_parser().parse_args(argv)

    db: Session = SessionLocal()
    try:
        source = create_storage_backend(settings, args.source)
        target = create_storage_backend(settings, args.target)
        report = UploadService.migrate_files(
            db, source, target, dry_run=args.dry_run, limit=args.limit
        )
    except ValueError as e:
        logger.error(f"Cannot build storage backend: {e}")
        return 1
    except DomainException as e:
        logger.error(f"Storage migration failed: {e.message}")
        return 1
    finally:
        db.close()

    prefix = "[DRY RUN] " if args.dry_run else ""
    logger.info(
        f"{prefix}{report['source']} -> {report['target']}: "
        f"{report['total']} files, {report['migrated']} migrated, "
        f"{report['failed']} failed"
    )
    for result in report["results"]:
        if result["status"] == "error":
            logger.warning(f"  file {result['id']}: {result['error']}")

    return 1 if report["failed"] else 0


if __name__ == "__main__":
    sys.exit(main())
