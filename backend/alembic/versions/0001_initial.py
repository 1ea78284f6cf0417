"""initial

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-05 00:00:00.000000

Creates the family portal schema (users, scouts and their family links,
family notifications, notification preferences, uploaded files and
activities) from the SQLAlchemy `Base` metadata.
"""

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create all tables declared on Base.metadata."""
    from repositories.database import Base, engine

    import repositories.db_models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def downgrade() -> None:
    """Drop all tables declared on Base.metadata.

    WARNING: This drops notifications and file records. Uploaded bytes on
    the storage backend are left untouched.
    """
    from repositories.database import Base, engine

    import repositories.db_models  # noqa: F401

    Base.metadata.drop_all(bind=engine)
