"""Initialize the database with the admin account and the group's sections."""

from authentication.auth import get_password_hash
from models.config import settings
from models.notification_types import UserRole
from repositories.database import Base, SessionLocal, engine
from repositories.db_models import User
from repositories.user_repository import UserRepository

# Create tables
Base.metadata.create_all(bind=engine)

# Sections of the group, from youngest to oldest
SECTIONS = ["castores", "manada", "tropa", "pioneros", "rutas"]


def init_db() -> bool:
    """Initialize the database with default data.

    Returns:
        True when initialization finished, False on error.
    """
    db = SessionLocal()

    try:
        if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
            print("[SKIP] ADMIN_EMAIL/ADMIN_PASSWORD not set; no admin user created")
        elif UserRepository(db).get_by_email(settings.ADMIN_EMAIL) is None:
            admin = User(
                email=settings.ADMIN_EMAIL,
                first_name="Administrador",
                last_name="Osyris",
                hashed_password=get_password_hash(settings.ADMIN_PASSWORD),
                role=UserRole.ADMIN,
            )
            db.add(admin)
            db.commit()
            print("[OK] Admin user created")
            print(f"  Email: {settings.ADMIN_EMAIL}")
            print("  Password: (from ADMIN_PASSWORD in .env)")
            print("  IMPORTANT: Change this password in production!")

        print(f"  Sections: {', '.join(SECTIONS)}")
        print("\n[OK] Database initialization complete!")
        return True

    except Exception as e:
        print(f"Error initializing database: {e}")
        db.rollback()
        return False
    finally:
        db.close()


if __name__ == "__main__":
    init_db()
