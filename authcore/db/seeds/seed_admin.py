"""Seed the admin user from env vars."""

from sqlalchemy.orm import Session

from authcore.core.config import settings
from authcore.db.store import SqlStore
from authcore.models.enums import UserRole, UserStatus
from authcore.repositories.user_repository import UserRepository


def seed_admin(db: Session) -> bool:
    """Create the admin user if not already present. Returns True if created."""
    users = UserRepository(SqlStore(db))
    if users.find_by_email(settings.ADMIN_EMAIL):
        return False

    users.create(
        settings.ADMIN_EMAIL,
        settings.ADMIN_PASSWORD,
        role=UserRole.ADMIN.value,
        status=UserStatus.ACTIVE.value,
        email_verified=True,
    )
    return True
