"""User model."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, func

from authcore.db.base import Base
from authcore.models.enums import UserRole, UserStatus


class User(Base):
    """Account identity, credential, and lifecycle state.

    Rows are never hard-deleted; deletion is a status change plus
    anonymization of the personal fields.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    username = Column(String(30), unique=True, nullable=True, index=True)
    hashed_password = Column(String(255), nullable=False)
    first_name = Column(String(50), nullable=True)
    last_name = Column(String(50), nullable=True)
    avatar_url = Column(String(500), nullable=True)
    role = Column(String(20), default=UserRole.USER.value, nullable=False)
    status = Column(String(20), default=UserStatus.ACTIVE.value, nullable=False, index=True)
    email_verified = Column(Boolean, default=False, nullable=False)

    two_factor_enabled = Column(Boolean, default=False, nullable=False)
    two_factor_secret = Column(String(64), nullable=True)

    suspension_reason = Column(String(255), nullable=True)
    suspended_until = Column(DateTime, nullable=True)

    # SHA-256 digests of single-use tokens, never the raw value
    password_reset_token_hash = Column(String(64), nullable=True, unique=True, index=True)
    password_reset_expires = Column(DateTime, nullable=True)
    email_verification_token_hash = Column(String(64), nullable=True, unique=True, index=True)
    email_verification_expires = Column(DateTime, nullable=True)

    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE.value

    def to_public_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "username": self.username,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "avatar_url": self.avatar_url,
            "role": self.role,
            "status": self.status,
            "email_verified": self.email_verified,
            "two_factor_enabled": self.two_factor_enabled,
            "last_login_at": self.last_login_at,
            "created_at": self.created_at,
        }
