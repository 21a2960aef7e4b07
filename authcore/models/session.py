"""Session model: one row per outstanding refresh-token grant."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, func

from authcore.db.base import Base


class UserSession(Base):
    """Refresh-token grant for one login on one device.

    A row with ``is_active`` false or ``expires_at`` in the past is dead and
    never authorizes a refresh.
    """
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token_hash = Column(String(64), nullable=False, unique=True, index=True)
    device_info = Column(String(500), nullable=True)
    user_agent = Column(String(500), nullable=True)
    ip_address = Column(String(45), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    is_extended = Column(Boolean, default=False, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)
    last_access_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
