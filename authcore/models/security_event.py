"""Security event model: append-only."""

import json
from typing import Any, Dict, Optional

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, func

from authcore.db.base import Base
from authcore.models.enums import Severity


class SecurityEvent(Base):
    """Immutable audit record of an authentication-relevant event.

    This table is APPEND-ONLY: no UPDATE or DELETE operations should ever
    be performed on it (enforced at application level).
    """
    __tablename__ = "security_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    event_type = Column(String(50), nullable=False, index=True)  # e.g. "login_success"
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(500), nullable=True)
    details_json = Column(Text, nullable=True)
    severity = Column(String(10), default=Severity.LOW.value, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False, index=True)

    @property
    def details(self) -> Optional[Dict[str, Any]]:
        return json.loads(self.details_json) if self.details_json else None
