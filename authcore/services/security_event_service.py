"""Security event service: best-effort, append-only audit trail."""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from authcore.core.clock import to_naive_utc
from authcore.core.exceptions import StorageError
from authcore.db.store import Page
from authcore.models.enums import SecurityEventType, Severity
from authcore.models.security_event import SecurityEvent
from authcore.repositories.security_event_repository import SecurityEventRepository

logger = logging.getLogger("authcore.security_events")

DEFAULT_SEVERITY = {
    SecurityEventType.LOGIN_FAILED: Severity.MEDIUM,
    SecurityEventType.PASSWORD_CHANGED: Severity.MEDIUM,
    SecurityEventType.ROLE_UPDATED: Severity.HIGH,
    SecurityEventType.ACCOUNT_SUSPENDED: Severity.HIGH,
    SecurityEventType.ACCOUNT_LOCKED: Severity.MEDIUM,
    SecurityEventType.ACCOUNT_DELETED: Severity.HIGH,
    SecurityEventType.TWO_FACTOR_DISABLED: Severity.MEDIUM,
}


class SecurityEventService:
    """Records security events without ever failing the caller."""

    def __init__(self, events: SecurityEventRepository):
        self.events = events

    def record(
        self,
        user_id: int,
        event_type: SecurityEventType,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[Severity] = None,
    ) -> Optional[SecurityEvent]:
        """Write a single security event.

        A storage failure is logged with its traceback and swallowed: the
        guarded operation has already happened and must not be undone by an
        audit write.
        """
        severity = severity or DEFAULT_SEVERITY.get(event_type, Severity.LOW)
        try:
            return self.events.create(
                user_id=user_id,
                event_type=event_type.value,
                ip_address=ip_address,
                user_agent=user_agent,
                details=details,
                severity=severity.value,
            )
        except StorageError:
            logger.exception(
                "Failed to record security event %s for user %s", event_type.value, user_id
            )
            return None

    def list_for_user(
        self,
        user_id: int,
        event_type: Optional[SecurityEventType] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> Page:
        """Audit trail of one user, newest first."""
        return self.events.list_for_user(
            user_id,
            event_type=event_type.value if event_type else None,
            since=to_naive_utc(since),
            until=to_naive_utc(until),
            page=page,
            page_size=page_size,
        )
