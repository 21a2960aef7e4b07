"""Security event repository: insert and read only."""

import json
from datetime import datetime
from typing import Any, Dict, Optional

from authcore.core.clock import Clock, system_clock
from authcore.db.store import Page, Store
from authcore.models.security_event import SecurityEvent


class SecurityEventRepository:
    """Append-only persistence for security events."""

    def __init__(self, store: Store, clock: Optional[Clock] = None):
        self.store = store
        self.clock = clock or system_clock

    def create(
        self,
        user_id: int,
        event_type: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        severity: str = "low",
    ) -> SecurityEvent:
        return self.store.create(
            SecurityEvent,
            user_id=user_id,
            event_type=event_type,
            ip_address=ip_address,
            user_agent=user_agent[:500] if user_agent else None,
            details_json=json.dumps(details, default=str) if details else None,
            severity=severity,
            created_at=self.clock.now(),
        )

    def list_for_user(
        self,
        user_id: int,
        event_type: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> Page:
        """Events of one user, newest first, optionally narrowed by kind and time."""
        filters: Dict[str, Any] = {"user_id": user_id}
        if event_type:
            filters["event_type"] = event_type
        if since:
            filters["created_at__gte"] = since
        if until:
            filters["created_at__lt"] = until
        return self.store.count_and_page(
            SecurityEvent, page=page, page_size=page_size, order_by="-id", **filters
        )
