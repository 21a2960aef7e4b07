"""Session repository: one row per outstanding refresh token."""

import logging
from typing import Optional

from authcore.core.clock import Clock, system_clock
from authcore.core.security import hash_token
from authcore.db.store import Page, Store
from authcore.models.session import UserSession
from authcore.services.token_service import TokenService

logger = logging.getLogger("authcore.sessions")


class SessionRepository:
    """Session store.

    Refresh tokens are looked up by SHA-256 digest; the raw value is never
    persisted. Liveness is ``is_active`` AND ``expires_at > now``.
    """

    def __init__(self, store: Store, tokens: TokenService, clock: Optional[Clock] = None):
        self.store = store
        self.tokens = tokens
        self.clock = clock or system_clock

    def create(
        self,
        user_id: int,
        refresh_token: str,
        device_info: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        is_extended: bool = False,
    ) -> UserSession:
        """Persist a grant; expiry comes from the token's embedded ``exp``."""
        return self.store.create(
            UserSession,
            user_id=user_id,
            token_hash=hash_token(refresh_token),
            device_info=device_info,
            user_agent=user_agent,
            ip_address=ip_address,
            is_active=True,
            is_extended=is_extended,
            expires_at=self.tokens.expires_at(refresh_token),
            last_access_at=self.clock.now(),
        )

    def find_active_by_token(self, refresh_token: str) -> Optional[UserSession]:
        return self.store.find_one(
            UserSession,
            token_hash=hash_token(refresh_token),
            is_active=True,
            expires_at__gt=self.clock.now(),
        )

    def find_for_user(self, user_id: int, session_id: int) -> Optional[UserSession]:
        return self.store.find_one(UserSession, id=session_id, user_id=user_id)

    def deactivate(self, session_id: int) -> bool:
        """Flip one session to inactive.

        Conditional on the row still being active, so of several concurrent
        callers exactly one gets True.
        """
        count = self.store.update(
            UserSession,
            {"is_active": False, "last_access_at": self.clock.now()},
            id=session_id,
            is_active=True,
        )
        return count == 1

    def deactivate_all_for_user(self, user_id: int) -> int:
        count = self.store.update(
            UserSession, {"is_active": False}, user_id=user_id, is_active=True
        )
        if count:
            logger.info("Deactivated %d session(s) for user %s", count, user_id)
        return count

    def list_for_user(
        self, user_id: int, active_only: bool = True, page: int = 1, page_size: int = 20
    ) -> Page:
        filters = {"user_id": user_id}
        if active_only:
            filters.update(is_active=True, expires_at__gt=self.clock.now())
        return self.store.count_and_page(
            UserSession, page=page, page_size=page_size, order_by="-last_access_at", **filters
        )

    def purge_expired(self) -> int:
        """Delete dead rows; safe to run repeatedly and concurrently."""
        removed = self.store.delete(UserSession, is_active=False)
        removed += self.store.delete(UserSession, expires_at__lte=self.clock.now())
        return removed
