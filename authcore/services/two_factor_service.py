"""Two-factor authentication service (TOTP)."""

import logging
from typing import Any, Dict, Optional

import pyotp

from authcore.core.clock import Clock, system_clock, to_timestamp
from authcore.core.exceptions import (
    InvalidPassword,
    InvalidTwoFactorCode,
    TwoFactorAlreadyEnabled,
    TwoFactorNotConfigured,
    UserNotFound,
)
from authcore.models.enums import SecurityEventType, UserStatus
from authcore.models.user import User
from authcore.repositories.user_repository import UserRepository
from authcore.services.security_event_service import SecurityEventService

logger = logging.getLogger("authcore.two_factor")


class TwoFactorService:
    """TOTP enrolment and verification."""

    def __init__(
        self,
        users: UserRepository,
        recorder: SecurityEventService,
        issuer: str = "authcore",
        clock: Optional[Clock] = None,
    ):
        self.users = users
        self.recorder = recorder
        self.issuer = issuer
        self.clock = clock or system_clock

    def _get_user(self, user_id: int) -> User:
        user = self.users.find_by_id(user_id)
        if not user or user.status == UserStatus.DELETED.value:
            raise UserNotFound()
        return user

    def verify(self, user: User, code: Optional[str]) -> bool:
        """Check a code against the user's secret, allowing one step of drift."""
        if not code or not user.two_factor_secret:
            return False
        totp = pyotp.TOTP(user.two_factor_secret)
        return totp.verify(code, for_time=to_timestamp(self.clock.now()), valid_window=1)

    def begin_setup(self, user_id: int) -> Dict[str, Any]:
        """Generate and store a new secret; 2FA stays off until confirmed.

        Returns:
            Dict with the base32 secret and a provisioning URI for QR codes.
        """
        user = self._get_user(user_id)
        if user.two_factor_enabled:
            raise TwoFactorAlreadyEnabled()

        secret = pyotp.random_base32()
        self.users.update_where(user_id, {"two_factor_secret": secret})
        uri = pyotp.TOTP(secret).provisioning_uri(name=user.email, issuer_name=self.issuer)
        return {"secret": secret, "provisioning_uri": uri}

    def confirm_setup(self, user_id: int, code: str) -> bool:
        user = self._get_user(user_id)
        if user.two_factor_enabled:
            raise TwoFactorAlreadyEnabled()
        if not user.two_factor_secret:
            raise TwoFactorNotConfigured()
        if not self.verify(user, code):
            raise InvalidTwoFactorCode()

        self.users.update_where(user_id, {"two_factor_enabled": True})
        self.recorder.record(user_id, SecurityEventType.TWO_FACTOR_ENABLED)
        logger.info("2FA enabled for user %s", user_id)
        return True

    def disable(self, user_id: int, password: str) -> bool:
        user = self._get_user(user_id)
        if not user.two_factor_enabled:
            raise TwoFactorNotConfigured("Two-factor authentication is not enabled")
        if not self.users.verify_password(user, password):
            raise InvalidPassword()

        self.users.update_where(
            user_id, {"two_factor_enabled": False, "two_factor_secret": None}
        )
        self.recorder.record(user_id, SecurityEventType.TWO_FACTOR_DISABLED)
        logger.info("2FA disabled for user %s", user_id)
        return True
