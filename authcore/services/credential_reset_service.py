"""Credential reset service: single-use, expiring email and password tokens."""

import logging
from datetime import timedelta
from typing import Optional

from authcore.core.clock import Clock, system_clock
from authcore.core.exceptions import InvalidOrExpiredToken, UserNotFound
from authcore.core.security import generate_opaque_token, hash_token
from authcore.models.enums import SecurityEventType, UserStatus
from authcore.models.user import User
from authcore.repositories.session_repository import SessionRepository
from authcore.repositories.user_repository import UserRepository
from authcore.services.security_event_service import SecurityEventService

logger = logging.getLogger("authcore.credentials")


class TokenDelivery:
    """Outbound channel for raw single-use tokens.

    The default implementation only logs that a token went out; a mailer
    subclass overrides both methods.
    """

    def send_password_reset(self, user: User, token: str) -> None:
        logger.info("Password reset token issued for user %s", user.id)

    def send_email_verification(self, user: User, token: str) -> None:
        logger.info("Email verification token issued for user %s", user.id)


class CredentialResetService:
    """Issues and consumes password-reset and email-verification tokens.

    Only the SHA-256 digest of a token is stored. Consumption is a single
    conditional update that applies the effect and clears the token, so a
    token can succeed at most once.
    """

    def __init__(
        self,
        users: UserRepository,
        sessions: SessionRepository,
        recorder: SecurityEventService,
        delivery: Optional[TokenDelivery] = None,
        clock: Optional[Clock] = None,
        reset_minutes: int = 60,
        verification_hours: int = 24,
    ):
        self.users = users
        self.sessions = sessions
        self.recorder = recorder
        self.delivery = delivery or TokenDelivery()
        self.clock = clock or system_clock
        self.reset_lifetime = timedelta(minutes=reset_minutes)
        self.verification_lifetime = timedelta(hours=verification_hours)

    # ---- Email verification ----

    def issue_email_verification(self, user: User) -> str:
        token = generate_opaque_token()
        self.users.update_where(
            user.id,
            {
                "email_verification_token_hash": hash_token(token),
                "email_verification_expires": self.clock.now() + self.verification_lifetime,
            },
        )
        self.delivery.send_email_verification(user, token)
        return token

    def resend_email_verification(self, user_id: int) -> bool:
        """Issue a fresh verification token; False if already verified."""
        user = self.users.find_by_id(user_id)
        if not user or user.status == UserStatus.DELETED.value:
            raise UserNotFound()
        if user.email_verified:
            return False
        self.issue_email_verification(user)
        return True

    def verify_email(self, token: str) -> bool:
        digest = hash_token(token)
        user = self.users.find_by_verification_token_hash(digest)
        if not user:
            raise InvalidOrExpiredToken()

        consumed = self.users.update_where(
            user.id,
            {
                "email_verified": True,
                "email_verification_token_hash": None,
                "email_verification_expires": None,
            },
            email_verification_token_hash=digest,
            email_verification_expires__gt=self.clock.now(),
        )
        if not consumed:
            self._clear(user.id, "email_verification", digest)
            raise InvalidOrExpiredToken()

        self.recorder.record(user.id, SecurityEventType.EMAIL_VERIFIED)
        return True

    # ---- Password reset ----

    def request_password_reset(self, email: str) -> None:
        """Issue a reset token if the account exists.

        Returns the same thing whether or not it does.
        """
        user = self.users.find_by_email(email)
        if not user or user.status == UserStatus.DELETED.value:
            return

        token = generate_opaque_token()
        self.users.update_where(
            user.id,
            {
                "password_reset_token_hash": hash_token(token),
                "password_reset_expires": self.clock.now() + self.reset_lifetime,
            },
        )
        self.delivery.send_password_reset(user, token)

    def confirm_password_reset(self, token: str, new_password: str) -> bool:
        digest = hash_token(token)
        user = self.users.find_by_reset_token_hash(digest)
        if not user:
            raise InvalidOrExpiredToken()

        consumed = self.users.update_where(
            user.id,
            {
                "password": new_password,
                "password_reset_token_hash": None,
                "password_reset_expires": None,
            },
            password_reset_token_hash=digest,
            password_reset_expires__gt=self.clock.now(),
        )
        if not consumed:
            self._clear(user.id, "password_reset", digest)
            raise InvalidOrExpiredToken()

        self.sessions.deactivate_all_for_user(user.id)
        self.recorder.record(
            user.id,
            SecurityEventType.PASSWORD_CHANGED,
            details={"method": "reset"},
        )
        return True

    def _clear(self, user_id: int, prefix: str, digest: str) -> None:
        """Drop an expired token so it can never match again."""
        self.users.update_where(
            user_id,
            {f"{prefix}_token_hash": None, f"{prefix}_expires": None},
            **{f"{prefix}_token_hash": digest},
        )
