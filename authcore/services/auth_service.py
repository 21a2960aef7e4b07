"""Auth service: signup, signin, token rotation, signout and reset flows."""

import logging
from typing import Any, Dict, Optional

from authcore.core.clock import Clock, system_clock
from authcore.core.exceptions import (
    DuplicateRecordError,
    EmailAlreadyExists,
    InvalidCredentials,
    InvalidRefreshToken,
    InvalidTwoFactorCode,
    SessionNotFound,
    TwoFactorRequired,
    UsernameAlreadyExists,
)
from authcore.db.store import Page
from authcore.models.enums import SecurityEventType, UserRole, UserStatus
from authcore.models.user import User
from authcore.repositories.session_repository import SessionRepository
from authcore.repositories.user_repository import UserRepository
from authcore.services.account_service import AccountService
from authcore.services.credential_reset_service import CredentialResetService
from authcore.services.security_event_service import SecurityEventService
from authcore.services.token_service import TokenService
from authcore.services.two_factor_service import TwoFactorService

logger = logging.getLogger("authcore.auth")


class AuthService:
    """Composes the credential store, token issuer, session store, account
    guards and reset flows into the operations the HTTP layer calls.

    Every successful authentication returns::

        {"access_token", "refresh_token", "token_type", "expires_in", "user"}
    """

    def __init__(
        self,
        users: UserRepository,
        sessions: SessionRepository,
        tokens: TokenService,
        accounts: AccountService,
        resets: CredentialResetService,
        two_factor: TwoFactorService,
        recorder: SecurityEventService,
        clock: Optional[Clock] = None,
    ):
        self.users = users
        self.sessions = sessions
        self.tokens = tokens
        self.accounts = accounts
        self.resets = resets
        self.two_factor = two_factor
        self.recorder = recorder
        self.clock = clock or system_clock

    @staticmethod
    def _claims(user: User) -> Dict[str, Any]:
        return {"sub": user.id, "email": user.email, "role": user.role}

    def _grant(
        self,
        user: User,
        extended: bool,
        device_info: Optional[str],
        ip_address: Optional[str],
        user_agent: Optional[str],
    ) -> Dict[str, Any]:
        """Issue a token pair and persist its session."""
        tokens = self.tokens.issue(self._claims(user), extended_lifetime=extended)
        self.sessions.create(
            user.id,
            tokens["refresh_token"],
            device_info=device_info,
            ip_address=ip_address,
            user_agent=user_agent,
            is_extended=extended,
        )
        return {**tokens, "user": user.to_public_dict()}

    # ---- Signup / signin ----

    def signup(
        self,
        email: str,
        password: str,
        username: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Create an account and sign it in.

        Raises:
            EmailAlreadyExists: the email is registered.
            UsernameAlreadyExists: the username is taken.
        """
        if self.users.find_by_email(email):
            raise EmailAlreadyExists()
        if username and self.users.find_by_username(username):
            raise UsernameAlreadyExists()

        try:
            user = self.users.create(
                email,
                password,
                username=username,
                first_name=first_name,
                last_name=last_name,
                role=UserRole.USER.value,
                status=UserStatus.ACTIVE.value,
                email_verified=False,
            )
        except DuplicateRecordError:
            # Lost a race with a concurrent signup.
            if self.users.find_by_email(email):
                raise EmailAlreadyExists()
            if username and self.users.find_by_username(username):
                raise UsernameAlreadyExists()
            raise

        logger.info("User %s signed up", user.id)
        self.resets.issue_email_verification(user)
        return self._grant(user, False, user_agent, ip_address, user_agent)

    def signin(
        self,
        email: str,
        password: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        remember_me: bool = False,
        two_factor_code: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Authenticate with email and password (and TOTP when enabled)."""
        user = self.users.find_by_email(email)
        if not user:
            raise InvalidCredentials()

        self.accounts.check_not_blocked(user)

        if not self.users.verify_password(user, password):
            self.recorder.record(
                user.id,
                SecurityEventType.LOGIN_FAILED,
                ip_address=ip_address,
                user_agent=user_agent,
                details={"reason": "invalid_password"},
            )
            raise InvalidCredentials()

        self.accounts.check_active(user)

        if user.two_factor_enabled:
            if not two_factor_code:
                raise TwoFactorRequired()
            if not self.two_factor.verify(user, two_factor_code):
                self.recorder.record(
                    user.id,
                    SecurityEventType.LOGIN_FAILED,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    details={"reason": "invalid_two_factor_code"},
                )
                raise InvalidTwoFactorCode()

        self.users.update_where(user.id, {"last_login_at": self.clock.now()})
        result = self._grant(user, remember_me, user_agent, ip_address, user_agent)
        self.recorder.record(
            user.id,
            SecurityEventType.LOGIN_SUCCESS,
            ip_address=ip_address,
            user_agent=user_agent,
            details={"remember_me": remember_me},
        )
        return result

    # ---- Rotation / signout ----

    def refresh(
        self,
        refresh_token: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Rotate a refresh token.

        The presented session is deactivated before anything is issued. The
        deactivation is conditional on the row still being active, so when two
        requests race on one token only the first gets a new pair.
        """
        session = self.sessions.find_active_by_token(refresh_token)
        if not session:
            raise InvalidRefreshToken()

        user = self.users.find_by_id(session.user_id)
        if not user or not user.is_active:
            self.sessions.deactivate(session.id)
            raise InvalidRefreshToken("Account is no longer active")

        device_info = session.device_info
        extended = session.is_extended
        ip_address = ip_address or session.ip_address
        user_agent = user_agent or session.user_agent

        if not self.sessions.deactivate(session.id):
            logger.warning("Refresh token for session %s was already rotated", session.id)
            raise InvalidRefreshToken()

        return self._grant(user, extended, device_info, ip_address, user_agent)

    def signout(
        self,
        refresh_token: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> bool:
        """End one session. False when the token matches no live session."""
        session = self.sessions.find_active_by_token(refresh_token)
        if not session:
            return False
        user_id = session.user_id
        if not self.sessions.deactivate(session.id):
            return False
        self.recorder.record(
            user_id, SecurityEventType.LOGOUT, ip_address=ip_address, user_agent=user_agent
        )
        return True

    def signout_all(
        self,
        user_id: int,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> int:
        """End every session of a user; returns how many were live."""
        count = self.sessions.deactivate_all_for_user(user_id)
        self.recorder.record(
            user_id,
            SecurityEventType.LOGOUT,
            ip_address=ip_address,
            user_agent=user_agent,
            details={"all_devices": True, "sessions": count},
        )
        return count

    def list_sessions(
        self, user_id: int, active_only: bool = True, page: int = 1, page_size: int = 20
    ) -> Page:
        return self.sessions.list_for_user(
            user_id, active_only=active_only, page=page, page_size=page_size
        )

    def revoke_session(self, user_id: int, session_id: int) -> bool:
        """End one of the caller's own sessions by id."""
        session = self.sessions.find_for_user(user_id, session_id)
        if not session:
            raise SessionNotFound()
        return self.sessions.deactivate(session_id)

    # ---- Single-use tokens ----

    def request_password_reset(self, email: str) -> bool:
        self.resets.request_password_reset(email)
        return True

    def confirm_password_reset(self, token: str, new_password: str) -> bool:
        return self.resets.confirm_password_reset(token, new_password)

    def verify_email(self, token: str) -> bool:
        return self.resets.verify_email(token)

    def resend_email_verification(self, user_id: int) -> bool:
        return self.resets.resend_email_verification(user_id)
