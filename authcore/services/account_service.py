"""Account service: status transitions and profile management."""

import logging
import secrets
from datetime import datetime
from typing import Any, Dict, Optional

from authcore.core.clock import to_naive_utc
from authcore.core.exceptions import (
    AccountDeleted,
    AccountInactive,
    AccountSuspended,
    InvalidPassword,
    InvalidStateTransition,
    SamePassword,
    UserNotFound,
    UsernameAlreadyExists,
)
from authcore.db.store import Page
from authcore.models.enums import SecurityEventType, UserRole, UserStatus
from authcore.models.user import User
from authcore.repositories.session_repository import SessionRepository
from authcore.repositories.user_repository import UserRepository
from authcore.services.security_event_service import SecurityEventService

logger = logging.getLogger("authcore.accounts")

ALLOWED_TRANSITIONS = {
    UserStatus.ACTIVE: {UserStatus.INACTIVE, UserStatus.SUSPENDED, UserStatus.DELETED},
    UserStatus.INACTIVE: {UserStatus.DELETED},
    UserStatus.SUSPENDED: {UserStatus.ACTIVE, UserStatus.DELETED},
    UserStatus.DELETED: set(),
}

# Leaving any of these states must not leave a usable grant behind.
SESSION_REVOKING_STATES = {UserStatus.INACTIVE, UserStatus.SUSPENDED, UserStatus.DELETED}

PROFILE_FIELDS = ("first_name", "last_name", "username", "avatar_url")


class AccountService:
    """Governs whether a user may authenticate, plus self-service profile ops."""

    def __init__(
        self,
        users: UserRepository,
        sessions: SessionRepository,
        recorder: SecurityEventService,
    ):
        self.users = users
        self.sessions = sessions
        self.recorder = recorder

    # ---- Lookup ----

    def get_user(self, user_id: int, include_deleted: bool = True) -> User:
        user = self.users.find_by_id(user_id)
        if not user:
            raise UserNotFound()
        if not include_deleted and user.status == UserStatus.DELETED.value:
            raise UserNotFound()
        return user

    def list_users(
        self,
        page: int = 1,
        page_size: int = 20,
        status: Optional[UserStatus] = None,
        role: Optional[UserRole] = None,
    ) -> Page:
        return self.users.list(
            page=page,
            page_size=page_size,
            status=status.value if status else None,
            role=role.value if role else None,
        )

    # ---- Sign-in guards ----

    @staticmethod
    def check_not_blocked(user: User) -> None:
        """Reject suspended and deleted accounts before the password is checked."""
        if user.status == UserStatus.SUSPENDED.value:
            raise AccountSuspended(reason=user.suspension_reason, until=user.suspended_until)
        if user.status == UserStatus.DELETED.value:
            raise AccountDeleted()

    @staticmethod
    def check_active(user: User) -> None:
        """Reject any non-active account once credentials are verified."""
        AccountService.check_not_blocked(user)
        if user.status != UserStatus.ACTIVE.value:
            raise AccountInactive()

    # ---- Transitions ----

    def _transition(self, user: User, target: UserStatus, values: Dict[str, Any]) -> User:
        current = UserStatus(user.status)
        if target not in ALLOWED_TRANSITIONS[current]:
            raise InvalidStateTransition(current.value, target.value)

        # Compare-and-set on the status seen above.
        updated = self.users.update_where(
            user.id, {"status": target.value, **values}, status=current.value
        )
        if not updated:
            fresh = self.get_user(user.id)
            raise InvalidStateTransition(fresh.status, target.value)

        if target in SESSION_REVOKING_STATES:
            self.sessions.deactivate_all_for_user(user.id)
        logger.info("User %s status %s -> %s", user.id, current.value, target.value)
        return self.get_user(user.id)

    def deactivate_account(
        self, user_id: int, ip_address: Optional[str] = None, user_agent: Optional[str] = None
    ) -> bool:
        """Self-service deactivation (active -> inactive)."""
        user = self.get_user(user_id)
        self._transition(user, UserStatus.INACTIVE, {})
        self.recorder.record(
            user_id,
            SecurityEventType.ACCOUNT_LOCKED,
            ip_address=ip_address,
            user_agent=user_agent,
            details={"reason": "user_requested"},
        )
        return True

    def suspend_user(
        self,
        user_id: int,
        reason: str,
        until: Optional[datetime] = None,
        actor_id: Optional[int] = None,
    ) -> User:
        """Administrative suspension (active -> suspended)."""
        until = to_naive_utc(until)
        user = self.get_user(user_id)
        user = self._transition(
            user,
            UserStatus.SUSPENDED,
            {"suspension_reason": reason, "suspended_until": until},
        )
        self.recorder.record(
            user_id,
            SecurityEventType.ACCOUNT_SUSPENDED,
            details={"reason": reason, "until": until, "actor_id": actor_id},
        )
        return user

    def unsuspend_user(self, user_id: int, actor_id: Optional[int] = None) -> User:
        """Administrative unsuspend (suspended -> active)."""
        user = self.get_user(user_id)
        user = self._transition(
            user,
            UserStatus.ACTIVE,
            {"suspension_reason": None, "suspended_until": None},
        )
        self.recorder.record(
            user_id,
            SecurityEventType.ACCOUNT_UNSUSPENDED,
            details={"actor_id": actor_id},
        )
        return user

    def delete_account(
        self, user_id: int, ip_address: Optional[str] = None, user_agent: Optional[str] = None
    ) -> bool:
        """Terminal deletion: status change plus anonymization of personal data."""
        user = self.get_user(user_id)
        # Neither placeholder passes signup validation, so no live account can hold one.
        self._transition(
            user,
            UserStatus.DELETED,
            {
                "email": f"deleted_{user.id}@deleted.invalid",
                "username": f"deleted-{user.id}",
                "first_name": None,
                "last_name": None,
                "avatar_url": None,
                "password": secrets.token_hex(16),
                "two_factor_enabled": False,
                "two_factor_secret": None,
                "password_reset_token_hash": None,
                "password_reset_expires": None,
                "email_verification_token_hash": None,
                "email_verification_expires": None,
                "suspension_reason": None,
                "suspended_until": None,
            },
        )
        self.recorder.record(
            user_id,
            SecurityEventType.ACCOUNT_DELETED,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        return True

    # ---- Profile ----

    def update_profile(self, user_id: int, **changes) -> User:
        user = self.get_user(user_id, include_deleted=False)
        values = {
            key: value for key, value in changes.items()
            if key in PROFILE_FIELDS and value is not None
        }
        if not values:
            return user

        username = values.get("username")
        if username and username != user.username:
            existing = self.users.find_by_username(username)
            if existing and existing.id != user.id:
                raise UsernameAlreadyExists()

        user = self.users.update(user_id, **values)
        self.recorder.record(
            user_id,
            SecurityEventType.PROFILE_UPDATED,
            details={"updated_fields": sorted(values)},
        )
        return user

    def change_password(
        self,
        user_id: int,
        current_password: str,
        new_password: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> bool:
        """Replace the password and revoke every standing session."""
        user = self.get_user(user_id, include_deleted=False)
        if not self.users.verify_password(user, current_password):
            raise InvalidPassword()
        if self.users.verify_password(user, new_password):
            raise SamePassword()

        self.users.update_where(user_id, {"password": new_password})
        self.sessions.deactivate_all_for_user(user_id)
        self.recorder.record(
            user_id,
            SecurityEventType.PASSWORD_CHANGED,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        return True

    def update_role(self, user_id: int, role: UserRole, actor_id: Optional[int] = None) -> User:
        user = self.get_user(user_id, include_deleted=False)
        old_role = user.role
        user = self.users.update(user_id, role=role.value)
        self.recorder.record(
            user_id,
            SecurityEventType.ROLE_UPDATED,
            details={"old_role": old_role, "new_role": role.value, "actor_id": actor_id},
        )
        return user
