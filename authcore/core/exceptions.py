"""Exception classes for the auth core.

Domain failures derive from :class:`AuthError` and carry a stable ``code`` plus
the HTTP status a thin handler should answer with. Infrastructure failures
derive from :class:`StorageError` and are never recovered by the services.
"""

from datetime import datetime
from typing import Any, Dict, Optional


class AuthPlatformError(Exception):
    """Base exception for the auth core."""

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class AuthError(AuthPlatformError):
    """Base for recoverable, caller-visible auth failures."""

    code = "AUTH_ERROR"
    status_code = 400
    default_message = "Authentication error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)

    @property
    def details(self) -> Dict[str, Any]:
        return {}


class InvalidCredentials(AuthError):
    """Unknown email or wrong password; identical for both."""
    code = "INVALID_CREDENTIALS"
    status_code = 401
    default_message = "Invalid email or password"


class AccountSuspended(AuthError):
    code = "ACCOUNT_SUSPENDED"
    status_code = 423
    default_message = "Account is suspended"

    def __init__(self, reason: Optional[str] = None, until: Optional[datetime] = None):
        super().__init__()
        self.reason = reason
        self.until = until

    @property
    def details(self) -> Dict[str, Any]:
        return {
            "reason": self.reason,
            "until": self.until.isoformat() if self.until else None,
        }


class AccountDeleted(AuthError):
    code = "ACCOUNT_DELETED"
    status_code = 401
    default_message = "Account does not exist"


class AccountInactive(AuthError):
    code = "ACCOUNT_INACTIVE"
    status_code = 403
    default_message = "Account is deactivated"


class EmailAlreadyExists(AuthError):
    code = "EMAIL_ALREADY_EXISTS"
    status_code = 409
    default_message = "Email is already registered"


class UsernameAlreadyExists(AuthError):
    code = "USERNAME_ALREADY_EXISTS"
    status_code = 409
    default_message = "Username is already taken"


class TwoFactorRequired(AuthError):
    code = "TWO_FACTOR_REQUIRED"
    status_code = 401
    default_message = "Two-factor authentication code required"


class InvalidTwoFactorCode(AuthError):
    code = "INVALID_TWO_FACTOR_CODE"
    status_code = 401
    default_message = "Invalid two-factor authentication code"


class TwoFactorNotConfigured(AuthError):
    code = "TWO_FACTOR_NOT_CONFIGURED"
    status_code = 400
    default_message = "Two-factor setup has not been started"


class TwoFactorAlreadyEnabled(AuthError):
    code = "TWO_FACTOR_ALREADY_ENABLED"
    status_code = 409
    default_message = "Two-factor authentication is already enabled"


class InvalidRefreshToken(AuthError):
    code = "INVALID_REFRESH_TOKEN"
    status_code = 401
    default_message = "Invalid refresh token"


class InvalidOrExpiredToken(AuthError):
    code = "INVALID_TOKEN"
    status_code = 400
    default_message = "Invalid or expired token"


class InvalidPassword(AuthError):
    code = "INVALID_PASSWORD"
    status_code = 401
    default_message = "Current password is incorrect"


class SamePassword(AuthError):
    code = "SAME_PASSWORD"
    status_code = 400
    default_message = "New password must differ from the current password"


class UserNotFound(AuthError):
    code = "USER_NOT_FOUND"
    status_code = 404
    default_message = "User not found"


class SessionNotFound(AuthError):
    code = "SESSION_NOT_FOUND"
    status_code = 404
    default_message = "Session not found"


class InvalidStateTransition(AuthError):
    code = "INVALID_STATE_TRANSITION"
    status_code = 409
    default_message = "Account status change not allowed"

    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot change account status from '{current}' to '{target}'")
        self.current = current
        self.target = target

    @property
    def details(self) -> Dict[str, Any]:
        return {"current": self.current, "target": self.target}


class TokenError(AuthPlatformError):
    """Raised when a signed token cannot be decoded."""
    pass


class TokenInvalidError(TokenError):
    """Signature, structure or token type is wrong."""
    pass


class TokenExpiredError(TokenError):
    """Signature is valid but the embedded expiry has passed."""
    pass


class StorageError(AuthPlatformError):
    """Raised when a datastore operation fails."""
    pass


class DuplicateRecordError(StorageError):
    """Raised when an insert or update violates a unique constraint."""
    pass
