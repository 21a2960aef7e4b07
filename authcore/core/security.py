"""Password hashing, opaque token digests, and bearer-token dependencies."""

import hashlib
import secrets
from typing import Optional

import bcrypt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from authcore.core.exceptions import TokenExpiredError, TokenError
from authcore.services.token_service import TokenService, token_service

# JWT bearer scheme
security_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    pwd_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(pwd_bytes, salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    pwd_bytes = plain_password.encode("utf-8")
    hashed_bytes = hashed_password.encode("utf-8")
    try:
        return bcrypt.checkpw(pwd_bytes, hashed_bytes)
    except ValueError:
        return False


def hash_token(raw_token: str) -> str:
    """SHA-256 digest used to store refresh and single-use tokens."""
    return hashlib.sha256(raw_token.encode()).hexdigest()


def generate_opaque_token() -> str:
    """Random 256-bit secret for reset and verification links."""
    return secrets.token_hex(32)


def get_token_service() -> TokenService:
    return token_service


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> dict:
    """Decode the access token from the Authorization header."""
    if credentials is None:
        raise _unauthorized("Not authenticated")
    try:
        return tokens.decode(credentials.credentials, expected_type="access")
    except TokenExpiredError:
        raise _unauthorized("Token expired")
    except TokenError:
        raise _unauthorized("Invalid token")


async def get_current_user_id(claims: dict = Depends(get_current_claims)) -> int:
    """Extract user_id from the JWT Bearer token."""
    user_id = claims.get("sub")
    if user_id is None:
        raise _unauthorized("Invalid token payload")
    return int(user_id)


class RequireRole:
    """Dependency that checks if the user has a required role level."""

    ROLE_LEVELS = {
        "user": 10,
        "moderator": 50,
        "admin": 100,
    }

    def __init__(self, min_role: str):
        self.min_level = self.ROLE_LEVELS.get(min_role, 0)

    async def __call__(self, claims: dict = Depends(get_current_claims)) -> dict:
        user_role = claims.get("role", "user")
        user_level = self.ROLE_LEVELS.get(user_role, 0)
        if user_level < self.min_level:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{user_role}' insufficient. Requires level {self.min_level}+.",
            )
        return claims


# Convenience dependency factories
require_moderator = RequireRole("moderator")
require_admin = RequireRole("admin")
