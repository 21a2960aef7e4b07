"""Token service: signed access/refresh pairs with embedded claims and expiry."""

import secrets
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from authcore.core.clock import Clock, from_timestamp, system_clock, to_timestamp
from authcore.core.config import settings
from authcore.core.exceptions import TokenExpiredError, TokenInvalidError

# Only these user claims are ever embedded.
USER_CLAIMS = ("sub", "email", "role")


class TokenService:
    """Issues and decodes JWT access/refresh tokens.

    Pure with respect to I/O: output depends only on the claims, the signing
    secret, and the injected clock.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        access_minutes: int = 15,
        refresh_days: int = 7,
        remember_days: int = 30,
        clock: Optional[Clock] = None,
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.access_lifetime = timedelta(minutes=access_minutes)
        self.refresh_lifetime = timedelta(days=refresh_days)
        self.remember_lifetime = timedelta(days=remember_days)
        self.clock = clock or system_clock

    def issue(self, user_claims: Dict[str, Any], extended_lifetime: bool = False) -> Dict[str, Any]:
        """Create an access/refresh pair.

        Args:
            user_claims: mapping with ``sub``, ``email`` and ``role``.
            extended_lifetime: use the "remember me" refresh lifetime.
        """
        claims = {key: user_claims[key] for key in USER_CLAIMS}
        claims["sub"] = str(claims["sub"])
        now = self.clock.now()

        access_token = self._encode(claims, "access", now, self.access_lifetime)
        refresh_lifetime = self.remember_lifetime if extended_lifetime else self.refresh_lifetime
        # jti keeps two grants issued in the same second distinct.
        refresh_token = self._encode(
            claims, "refresh", now, refresh_lifetime, jti=secrets.token_hex(16)
        )

        access_exp = jwt.get_unverified_claims(access_token)["exp"]
        expires_in = access_exp - to_timestamp(self.clock.now())

        return {
            "access_token": access_token,
            "refresh_token": refresh_token,
            "token_type": "bearer",
            "expires_in": expires_in,
        }

    def decode(self, token: str, expected_type: Optional[str] = None) -> Dict[str, Any]:
        """Verify a token and return its claims.

        Raises:
            TokenInvalidError: bad signature, malformed token, or wrong type.
            TokenExpiredError: valid signature but ``exp`` has passed.
        """
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"verify_exp": False},
            )
        except JWTError as e:
            raise TokenInvalidError("Invalid token") from e

        if expected_type is not None and payload.get("type") != expected_type:
            raise TokenInvalidError(f"Expected a {expected_type} token")

        exp = payload.get("exp")
        if not isinstance(exp, int):
            raise TokenInvalidError("Token has no expiry")
        if exp <= to_timestamp(self.clock.now()):
            raise TokenExpiredError("Token has expired")
        return payload

    def expires_at(self, token: str) -> datetime:
        """Embedded expiry of a token, read without verification."""
        try:
            exp = jwt.get_unverified_claims(token)["exp"]
        except (JWTError, KeyError) as e:
            raise TokenInvalidError("Token has no expiry") from e
        return from_timestamp(exp)

    def _encode(
        self,
        claims: Dict[str, Any],
        token_type: str,
        issued_at: datetime,
        lifetime: timedelta,
        jti: Optional[str] = None,
    ) -> str:
        to_encode = dict(claims)
        to_encode.update({
            "iat": to_timestamp(issued_at),
            "exp": to_timestamp(issued_at + lifetime),
            "type": token_type,
        })
        if jti:
            to_encode["jti"] = jti
        return jwt.encode(to_encode, self.secret, algorithm=self.algorithm)


token_service = TokenService(
    secret=settings.JWT_SECRET,
    algorithm=settings.JWT_ALGORITHM,
    access_minutes=settings.ACCESS_TOKEN_EXPIRY_MINUTES,
    refresh_days=settings.REFRESH_TOKEN_EXPIRY_DAYS,
    remember_days=settings.REFRESH_TOKEN_REMEMBER_DAYS,
)
