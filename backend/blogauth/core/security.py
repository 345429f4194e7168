"""Security utilities - password hashing and signed tokens"""

import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional

import bcrypt
from jose import JWTError, jwt

from blogauth.core.exceptions import TokenExpiredError, TokenInvalidError

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default wall clock, timezone-aware UTC"""
    return datetime.now(timezone.utc)


class PasswordHasher:
    """bcrypt hashing with constant-time verification"""

    # bcrypt only looks at the first 72 bytes of input
    MAX_PASSWORD_BYTES = 72

    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds
        # a lookup miss must cost exactly one verify, including the first
        self._dummy_hash = self.hash(secrets.token_urlsafe(16))

    def hash(self, password: str) -> str:
        """
        Hash a password using bcrypt

        Args:
            password: Plain text password

        Returns:
            str: Salted bcrypt hash

        Raises:
            ValueError: If password is empty, not a string or too long
        """
        if not isinstance(password, str) or not password:
            raise ValueError("Password must be a non-empty string")
        encoded = password.encode("utf-8")
        if len(encoded) > self.MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must not exceed {self.MAX_PASSWORD_BYTES} bytes")
        return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self._rounds)).decode("utf-8")

    def verify(self, password: str, hashed_password: str) -> bool:
        """
        Verify a password against its hash

        Args:
            password: Plain text password
            hashed_password: Stored bcrypt hash

        Returns:
            bool: True if password matches; False on mismatch or unusable input
        """
        if not isinstance(password, str) or not isinstance(hashed_password, str):
            return False
        if not hashed_password:
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
        except ValueError:
            # malformed stored hash, or over-long input on newer bcrypt releases
            return False

    def dummy_verify(self, password: str) -> bool:
        """Spend one verification on a throw-away hash; always False."""
        self.verify(password, self._dummy_hash)
        return False


class TokenType(str, Enum):
    """Purpose of a signed token"""
    ACCESS = "access"
    REFRESH = "refresh"
    PASSWORD_RESET = "password_reset"


@dataclass
class TokenClaims:
    """Claims carried by a signed token.

    issued_at, expires_at and token_id are filled in by TokenCodec.verify and
    do not take part in equality.
    """
    user_id: int
    type: TokenType
    token_version: Optional[int] = None
    email: Optional[str] = None
    issued_at: Optional[datetime] = field(default=None, compare=False)
    expires_at: Optional[datetime] = field(default=None, compare=False)
    token_id: Optional[str] = field(default=None, compare=False)


class TokenCodec:
    """Sign and verify JWTs with a server-held secret.

    Expiry is checked against the injected clock rather than by the JWT
    library so tests can run on a fixed time.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", clock: Clock = utc_now) -> None:
        if not secret_key:
            raise ValueError("Token signing secret is not configured")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._clock = clock

    def _now_ts(self) -> int:
        return int(self._clock().timestamp())

    def sign(self, claims: TokenClaims, ttl: timedelta) -> str:
        """
        Create a signed token

        Args:
            claims: Claims to embed
            ttl: Lifetime from now; zero or negative yields an already expired token

        Returns:
            str: Encoded JWT
        """
        issued_at = self._now_ts()
        payload: Dict[str, Any] = {
            "sub": str(claims.user_id),
            "type": TokenType(claims.type).value,
            "iat": issued_at,
            "exp": issued_at + int(ttl.total_seconds()),
            "jti": secrets.token_urlsafe(16),
        }
        if claims.token_version is not None:
            payload["ver"] = claims.token_version
        if claims.email:
            payload["email"] = claims.email

        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Decode and verify a token

        Args:
            token: JWT string

        Returns:
            TokenClaims: Verified claims

        Raises:
            TokenExpiredError: If the clock has reached the embedded expiry
            TokenInvalidError: If the signature or payload is bad
        """
        if not isinstance(token, str) or not token:
            raise TokenInvalidError()

        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            raise TokenInvalidError() from exc

        exp = payload.get("exp")
        if not isinstance(exp, int) or isinstance(exp, bool):
            raise TokenInvalidError()
        if self._now_ts() >= exp:
            raise TokenExpiredError()

        return self._to_claims(payload)

    @staticmethod
    def _to_claims(payload: Dict[str, Any]) -> TokenClaims:
        try:
            user_id = int(payload["sub"])
            token_type = TokenType(payload["type"])
        except (KeyError, TypeError, ValueError) as exc:
            raise TokenInvalidError() from exc

        version = payload.get("ver")
        if version is not None and (not isinstance(version, int) or isinstance(version, bool)):
            raise TokenInvalidError()

        email = payload.get("email")
        if email is not None and not isinstance(email, str):
            raise TokenInvalidError()

        iat = payload.get("iat")
        return TokenClaims(
            user_id=user_id,
            type=token_type,
            token_version=version,
            email=email,
            issued_at=datetime.fromtimestamp(iat, tz=timezone.utc) if isinstance(iat, int) else None,
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            token_id=payload.get("jti"),
        )
