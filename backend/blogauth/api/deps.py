"""API dependencies - request gate and service wiring"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from blogauth.config import settings
from blogauth.core.database import get_db
from blogauth.core.exceptions import (
    AccessTokenExpiredError,
    AccessTokenRequiredError,
    InvalidTokenError,
    TokenExpiredError,
    TokenInvalidError,
)
from blogauth.core.security import PasswordHasher, TokenCodec, TokenType
from blogauth.services.auth_service import AuthService
from blogauth.services.credential_store import CredentialStore, SqlAlchemyCredentialStore
from blogauth.services.email_service import EmailSender, SmtpEmailSender

# HTTP Bearer token scheme; a missing header is reported by the gate itself
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthenticatedUser:
    """Identity attached to a request that passed the gate"""
    user_id: int


@lru_cache()
def get_token_codec() -> TokenCodec:
    return TokenCodec(settings.SECRET_KEY, settings.ALGORITHM)


@lru_cache()
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher(rounds=settings.BCRYPT_ROUNDS)


@lru_cache()
def get_email_sender() -> EmailSender:
    return SmtpEmailSender(
        smtp_host=settings.EMAIL_HOST or None,
        smtp_port=settings.EMAIL_PORT,
        smtp_user=settings.EMAIL_USER or None,
        smtp_password=settings.EMAIL_PASSWORD or None,
        use_tls=settings.EMAIL_USE_TLS,
        from_email=settings.EMAIL_FROM or None,
        from_name=settings.EMAIL_FROM_NAME,
        timeout=settings.EMAIL_TIMEOUT_SECONDS,
    )


def get_credential_store(db: Session = Depends(get_db)) -> CredentialStore:
    return SqlAlchemyCredentialStore(db)


def get_auth_service(
    store: CredentialStore = Depends(get_credential_store),
    codec: TokenCodec = Depends(get_token_codec),
    hasher: PasswordHasher = Depends(get_password_hasher),
    email_sender: EmailSender = Depends(get_email_sender),
) -> AuthService:
    """Build a session authority bound to this request's database session"""
    return AuthService(
        store=store,
        hasher=hasher,
        codec=codec,
        email_sender=email_sender,
        settings=settings,
    )


def authenticate_bearer(token: Optional[str], codec: TokenCodec) -> AuthenticatedUser:
    """
    Validate an access token without touching the database

    Revocation latency for access tokens is therefore their lifetime.

    Args:
        token: Raw bearer token, or None when the header is absent
        codec: Token codec

    Returns:
        Identity carried by the token

    Raises:
        AccessTokenRequiredError: No token supplied
        AccessTokenExpiredError: Token past expiry
        InvalidTokenError: Bad signature, malformed, or not an access token
    """
    if not token:
        raise AccessTokenRequiredError()

    try:
        claims = codec.verify(token)
    except TokenExpiredError as exc:
        raise AccessTokenExpiredError() from exc
    except TokenInvalidError as exc:
        raise InvalidTokenError() from exc

    if claims.type != TokenType.ACCESS:
        raise InvalidTokenError()

    return AuthenticatedUser(user_id=claims.user_id)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    codec: TokenCodec = Depends(get_token_codec),
) -> AuthenticatedUser:
    """
    Gate for protected routes

    Stores the user id on request.state for downstream handlers.
    """
    token = credentials.credentials if credentials else None
    user = authenticate_bearer(token, codec)
    request.state.user_id = user.user_id
    return user
