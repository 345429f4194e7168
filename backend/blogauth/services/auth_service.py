"""Session authority - sign-up, sign-in, sign-out, refresh and password reset."""

from __future__ import annotations

import dataclasses
import logging
from datetime import timedelta
from typing import Optional

from blogauth.config import Settings, settings as default_settings
from blogauth.core.exceptions import (
    CredentialAlreadyExistsError,
    DuplicateCredentialError,
    EmailDeliveryError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    InvalidResetTokenError,
    PasswordResetFailedError,
    RefreshTokenExpiredError,
    ResetTokenExpiredError,
    TokenExpiredError,
    TokenInvalidError,
    UserNotFoundError,
    ValidationError,
)
from blogauth.core.security import Clock, PasswordHasher, TokenClaims, TokenCodec, TokenType, utc_now
from blogauth.models.user import UserStatus
from blogauth.schemas.auth import (
    AuthenticationResult,
    PasswordResetTokenResult,
    PublicUser,
    TokenRefreshResult,
)
from blogauth.services.credential_store import CredentialStore, UserCredentialRecord
from blogauth.services.email_service import EmailSender

logger = logging.getLogger(__name__)

DEFAULT_DISPLAY_NAME = "User"


def _normalize_email(email: Optional[str]) -> Optional[str]:
    if not email:
        return None
    return email.strip().lower() or None


class AuthService:
    """Owns the per-user session lifecycle.

    The only server-side session state is the user's token_version: access
    and refresh tokens embed it, and logout bumps it so every refresh token
    issued earlier stops verifying. Access tokens are trusted until expiry.
    """

    def __init__(
        self,
        store: CredentialStore,
        hasher: PasswordHasher,
        codec: TokenCodec,
        email_sender: EmailSender,
        settings: Settings = default_settings,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._hasher = hasher
        self._codec = codec
        self._email_sender = email_sender
        self._settings = settings
        self._clock = clock

    @property
    def access_token_ttl(self) -> timedelta:
        return timedelta(minutes=self._settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    @property
    def refresh_token_ttl(self) -> timedelta:
        return timedelta(days=self._settings.REFRESH_TOKEN_EXPIRE_DAYS)

    @property
    def reset_token_ttl(self) -> timedelta:
        return timedelta(minutes=self._settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES)

    def _hash_password(self, password: str) -> str:
        try:
            return self._hasher.hash(password)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

    def _issue_access_token(self, record: UserCredentialRecord) -> str:
        return self._codec.sign(
            TokenClaims(
                user_id=record.id,
                type=TokenType.ACCESS,
                token_version=record.token_version,
                email=record.email,
            ),
            self.access_token_ttl,
        )

    def register_user(
        self,
        *,
        name: str,
        password: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        image: Optional[str] = None,
    ) -> PublicUser:
        """
        Create a signed-out account

        Raises:
            ValidationError: If neither email nor phone is given
            CredentialAlreadyExistsError: If email or phone is already registered
        """
        email = _normalize_email(email)
        phone = phone.strip() if phone else None
        if not email and not phone:
            raise ValidationError("Either email or phone is required")

        if self._store.find_by_email_or_phone(email=email, phone=phone) is not None:
            raise CredentialAlreadyExistsError()

        password_hash = self._hash_password(password)
        try:
            record = self._store.create(
                name=name,
                email=email,
                phone=phone,
                password_hash=password_hash,
                image=image,
            )
        except DuplicateCredentialError as exc:
            # Lost a race with a concurrent sign-up for the same identifier.
            raise CredentialAlreadyExistsError() from exc

        logger.info("Registered user id=%s", record.id)
        return record.to_public()

    def authenticate_user(
        self,
        *,
        password: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> AuthenticationResult:
        """
        Verify credentials and issue an access/refresh token pair

        Email wins as the lookup key when both identifiers are supplied.

        Raises:
            InvalidCredentialsError: Unknown identifier or wrong password
        """
        email = _normalize_email(email)
        record = None
        if email:
            record = self._store.find_by_email_or_phone(email=email)
        elif phone:
            record = self._store.find_by_email_or_phone(phone=phone)

        if record is None:
            # Pay for one bcrypt check so a miss looks like a mismatch.
            self._hasher.dummy_verify(password)
            logger.warning("Sign-in rejected: unknown identifier")
            raise InvalidCredentialsError()

        if not self._hasher.verify(password, record.password_hash):
            logger.warning("Sign-in rejected: bad password for user id=%s", record.id)
            raise InvalidCredentialsError()

        now = self._clock()
        self._store.update_status_and_login(record.id, UserStatus.LOGGED_IN, now)
        record = dataclasses.replace(record, status=UserStatus.LOGGED_IN, last_login_at=now)

        access_token = self._issue_access_token(record)
        refresh_token = self._codec.sign(
            TokenClaims(
                user_id=record.id,
                type=TokenType.REFRESH,
                token_version=record.token_version,
            ),
            self.refresh_token_ttl,
        )

        logger.info("User signed in: id=%s", record.id)
        return AuthenticationResult(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=int(self.access_token_ttl.total_seconds()),
            user=record.to_public(),
        )

    def logout_user(self, user_id: int) -> None:
        """
        Sign out and revoke every refresh token issued so far

        Raises:
            UserNotFoundError: If the user no longer exists
        """
        record = self._store.find_by_id(user_id)
        if record is None:
            raise UserNotFoundError()

        self._store.update_status_and_login(user_id, UserStatus.LOGGED_OUT)
        version = self._store.increment_token_version(user_id)
        logger.info("User signed out: id=%s token_version=%s", user_id, version)

    def refresh_access_token(self, refresh_token: str) -> TokenRefreshResult:
        """
        Exchange a refresh token for a new access token

        The refresh token is not rotated and stays usable until it expires or
        the user's token_version changes.

        Raises:
            RefreshTokenExpiredError: If the token is past expiry
            InvalidRefreshTokenError: Bad signature, wrong type or revoked version
            UserNotFoundError: If the embedded user no longer exists
        """
        try:
            claims = self._codec.verify(refresh_token)
        except TokenExpiredError as exc:
            raise RefreshTokenExpiredError() from exc
        except TokenInvalidError as exc:
            logger.warning("Refresh rejected: undecodable token")
            raise InvalidRefreshTokenError() from exc

        if claims.type != TokenType.REFRESH:
            logger.warning("Refresh rejected: %s token presented", claims.type.value)
            raise InvalidRefreshTokenError()

        record = self._store.find_by_id(claims.user_id)
        if record is None:
            raise UserNotFoundError()

        if claims.token_version != record.token_version:
            logger.warning("Refresh rejected: revoked token for user id=%s", record.id)
            raise InvalidRefreshTokenError()

        return TokenRefreshResult(
            access_token=self._issue_access_token(record),
            expires_in=int(self.access_token_ttl.total_seconds()),
        )

    def create_password_reset_token(self, email: str) -> PasswordResetTokenResult:
        """
        Email a password reset link

        An unknown address is not an error so callers cannot learn which
        emails are registered.

        Raises:
            EmailDeliveryError: If the email sender fails
        """
        email = _normalize_email(email)
        record = self._store.find_by_email_or_phone(email=email)
        if record is None or not record.email:
            logger.info("Password reset requested for unknown email")
            return PasswordResetTokenResult(email_sent=False)

        token = self._codec.sign(
            TokenClaims(user_id=record.id, type=TokenType.PASSWORD_RESET),
            self.reset_token_ttl,
        )
        reset_link = self._settings.get_reset_link(token)

        try:
            self._email_sender.send_password_reset(
                record.email, reset_link, record.name or DEFAULT_DISPLAY_NAME
            )
        except EmailDeliveryError:
            logger.error("Password reset email failed for user id=%s", record.id)
            raise
        except Exception as exc:
            logger.error(
                "Password reset email failed for user id=%s: %s", record.id, type(exc).__name__
            )
            raise EmailDeliveryError() from exc

        logger.info("Password reset link issued for user id=%s", record.id)
        return PasswordResetTokenResult(email_sent=True)

    def reset_password(self, token: str, new_password: str) -> None:
        """
        Set a new password from a reset token

        Raises:
            ResetTokenExpiredError: If the token is past expiry
            InvalidResetTokenError: Bad signature or not a password reset token
            UserNotFoundError: If the embedded user no longer exists
            PasswordResetFailedError: If the new hash did not persist
        """
        try:
            claims = self._codec.verify(token)
        except TokenExpiredError as exc:
            raise ResetTokenExpiredError() from exc
        except TokenInvalidError as exc:
            raise InvalidResetTokenError() from exc

        if claims.type != TokenType.PASSWORD_RESET:
            logger.warning("Password reset rejected: %s token presented", claims.type.value)
            raise InvalidResetTokenError()

        record = self._store.find_by_id(claims.user_id)
        if record is None:
            raise UserNotFoundError()

        password_hash = self._hash_password(new_password)
        self._store.update_password_hash(record.id, password_hash)

        updated = self._store.find_by_id(record.id)
        if updated is None or updated.password_hash != password_hash:
            logger.error("Password reset did not persist for user id=%s", record.id)
            raise PasswordResetFailedError()

        if self._settings.REVOKE_SESSIONS_ON_PASSWORD_RESET:
            self._store.increment_token_version(record.id)

        logger.info("Password reset for user id=%s", record.id)

    def get_profile(self, user_id: int) -> PublicUser:
        record = self._store.find_by_id(user_id)
        if record is None:
            raise UserNotFoundError()
        return record.to_public()
