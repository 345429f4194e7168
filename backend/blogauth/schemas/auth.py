"""Auth request/response schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, HttpUrl, field_validator, model_validator

from blogauth.models.user import UserStatus

NAME_PATTERN = r'^[A-Za-z\s]+$'
PHONE_PATTERN = r'^\+?[0-9]{10,15}$'
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 72


def _normalize_email(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip().lower()


def _check_password_bytes(value: str) -> str:
    # bcrypt reads at most 72 bytes, so multibyte passwords hit the limit early
    if len(value.encode("utf-8")) > PASSWORD_MAX_LENGTH:
        raise ValueError(f"Password must not exceed {PASSWORD_MAX_LENGTH} bytes")
    return value


class SignUpRequest(BaseModel):
    """Account registration schema"""
    name: str = Field(..., min_length=2, max_length=100, pattern=NAME_PATTERN)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)
    image: Optional[HttpUrl] = None

    @field_validator('email')
    @classmethod
    def email_lowercase(cls, v):
        return _normalize_email(v)

    @field_validator('password')
    @classmethod
    def password_fits_bcrypt(cls, v):
        return _check_password_bytes(v)

    @model_validator(mode='after')
    def require_identifier(self):
        """At least one of email or phone identifies the account"""
        if not self.email and not self.phone:
            raise ValueError('Either email or phone is required')
        return self


class SignInRequest(BaseModel):
    """Sign-in schema: password plus exactly one identifier"""
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LENGTH)

    @field_validator('email')
    @classmethod
    def email_lowercase(cls, v):
        return _normalize_email(v)

    @model_validator(mode='after')
    def require_single_identifier(self):
        if bool(self.email) == bool(self.phone):
            raise ValueError('Please provide your password and either email or phone number')
        return self

    @property
    def identifier(self) -> str:
        return self.email or self.phone


class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr

    @field_validator('email')
    @classmethod
    def email_lowercase(cls, v):
        return _normalize_email(v)


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)
    confirm_password: str

    @field_validator('new_password')
    @classmethod
    def password_fits_bcrypt(cls, v):
        return _check_password_bytes(v)


class PublicUser(BaseModel):
    """User profile safe to return to clients; never carries the hash"""
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    image: Optional[str] = None
    status: UserStatus
    last_login_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AuthenticationResult(BaseModel):
    """Successful sign-in"""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: PublicUser


class TokenRefreshResult(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class PasswordResetTokenResult(BaseModel):
    """Internal outcome of a reset request; the route never exposes email_sent"""
    email_sent: bool
