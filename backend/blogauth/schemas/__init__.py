"""Pydantic schemas for API validation"""

from blogauth.schemas.auth import (
    SignUpRequest,
    SignInRequest,
    RefreshTokenRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    PublicUser,
    AuthenticationResult,
    TokenRefreshResult,
    PasswordResetTokenResult,
)
from blogauth.schemas.response import APIResponse, ErrorResponse, HealthResponse

__all__ = [
    "SignUpRequest", "SignInRequest", "RefreshTokenRequest", "ForgotPasswordRequest",
    "ResetPasswordRequest", "PublicUser", "AuthenticationResult", "TokenRefreshResult",
    "PasswordResetTokenResult",
    "APIResponse", "ErrorResponse", "HealthResponse"
]
