"""Authentication routes"""

from fastapi import APIRouter, Depends, status, Request

from blogauth.config import settings
from blogauth.schemas.auth import (
    SignUpRequest,
    SignInRequest,
    RefreshTokenRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    PublicUser,
)
from blogauth.schemas.response import APIResponse
from blogauth.services.auth_service import AuthService
from blogauth.services.rate_limiter import rate_limiter
from blogauth.api.deps import AuthenticatedUser, get_auth_service, get_current_user
from blogauth.core.exceptions import PasswordMismatchError, RateLimitExceededError

router = APIRouter()


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


@router.post("/register", response_model=APIResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: SignUpRequest,
    service: AuthService = Depends(get_auth_service),
):
    """
    Sign-up endpoint - create an account; does not sign the user in
    """
    user = service.register_user(
        name=body.name,
        email=body.email,
        phone=body.phone,
        password=body.password,
        image=str(body.image) if body.image else None,
    )
    return APIResponse(message="Account created successfully", data=user.model_dump(mode="json"))


@router.post("/login", response_model=APIResponse, status_code=status.HTTP_200_OK)
def login(
    credentials: SignInRequest,
    request: Request,
    service: AuthService = Depends(get_auth_service),
):
    """
    Login endpoint - authenticate user and return access and refresh tokens

    Args:
        credentials: Email or phone, and password

    Returns:
        Token pair and public profile
    """
    client_ip = _client_ip(request)
    user_key = credentials.identifier.strip().lower()
    per_min_key = f"login:min:{client_ip}:{user_key}"
    per_hour_key = f"login:hour:{client_ip}:{user_key}"
    if not rate_limiter.allow(per_min_key, settings.LOGIN_RATE_LIMIT_PER_MINUTE, 60):
        raise RateLimitExceededError("Too many login attempts. Please wait a minute.")
    if not rate_limiter.allow(per_hour_key, settings.LOGIN_RATE_LIMIT_PER_HOUR, 3600):
        raise RateLimitExceededError("Too many login attempts. Please try again later.")

    result = service.authenticate_user(
        email=credentials.email,
        phone=credentials.phone,
        password=credentials.password,
    )
    return APIResponse(message="Signed in successfully", data=result.model_dump(mode="json"))


@router.post("/logout", response_model=APIResponse, status_code=status.HTTP_200_OK)
def logout(
    current_user: AuthenticatedUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    """
    Logout endpoint - revokes every refresh token issued to the caller
    """
    service.logout_user(current_user.user_id)
    return APIResponse(message="Logged out successfully")


@router.post("/refresh", response_model=APIResponse, status_code=status.HTTP_200_OK)
def refresh_token(
    body: RefreshTokenRequest,
    request: Request,
    service: AuthService = Depends(get_auth_service),
):
    """
    Refresh access token; the refresh token itself is not rotated
    """
    per_min_key = f"refresh:min:{_client_ip(request)}"
    if not rate_limiter.allow(per_min_key, settings.RATE_LIMIT_PER_MINUTE, 60):
        raise RateLimitExceededError("Too many refresh attempts. Slow down.")

    result = service.refresh_access_token(body.refresh_token)
    return APIResponse(message="Access token refreshed successfully", data=result.model_dump(mode="json"))


@router.post("/forgot-password", response_model=APIResponse, status_code=status.HTTP_200_OK)
def forgot_password(
    body: ForgotPasswordRequest,
    request: Request,
    service: AuthService = Depends(get_auth_service),
):
    """
    Request a password reset email

    The response is identical whether or not the address is registered.
    """
    per_hour_key = f"forgot:hour:{_client_ip(request)}"
    if not rate_limiter.allow(per_hour_key, settings.PASSWORD_RESET_RATE_LIMIT_PER_HOUR, 3600):
        raise RateLimitExceededError("Too many password reset requests. Please try again later.")

    service.create_password_reset_token(body.email)
    return APIResponse(message="Password reset token has been sent to your email")


@router.post("/reset-password", response_model=APIResponse, status_code=status.HTTP_200_OK)
def reset_password(
    body: ResetPasswordRequest,
    service: AuthService = Depends(get_auth_service),
):
    """Set a new password using the emailed reset token"""
    if body.new_password != body.confirm_password:
        raise PasswordMismatchError()

    service.reset_password(body.token, body.new_password)
    return APIResponse(message="Password has been reset successfully")


@router.get("/me", response_model=PublicUser)
def get_current_user_info(
    current_user: AuthenticatedUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    """
    Get current user information
    """
    return service.get_profile(current_user.user_id)
