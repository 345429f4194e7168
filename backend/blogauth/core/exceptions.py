"""Custom exception classes for the application"""

from typing import Optional, Dict, Any


class BaseAPIException(Exception):
    """Base exception for all API errors"""

    code = "INTERNAL_SERVER_ERROR"

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        code: Optional[str] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        if code:
            self.code = code
        super().__init__(self.message)


# Authentication Errors
class AuthenticationError(BaseAPIException):
    """Base authentication error"""

    code = "AUTHENTICATION_FAILED"

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, status_code=401)


class InvalidCredentialsError(AuthenticationError):
    """Unknown identifier or wrong password; the two are never distinguished"""

    code = "INVALID_CREDENTIALS"

    def __init__(self):
        super().__init__("Invalid credentials")


class AccessTokenRequiredError(AuthenticationError):
    """No bearer token on a protected request"""

    code = "ACCESS_TOKEN_REQUIRED"

    def __init__(self):
        super().__init__("Access token is required")


class TokenExpiredError(AuthenticationError):
    """JWT token has expired"""

    code = "TOKEN_EXPIRED"

    def __init__(self, message: str = "Token has expired"):
        super().__init__(message)


class AccessTokenExpiredError(TokenExpiredError):
    code = "ACCESS_TOKEN_EXPIRED"

    def __init__(self):
        super().__init__("Access token has expired. Please refresh your token")


class RefreshTokenExpiredError(TokenExpiredError):
    code = "REFRESH_TOKEN_EXPIRED"

    def __init__(self):
        super().__init__("Refresh token has expired. Please login again")


class ResetTokenExpiredError(TokenExpiredError):
    code = "RESET_TOKEN_EXPIRED"

    def __init__(self):
        super().__init__("Reset token has expired. Please request a new one")


class TokenInvalidError(AuthenticationError):
    """JWT token is invalid"""

    code = "INVALID_TOKEN"

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message)


class InvalidTokenError(TokenInvalidError):
    """Bad, malformed or non-access token presented to a protected route"""

    def __init__(self):
        super().__init__("Invalid token")


class InvalidRefreshTokenError(TokenInvalidError):
    code = "INVALID_REFRESH_TOKEN"

    def __init__(self):
        super().__init__("Invalid or expired refresh token")


class InvalidResetTokenError(TokenInvalidError):
    code = "INVALID_RESET_TOKEN"

    def __init__(self):
        super().__init__("Invalid or expired reset token")


# Resource Errors
class ResourceNotFoundError(BaseAPIException):
    """Resource not found"""

    code = "NOT_FOUND"

    def __init__(self, resource: str):
        super().__init__(f"{resource} not found", status_code=404)


class UserNotFoundError(ResourceNotFoundError):
    code = "USER_NOT_FOUND"

    def __init__(self):
        super().__init__("User")


class ResourceAlreadyExistsError(BaseAPIException):
    """Resource already exists"""

    code = "ALREADY_EXISTS"

    def __init__(self, resource: str):
        super().__init__(f"{resource} already exists", status_code=409)


class DuplicateCredentialError(ResourceAlreadyExistsError):
    """Email or phone collides with an existing record at insert time"""

    code = "DUPLICATE_CREDENTIAL"

    def __init__(self):
        super().__init__("Credential")


# Validation Errors
class ValidationError(BaseAPIException):
    """Validation error"""

    code = "VALIDATION_FAILED"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=422, details=details)


class CredentialAlreadyExistsError(ValidationError):
    """Sign-up with an email or phone that is already registered"""

    code = "USER_ALREADY_EXISTS"

    def __init__(self):
        super().__init__("User with that email or phone already exists")


# Business Logic Errors
class BusinessLogicError(BaseAPIException):
    """Business logic error"""

    code = "BAD_REQUEST"

    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class PasswordMismatchError(BusinessLogicError):
    code = "PASSWORD_MISMATCH"

    def __init__(self):
        super().__init__("Password does not match confirm password")


# System Errors
class EmailDeliveryError(BaseAPIException):
    """Email collaborator failed while sending a password reset link"""

    code = "EMAIL_SEND_FAILED"

    def __init__(self, message: str = "Failed to send email. Please try again later"):
        super().__init__(message, status_code=500)


class PasswordResetFailedError(BaseAPIException):
    code = "PASSWORD_RESET_FAILED"

    def __init__(self):
        super().__init__("Password reset failed", status_code=500)


class RateLimitExceededError(BaseAPIException):
    """Rate limit exceeded"""

    code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, message: str = "Rate limit exceeded. Please try again later."):
        super().__init__(message, status_code=429)
