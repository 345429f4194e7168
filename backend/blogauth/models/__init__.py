"""Database models"""

from blogauth.models.user import User, UserStatus

__all__ = ["User", "UserStatus"]
