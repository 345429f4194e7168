"""User model"""

import enum

from sqlalchemy import Column, Integer, String, DateTime, Index
from sqlalchemy.sql import func
from blogauth.core.database import Base


class UserStatus(str, enum.Enum):
    """Descriptive session status; token validity never depends on it"""
    LOGGED_IN = "logged in"
    LOGGED_OUT = "logged out"


class User(Base):
    """Blog user; only the columns the auth core reads or writes"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=True)
    phone = Column(String(20), unique=True, nullable=True)
    image = Column(String(500), nullable=True)
    password_hash = Column(String(255), nullable=False)
    token_version = Column(Integer, default=0, nullable=False)
    status = Column(String(20), default=UserStatus.LOGGED_OUT.value, nullable=False)
    last_login_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index('idx_users_email', 'email'),
        Index('idx_users_phone', 'phone'),
    )

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', status='{self.status}')>"
