"""Credential store - the persistence surface the auth core depends on."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from blogauth.core.exceptions import DuplicateCredentialError
from blogauth.models.user import User, UserStatus
from blogauth.schemas.auth import PublicUser


@dataclass
class UserCredentialRecord:
    """Auth-relevant slice of a user, detached from any ORM session."""

    id: int
    name: str
    email: Optional[str]
    phone: Optional[str]
    image: Optional[str]
    password_hash: str
    token_version: int
    status: UserStatus
    last_login_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, user: User) -> "UserCredentialRecord":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            phone=user.phone,
            image=user.image,
            password_hash=user.password_hash,
            token_version=user.token_version or 0,
            status=UserStatus(user.status),
            last_login_at=user.last_login_at,
        )

    def to_public(self) -> PublicUser:
        return PublicUser(
            id=self.id,
            name=self.name,
            email=self.email,
            phone=self.phone,
            image=self.image,
            status=self.status,
            last_login_at=self.last_login_at,
        )


class CredentialStore(Protocol):
    """Operations the session authority needs from user storage.

    Every mutation touches a single row and is expected to be atomic at the
    storage layer.
    """

    def find_by_email_or_phone(
        self, email: Optional[str] = None, phone: Optional[str] = None
    ) -> Optional[UserCredentialRecord]: ...

    def find_by_id(self, user_id: int) -> Optional[UserCredentialRecord]: ...

    def create(
        self,
        *,
        name: str,
        email: Optional[str],
        phone: Optional[str],
        password_hash: str,
        image: Optional[str] = None,
    ) -> UserCredentialRecord: ...

    def update_status_and_login(
        self, user_id: int, status: UserStatus, last_login_at: Optional[datetime] = None
    ) -> None: ...

    def increment_token_version(self, user_id: int) -> int: ...

    def update_password_hash(self, user_id: int, password_hash: str) -> None: ...


class SqlAlchemyCredentialStore:
    """CredentialStore over the users table."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def _get(self, user_id: int) -> Optional[User]:
        return self._db.query(User).filter(User.id == user_id).first()

    def find_by_email_or_phone(
        self, email: Optional[str] = None, phone: Optional[str] = None
    ) -> Optional[UserCredentialRecord]:
        conditions = []
        if email:
            conditions.append(User.email == email)
        if phone:
            conditions.append(User.phone == phone)
        if not conditions:
            return None

        user = self._db.query(User).filter(or_(*conditions)).order_by(User.id).first()
        return UserCredentialRecord.from_model(user) if user else None

    def find_by_id(self, user_id: int) -> Optional[UserCredentialRecord]:
        user = self._get(user_id)
        return UserCredentialRecord.from_model(user) if user else None

    def create(
        self,
        *,
        name: str,
        email: Optional[str],
        phone: Optional[str],
        password_hash: str,
        image: Optional[str] = None,
    ) -> UserCredentialRecord:
        user = User(
            name=name,
            email=email,
            phone=phone,
            image=image,
            password_hash=password_hash,
            token_version=0,
            status=UserStatus.LOGGED_OUT.value,
        )
        self._db.add(user)
        try:
            self._db.commit()
        except IntegrityError as exc:
            self._db.rollback()
            raise DuplicateCredentialError() from exc
        self._db.refresh(user)
        return UserCredentialRecord.from_model(user)

    def update_status_and_login(
        self, user_id: int, status: UserStatus, last_login_at: Optional[datetime] = None
    ) -> None:
        values = {User.status: UserStatus(status).value}
        if last_login_at is not None:
            values[User.last_login_at] = last_login_at
        self._db.query(User).filter(User.id == user_id).update(values, synchronize_session=False)
        self._db.commit()

    def increment_token_version(self, user_id: int) -> int:
        # Single UPDATE so concurrent increments never lose a bump.
        self._db.query(User).filter(User.id == user_id).update(
            {User.token_version: User.token_version + 1}, synchronize_session=False
        )
        self._db.commit()
        version = self._db.query(User.token_version).filter(User.id == user_id).scalar()
        return version or 0

    def update_password_hash(self, user_id: int, password_hash: str) -> None:
        self._db.query(User).filter(User.id == user_id).update(
            {User.password_hash: password_hash}, synchronize_session=False
        )
        self._db.commit()
