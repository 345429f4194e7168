from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from blogauth.config import Settings
from blogauth.core.database import Base
from blogauth.core.security import PasswordHasher, TokenCodec
from blogauth.services.auth_service import AuthService
from blogauth.services.credential_store import SqlAlchemyCredentialStore

TEST_SECRET = "test-secret-key-for-automation-only-0123456789"


class FrozenClock:
    """Wall clock that only moves when told to."""

    def __init__(self, start=None):
        self.now = start or datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class RecordingEmailSender:
    def __init__(self, error=None):
        self.sent = []
        self.error = error

    def send_password_reset(self, to_email, reset_link, display_name):
        if self.error is not None:
            raise self.error
        self.sent.append((to_email, reset_link, display_name))


def _make_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    return SessionLocal()


@pytest.fixture
def db():
    session = _make_session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def secret():
    return TEST_SECRET


@pytest.fixture
def failing_email_sender():
    """Build a sender that raises the given exception on every send."""
    return RecordingEmailSender


@pytest.fixture
def store(db):
    return SqlAlchemyCredentialStore(db)


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def hasher():
    # minimum bcrypt cost keeps the suite fast
    return PasswordHasher(rounds=4)


@pytest.fixture
def codec(clock):
    return TokenCodec(TEST_SECRET, "HS256", clock=clock)


@pytest.fixture
def email_sender():
    return RecordingEmailSender()


@pytest.fixture
def test_settings():
    return Settings(
        SECRET_KEY=TEST_SECRET,
        FRONTEND_URL="http://frontend.test",
        BCRYPT_ROUNDS=4,
    )


@pytest.fixture
def auth_service(store, hasher, codec, email_sender, test_settings, clock):
    return AuthService(
        store=store,
        hasher=hasher,
        codec=codec,
        email_sender=email_sender,
        settings=test_settings,
        clock=clock,
    )
