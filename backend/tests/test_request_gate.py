import asyncio
from datetime import timedelta
from types import SimpleNamespace

import pytest
from fastapi.security import HTTPAuthorizationCredentials

from blogauth.api.deps import AuthenticatedUser, authenticate_bearer, get_current_user
from blogauth.core.exceptions import (
    AccessTokenExpiredError,
    AccessTokenRequiredError,
    InvalidTokenError,
)
from blogauth.core.security import TokenClaims, TokenType


def _access_token(codec, user_id=1, ttl=timedelta(minutes=15)):
    return codec.sign(TokenClaims(user_id=user_id, type=TokenType.ACCESS, token_version=0), ttl)


@pytest.mark.parametrize("token", [None, ""])
def test_missing_token(codec, token):
    with pytest.raises(AccessTokenRequiredError) as exc_info:
        authenticate_bearer(token, codec)
    assert exc_info.value.status_code == 401


def test_valid_access_token(codec):
    assert authenticate_bearer(_access_token(codec, user_id=42), codec) == AuthenticatedUser(user_id=42)


@pytest.mark.parametrize("token_type", [TokenType.REFRESH, TokenType.PASSWORD_RESET])
def test_other_token_types_are_rejected(codec, token_type):
    token = codec.sign(TokenClaims(user_id=1, type=token_type), timedelta(minutes=15))
    with pytest.raises(InvalidTokenError):
        authenticate_bearer(token, codec)


def test_expired_access_token(codec, clock):
    token = _access_token(codec)
    clock.advance(minutes=15)

    with pytest.raises(AccessTokenExpiredError) as exc_info:
        authenticate_bearer(token, codec)
    assert exc_info.value.code == "ACCESS_TOKEN_EXPIRED"


def test_garbage_token(codec):
    with pytest.raises(InvalidTokenError) as exc_info:
        authenticate_bearer("not.a.jwt", codec)
    assert exc_info.value.code == "INVALID_TOKEN"


def test_access_token_outlives_logout(auth_service, codec):
    """The gate never consults storage, so logout only stops refreshes."""
    user = auth_service.register_user(name="Alice", email="a@x.com", password="Secret123!")
    tokens = auth_service.authenticate_user(email="a@x.com", password="Secret123!")
    auth_service.logout_user(user.id)

    assert authenticate_bearer(tokens.access_token, codec).user_id == user.id


def test_get_current_user_sets_request_state(codec):
    request = SimpleNamespace(state=SimpleNamespace())
    credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials=_access_token(codec, user_id=7))

    user = asyncio.run(get_current_user(request, credentials, codec))

    assert user.user_id == 7
    assert request.state.user_id == 7


def test_get_current_user_without_credentials(codec):
    request = SimpleNamespace(state=SimpleNamespace())
    with pytest.raises(AccessTokenRequiredError):
        asyncio.run(get_current_user(request, None, codec))
    assert not hasattr(request.state, "user_id")
