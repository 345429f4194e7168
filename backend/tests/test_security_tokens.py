from datetime import timedelta

import pytest
from jose import jwt

from blogauth.core.exceptions import TokenExpiredError, TokenInvalidError
from blogauth.core.security import TokenClaims, TokenCodec, TokenType


def test_access_token_round_trip(codec):
    claims = TokenClaims(user_id=7, type=TokenType.ACCESS, token_version=3, email="alice@example.com")
    token = codec.sign(claims, timedelta(minutes=15))

    verified = codec.verify(token)

    assert verified == claims
    assert verified.token_id
    assert (verified.expires_at - verified.issued_at) == timedelta(minutes=15)


def test_refresh_token_round_trip_without_email(codec):
    claims = TokenClaims(user_id=9, type=TokenType.REFRESH, token_version=0)
    verified = codec.verify(codec.sign(claims, timedelta(days=7)))

    assert verified.type is TokenType.REFRESH
    assert verified.token_version == 0
    assert verified.email is None


def test_each_token_gets_unique_id(codec):
    claims = TokenClaims(user_id=1, type=TokenType.ACCESS)
    first = codec.verify(codec.sign(claims, timedelta(minutes=1)))
    second = codec.verify(codec.sign(claims, timedelta(minutes=1)))
    assert first.token_id != second.token_id


def test_zero_ttl_is_already_expired(codec):
    token = codec.sign(TokenClaims(user_id=1, type=TokenType.ACCESS), timedelta(0))
    with pytest.raises(TokenExpiredError):
        codec.verify(token)


def test_negative_ttl_is_expired(codec):
    token = codec.sign(TokenClaims(user_id=1, type=TokenType.ACCESS), timedelta(seconds=-30))
    with pytest.raises(TokenExpiredError):
        codec.verify(token)


def test_token_expires_when_clock_passes_ttl(codec, clock):
    token = codec.sign(TokenClaims(user_id=1, type=TokenType.ACCESS), timedelta(minutes=15))

    clock.advance(minutes=14, seconds=59)
    assert codec.verify(token).user_id == 1

    clock.advance(seconds=1)
    with pytest.raises(TokenExpiredError):
        codec.verify(token)


def test_tampered_payload_is_invalid(codec):
    token = codec.sign(TokenClaims(user_id=1, type=TokenType.ACCESS), timedelta(minutes=5))
    other = codec.sign(TokenClaims(user_id=2, type=TokenType.ACCESS), timedelta(minutes=5))
    header, _, signature = token.split(".")
    forged = ".".join([header, other.split(".")[1], signature])

    with pytest.raises(TokenInvalidError):
        codec.verify(forged)


def test_token_signed_with_other_secret_is_invalid(codec, clock):
    other = TokenCodec("another-secret-entirely-0123456789abcdef", clock=clock)
    token = other.sign(TokenClaims(user_id=1, type=TokenType.ACCESS), timedelta(minutes=5))

    with pytest.raises(TokenInvalidError):
        codec.verify(token)


@pytest.mark.parametrize("token", ["", "not-a-jwt", "a.b.c", None])
def test_garbage_is_invalid(codec, token):
    with pytest.raises(TokenInvalidError):
        codec.verify(token)


def test_unknown_token_type_is_invalid(codec, clock, secret):
    now = int(clock().timestamp())
    token = jwt.encode({"sub": "1", "type": "session", "iat": now, "exp": now + 60}, secret, algorithm="HS256")

    with pytest.raises(TokenInvalidError):
        codec.verify(token)


def test_missing_expiry_is_invalid(codec, clock, secret):
    now = int(clock().timestamp())
    token = jwt.encode({"sub": "1", "type": "access", "iat": now}, secret, algorithm="HS256")

    with pytest.raises(TokenInvalidError):
        codec.verify(token)


def test_non_numeric_subject_is_invalid(codec, clock, secret):
    now = int(clock().timestamp())
    token = jwt.encode({"sub": "alice", "type": "access", "iat": now, "exp": now + 60}, secret, algorithm="HS256")

    with pytest.raises(TokenInvalidError):
        codec.verify(token)


def test_error_never_mentions_secret(codec, secret):
    with pytest.raises(TokenInvalidError) as exc_info:
        codec.verify("a.b.c")
    assert secret not in str(exc_info.value)
    assert secret not in exc_info.value.message


def test_codec_requires_secret():
    with pytest.raises(ValueError):
        TokenCodec("")
