import pytest
from pydantic import ValidationError

from blogauth.schemas.auth import ResetPasswordRequest, SignUpRequest


def test_sign_up_accepts_72_byte_password():
    request = SignUpRequest(name="Alice", email="a@x.com", password="a" * 72)
    assert len(request.password) == 72


def test_sign_up_rejects_multibyte_password_over_72_bytes():
    # 40 characters, 80 bytes
    with pytest.raises(ValidationError) as exc_info:
        SignUpRequest(name="Alice", email="a@x.com", password="é" * 40)
    assert "72 bytes" in str(exc_info.value)


def test_reset_rejects_multibyte_password_over_72_bytes():
    with pytest.raises(ValidationError) as exc_info:
        ResetPasswordRequest(token="t", new_password="é" * 40, confirm_password="é" * 40)
    assert "72 bytes" in str(exc_info.value)


def test_sign_up_lowercases_email():
    assert SignUpRequest(name="Alice", email="A@X.com", password="Secret123!").email == "a@x.com"


def test_sign_up_requires_an_identifier():
    with pytest.raises(ValidationError):
        SignUpRequest(name="Alice", password="Secret123!")
