from datetime import timedelta

import pytest
from jose import jwt

from src.domain.exceptions import ExpiredCredentialError, InvalidCredentialError
from src.infrastructure.security.passwords import hash_password, verify_password
from src.infrastructure.security.tokens import (
    ALGORITHM,
    create_access_token,
    verify_token,
)


def test_password_hash_round_trip():
    hashed = hash_password("correct horse")

    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)


def test_token_carries_identity():
    token = create_access_token("user-1", "rider@example.com")

    identity = verify_token(token)

    assert identity == {"user_id": "user-1", "email": "rider@example.com"}


def test_expired_token_is_rejected():
    token = create_access_token(
        "user-1",
        "rider@example.com",
        expires_delta=timedelta(minutes=-5),
    )

    with pytest.raises(ExpiredCredentialError):
        verify_token(token)


def test_token_signed_with_another_secret_is_rejected():
    forged = jwt.encode({"sub": "user-1"}, "not-the-secret", algorithm=ALGORITHM)

    with pytest.raises(InvalidCredentialError):
        verify_token(forged)


def test_garbage_token_is_rejected():
    with pytest.raises(InvalidCredentialError):
        verify_token("definitely.not.a-jwt")


def test_overlong_password_never_verifies():
    hashed = hash_password("x" * 72)

    assert verify_password("x" * 72, hashed)
    assert not verify_password("x" * 73, hashed)
    assert not verify_password("é" * 40, hashed)


def test_overlong_password_cannot_be_hashed():
    with pytest.raises(ValueError):
        hash_password("é" * 40)
