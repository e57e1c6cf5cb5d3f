import pytest
import app.core.security as security
import time_machine
from jose import jwt, JWTError
from datetime import datetime, timezone, timedelta


def test_hash_password_returns_non_plaintext():
    password = "Pass!WorD12@3"
    h = security.hash_password(password)
    assert isinstance(h, str)
    assert h != password


def test_verify_password_true_for_correct():
    password = "Pass!WorD12@3"
    h = security.hash_password(password)
    assert security.verify_password(password, h) is True


def test_verify_password_false_for_incorrect():
    password = "Pass!WorD12@3"
    h = security.hash_password(password)
    assert security.verify_password("Password123", h) is False


@time_machine.travel("2025-01-01 12:00:00", tick=False)
def test_create_access_token_contains_expected_claims(monkeypatch):
    monkeypatch.setattr(security, "SECRET_KEY", "fake-key")
    monkeypatch.setattr(security, "ACCESS_TOKEN_EXPIRE_MINUTES", 30)

    token = security.create_access_token(subject=1, role="ORGANIZER")
    payload = jwt.decode(token, "fake-key", algorithms=[security.ALGORITHM], audience=security.JWT_AUDIENCE)

    now = datetime.now(timezone.utc)
    assert payload["iat"] == int(now.timestamp())
    assert payload["exp"] == int((now + timedelta(minutes=30)).timestamp())
    assert payload["role"] == "ORGANIZER"
    assert payload["typ"] == "access"
    assert payload["iss"] == security.JWT_ISSUER
    assert payload["sub"] == '1'


def test_create_access_token_without_role_omits_claim(monkeypatch):
    monkeypatch.setattr(security, "SECRET_KEY", "fake-key")

    token = security.create_access_token(subject=5)
    payload = jwt.decode(token, "fake-key", algorithms=[security.ALGORITHM], audience=security.JWT_AUDIENCE)

    assert "role" not in payload
    assert payload["jti"]


def test_verify_password_false_for_malformed_hash():
    assert security.verify_password("Pass!WorD12@3", "not-an-argon2-hash") is False


def test_password_needs_rehash_for_weaker_parameters():
    from argon2 import PasswordHasher

    weak = PasswordHasher(time_cost=1, memory_cost=8, parallelism=1).hash("Pass!WorD12@3")

    assert security.password_needs_rehash(weak) is True
    assert security.password_needs_rehash(security.hash_password("Pass!WorD12@3")) is False


def test_decode_token_round_trips_claims():
    token = security.create_access_token(subject=9, role="STAFF")

    claims = security.decode_token(token)

    assert claims["sub"] == "9"
    assert claims["role"] == "STAFF"


def test_decode_token_rejects_expired_token():
    with time_machine.travel("2025-01-01 12:00:00", tick=False):
        token = security.create_access_token(subject=9)

    with time_machine.travel("2025-01-02 12:00:00", tick=False):
        with pytest.raises(JWTError):
            security.decode_token(token)


def test_decode_token_rejects_foreign_audience():
    token = jwt.encode(
        {"sub": "1", "aud": "someone-else", "iss": security.JWT_ISSUER},
        security.SECRET_KEY,
        algorithm=security.ALGORITHM
    )

    with pytest.raises(JWTError):
        security.decode_token(token)
