"""Unit tests for auth/tokens.py -- hashing, JWT mint/verify, credential check."""

from datetime import datetime, timedelta, timezone

from jose import jwt

import auth.tokens as tokens
from auth.models import User
from auth.tokens import (
    authenticate_user,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from core.config import get_settings


def _expired_token(user_id: str) -> str:
    past = datetime.now(timezone.utc) - timedelta(minutes=5)
    return jwt.encode({"id": user_id, "exp": past}, get_settings().jwt_secret, algorithm="HS256")


class TestPasswordHashing:
    def test_hash_is_salted_and_not_plaintext(self):
        first = hash_password("secret1")
        second = hash_password("secret1")
        assert "secret1" not in first
        assert first != second
        assert first.startswith("$2")

    def test_verify(self):
        hashed = hash_password("secret1")
        assert verify_password("secret1", hashed) is True
        assert verify_password("secret2", hashed) is False

    def test_verify_against_garbage_hash(self):
        assert verify_password("secret1", "not-a-bcrypt-hash") is False


class TestAccessToken:
    def test_round_trip_carries_user_id_and_expiry(self):
        payload = decode_access_token(create_access_token("user-123"))
        assert payload is not None
        assert payload["id"] == "user-123"
        lifetime = payload["exp"] - payload["iat"]
        assert lifetime == get_settings().token_expire_seconds

    def test_custom_expiry(self):
        payload = decode_access_token(create_access_token("user-123", expire_seconds=60))
        assert payload["exp"] - payload["iat"] == 60

    def test_expired_token_rejected(self):
        assert decode_access_token(_expired_token("user-123")) is None

    def test_tampered_signature_rejected(self):
        token = create_access_token("user-123")
        head, body, sig = token.split(".")
        flipped = ("A" if sig[0] != "A" else "B") + sig[1:]
        assert decode_access_token(f"{head}.{body}.{flipped}") is None

    def test_wrong_secret_rejected(self):
        token = jwt.encode({"id": "user-123"}, "x" * 40, algorithm="HS256")
        assert decode_access_token(token) is None

    def test_malformed_token_rejected(self):
        assert decode_access_token("not.a.jwt") is None
        assert decode_access_token("") is None

    def test_missing_id_claim_rejected(self):
        token = jwt.encode(
            {"sub": "user-123", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            get_settings().jwt_secret,
            algorithm="HS256",
        )
        assert decode_access_token(token) is None


class TestAuthenticateUser:
    def test_success(self, store):
        store.create_user(User(name="Al", email="a@b.com", password_hash=hash_password("secret1")))
        user = authenticate_user(store, "a@b.com", "secret1")
        assert user is not None
        assert user.email == "a@b.com"

    def test_wrong_password(self, store):
        store.create_user(User(name="Al", email="a@b.com", password_hash=hash_password("secret1")))
        assert authenticate_user(store, "a@b.com", "wrong-password") is None

    def test_unknown_email_still_runs_bcrypt(self, store, monkeypatch):
        calls = []
        real_verify = tokens.verify_password
        monkeypatch.setattr(tokens, "verify_password", lambda p, h: calls.append(h) or real_verify(p, h))
        assert authenticate_user(store, "nobody@b.com", "secret1") is None
        assert calls == [tokens._DUMMY_HASH]
