"""Unit tests for JWT token generation and validation

Tests cover:
- Token creation with valid claims
- Token decoding and validation
- Token expiration handling
- Invalid token handling
"""

from uuid import uuid4

import jwt
import pytest

from auth.jwt import create_access_token, decode_token
from config import get_settings


class TestCreateAccessToken:
    """Test JWT token creation"""

    def test_create_token_with_valid_claims(self):
        token = create_access_token(user_id=uuid4(), role="librarian", email="librarian@example.com")

        assert isinstance(token, str)
        # Token should have 3 parts (header.payload.signature)
        assert len(token.split('.')) == 3

    def test_token_contains_correct_claims(self):
        user_id = uuid4()

        token = create_access_token(user_id=user_id, role="user", email="reader@example.com")
        payload = jwt.decode(token, options={"verify_signature": False})

        assert payload['sub'] == str(user_id)
        assert payload['role'] == "user"
        assert payload['email'] == "reader@example.com"
        assert payload['exp'] - payload['iat'] == get_settings().JWT_EXPIRY_MINUTES * 60


class TestDecodeToken:
    """Test JWT token validation"""

    def test_roundtrip(self):
        user_id = uuid4()
        token = create_access_token(user_id=user_id, role="admin", email="admin@example.com")

        assert decode_token(token)['sub'] == str(user_id)

    def test_expired_token(self, monkeypatch):
        monkeypatch.setattr("auth.jwt.get_jwt_expiry_minutes", lambda: -5)
        token = create_access_token(user_id=uuid4(), role="user", email="reader@example.com")

        with pytest.raises(jwt.ExpiredSignatureError):
            decode_token(token)

    def test_token_signed_with_other_secret(self):
        forged = jwt.encode({"sub": str(uuid4()), "role": "admin"}, "attacker-secret", algorithm="HS256")

        with pytest.raises(jwt.InvalidSignatureError):
            decode_token(forged)

    def test_tampered_payload(self):
        token = create_access_token(user_id=uuid4(), role="user", email="reader@example.com")
        header, payload, signature = token.split('.')
        tampered = '.'.join([header, payload[:-2] + ("AA" if payload[-2:] != "AA" else "BB"), signature])

        with pytest.raises(jwt.InvalidTokenError):
            decode_token(tampered)

    def test_unsigned_token_rejected(self):
        unsigned = jwt.encode({"sub": str(uuid4())}, key=None, algorithm="none")

        with pytest.raises(jwt.InvalidTokenError):
            decode_token(unsigned)

    def test_garbage(self):
        with pytest.raises(jwt.DecodeError):
            decode_token("not-a-token")
