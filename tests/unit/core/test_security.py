"""
Unit Tests for Security Module
Tests for: password hashing, JWT tokens
"""
import pytest
from datetime import datetime, timedelta
from jose import jwt

from portal.core.security import (
    verify_password,
    get_password_hash,
    create_access_token,
    decode_token,
)
from portal.core.config import settings
from portal.core.exceptions import InvalidTokenError


class TestPasswordHashing:
    """Test password hashing functions"""

    def test_hash_password_returns_different_value(self):
        """Test that hashing returns a different value than input"""
        password = "testpassword123"
        hashed = get_password_hash(password)

        assert hashed != password
        assert len(hashed) > 0

    def test_hash_password_different_each_time(self):
        """Test that hashing same password returns different hashes"""
        password = "testpassword123"

        # Bcrypt generates different salts
        assert get_password_hash(password) != get_password_hash(password)

    def test_verify_password_correct(self):
        hashed = get_password_hash("testpassword123")

        assert verify_password("testpassword123", hashed) is True

    def test_verify_password_incorrect(self):
        hashed = get_password_hash("testpassword123")

        assert verify_password("wrongpassword", hashed) is False

    def test_hash_long_password_truncated(self):
        """Passwords beyond the 72 byte bcrypt limit still verify"""
        long_password = "a" * 100
        hashed = get_password_hash(long_password)

        assert verify_password(long_password, hashed) is True
        assert verify_password("a" * 72, hashed) is True

    def test_hash_unicode_password(self):
        password = "pässwörd-ñ-😀"
        hashed = get_password_hash(password)

        assert verify_password(password, hashed) is True


class TestAccessToken:
    """Test access token creation"""

    def test_create_access_token(self):
        token = create_access_token({"sub": "user-1"})

        assert isinstance(token, str)
        assert token.count(".") == 2

    def test_access_token_has_type(self):
        token = create_access_token({"sub": "user-1"})
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])

        assert payload["type"] == "access"

    def test_access_token_includes_data(self):
        token = create_access_token({"sub": "user-1", "email": "a@college.edu", "role": "STUDENT"})
        payload = decode_token(token)

        assert payload["sub"] == "user-1"
        assert payload["email"] == "a@college.edu"
        assert payload["role"] == "STUDENT"

    def test_create_access_token_with_expiry(self):
        token = create_access_token({"sub": "user-1"}, expires_delta=timedelta(minutes=5))
        payload = decode_token(token)

        expires = datetime.utcfromtimestamp(payload["exp"])
        assert timedelta(minutes=4) < expires - datetime.utcnow() <= timedelta(minutes=5)


class TestDecodeToken:
    """Test token decoding failures"""

    def test_decode_invalid_token(self):
        with pytest.raises(InvalidTokenError):
            decode_token("not.a.token")

    def test_decode_expired_token(self):
        token = create_access_token({"sub": "user-1"}, expires_delta=timedelta(seconds=-1))

        with pytest.raises(InvalidTokenError):
            decode_token(token)

    def test_decode_token_wrong_secret(self):
        token = jwt.encode({"sub": "user-1"}, "some-other-secret", algorithm=settings.JWT_ALGORITHM)

        with pytest.raises(InvalidTokenError) as exc_info:
            decode_token(token)

        assert exc_info.value.status_code == 401
        assert exc_info.value.code == "INVALID_TOKEN"
