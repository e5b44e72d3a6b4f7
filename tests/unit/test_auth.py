"""Unit tests for authentication functions."""
from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException
from jose import jwt

from common.auth import (
    authenticate_user,
    create_access_token,
    create_user_token,
    decode_token,
    get_password_hash,
    verify_password,
)
from common.config import get_settings
from common.dependencies import get_current_actor, get_current_user
from common.models import RoleEnum, User

settings = get_settings()


def _user(password: str = "TestPass123", role: RoleEnum = RoleEnum.STUDENT) -> User:
    return User(
        id=1,
        email="test@campus.edu",
        name="Test User",
        role=role,
        hashed_password=get_password_hash(password),
    )


class TestPasswordHashing:
    """Test password hashing and verification."""

    def test_password_hash_and_verify(self):
        password = "MySecurePassword123!"
        hashed = get_password_hash(password)

        assert hashed != password
        assert verify_password(password, hashed) is True
        assert verify_password("WrongPassword", hashed) is False

    def test_same_password_different_hashes(self):
        """Salting makes every hash unique."""
        hash1 = get_password_hash("TestPassword123")
        hash2 = get_password_hash("TestPassword123")

        assert hash1 != hash2


class TestJWTTokens:
    """Test JWT token creation and decoding."""

    def test_user_token_carries_id_and_role(self):
        token = create_user_token(_user(role=RoleEnum.FACULTY))

        decoded = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        assert decoded["sub"] == "1"
        assert decoded["role"] == "faculty"
        assert decoded["exp"] > datetime.utcnow().timestamp()

    def test_decode_token_invalid(self):
        with pytest.raises(HTTPException) as exc_info:
            decode_token("invalid.token.here")

        assert exc_info.value.status_code == 401
        assert "Invalid token" in str(exc_info.value.detail)

    def test_decode_token_expired(self):
        token = create_access_token({"sub": "1"}, timedelta(hours=-1))

        with pytest.raises(HTTPException) as exc_info:
            decode_token(token)

        assert exc_info.value.status_code == 401


class TestUserAuthentication:
    """Test user authentication logic."""

    def test_authenticate_user_success(self):
        mock_db = MagicMock()
        mock_db.query.return_value.filter.return_value.first.return_value = _user("TestPass123")

        result = authenticate_user(mock_db, "test@campus.edu", "TestPass123")

        assert result is not None
        assert result.id == 1

    def test_authenticate_user_wrong_password(self):
        mock_db = MagicMock()
        mock_db.query.return_value.filter.return_value.first.return_value = _user("CorrectPassword")

        assert authenticate_user(mock_db, "test@campus.edu", "WrongPassword") is None

    def test_authenticate_user_not_found(self):
        mock_db = MagicMock()
        mock_db.query.return_value.filter.return_value.first.return_value = None

        assert authenticate_user(mock_db, "nobody@campus.edu", "anypassword") is None


class TestIdentityResolution:
    """Bearer token to workflow actor."""

    def test_token_resolves_to_actor(self):
        user = _user(role=RoleEnum.ADMIN)
        mock_db = MagicMock()
        mock_db.get.return_value = user

        resolved = get_current_user(token=create_user_token(user), db=mock_db)
        actor = get_current_actor(current_user=resolved)

        assert actor.actor_id == 1
        assert actor.actor_role is RoleEnum.ADMIN
        mock_db.get.assert_called_once_with(User, 1)

    def test_non_numeric_subject_is_rejected(self):
        token = create_access_token({"sub": "someone"})
        with pytest.raises(HTTPException) as exc_info:
            get_current_user(token=token, db=MagicMock())
        assert exc_info.value.status_code == 401

    def test_deleted_user_is_rejected(self):
        mock_db = MagicMock()
        mock_db.get.return_value = None
        with pytest.raises(HTTPException) as exc_info:
            get_current_user(token=create_access_token({"sub": "42"}), db=mock_db)
        assert exc_info.value.status_code == 401
