"""Unit tests for JWT handler."""

from datetime import timedelta
from unittest.mock import patch

import pytest
from jose import jwt

from src.rb_common.errors import InvalidTokenError
from src.rb_gateway.auth.jwt_handler import (
    create_access_token,
    create_refresh_token,
    decode_token,
)


def test_access_token_carries_role() -> None:
    token = create_access_token("user-123", "DELIVERY")
    payload = jwt.get_unverified_claims(token)
    assert payload["sub"] == "user-123"
    assert payload["role"] == "DELIVERY"
    assert payload["type"] == "access"


def test_refresh_tokens_are_unique() -> None:
    a = create_refresh_token("user-123")
    b = create_refresh_token("user-123")
    assert a != b
    assert jwt.get_unverified_claims(a)["type"] == "refresh"


def test_decode_valid_access_token() -> None:
    token = create_access_token("user-abc", "ADMIN")
    payload = decode_token(token, expected_type="access")
    assert payload["sub"] == "user-abc"


def test_refresh_token_used_as_access_raises_error() -> None:
    token = create_refresh_token("user-abc")
    with pytest.raises(InvalidTokenError):
        decode_token(token, expected_type="access")


def test_access_token_used_as_refresh_raises_error() -> None:
    token = create_access_token("user-abc", "ADMIN")
    with pytest.raises(InvalidTokenError):
        decode_token(token, expected_type="refresh")


def test_expired_access_token_raises_error() -> None:
    with patch("src.rb_gateway.auth.jwt_handler.ACCESS_EXPIRE", timedelta(seconds=-1)):
        token = create_access_token("user-abc", "COMMERCIAL")
    with pytest.raises(InvalidTokenError):
        decode_token(token, expected_type="access")


def test_tampered_token_raises_error() -> None:
    token = create_access_token("user-abc", "ADMIN")
    tampered = token[:-4] + "xxxx"
    with pytest.raises(InvalidTokenError) as exc:
        decode_token(tampered, expected_type="access")
    assert exc.value.http_status == 401
