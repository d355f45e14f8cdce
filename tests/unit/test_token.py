"""Tests for bearer token inspection helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from autobook.utils.token import decode_token_claims, get_token_expiry, is_token_expired


def test_decode_token_claims(make_token):
    """Claims are decoded without verifying the signature."""
    token = make_token(email="player@example.com")

    claims = decode_token_claims(token)

    assert claims["sub"] == "member-1"
    assert claims["email"] == "player@example.com"


def test_decode_token_with_bearer_prefix(make_token):
    """A Bearer prefix is stripped before decoding."""
    claims = decode_token_claims(f"Bearer {make_token()}")

    assert claims["sub"] == "member-1"


@pytest.mark.parametrize("token", ["", "not-a-jwt", "a.b.c"])
def test_decode_invalid_token_raises(token):
    """Undecodable tokens raise ValueError."""
    with pytest.raises(ValueError):
        decode_token_claims(token)


def test_get_token_expiry(make_token):
    """The exp claim is returned as an aware UTC datetime."""
    expiry = get_token_expiry(make_token(expires_in=600))
    now = datetime.now(timezone.utc)

    assert expiry.tzinfo is not None
    assert now + timedelta(seconds=590) <= expiry <= now + timedelta(seconds=610)


def test_get_token_expiry_unknown():
    """Missing or undecodable tokens have no known expiry."""
    assert get_token_expiry("") is None
    assert get_token_expiry("garbage") is None


def test_is_token_expired(make_token):
    """Only tokens with a past exp claim are expired."""
    assert is_token_expired(make_token(expires_in=-60)) is True
    assert is_token_expired(make_token(expires_in=3600)) is False
    assert is_token_expired("garbage") is False
