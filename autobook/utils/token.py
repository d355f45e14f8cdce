"""Inspection helpers for upstream bearer tokens (JWT)."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import jwt
from jwt.exceptions import InvalidTokenError


def decode_token_claims(token: str) -> Dict[str, Any]:
    """
    Decode the payload of a JWT without verifying its signature.

    The upstream service issues the token; we only read it to show who it
    belongs to and when it expires.

    Args:
        token: Raw JWT (with or without a "Bearer " prefix)

    Returns:
        Decoded claims

    Raises:
        ValueError: If the token is not a decodable JWT
    """
    raw = token.strip()
    if raw.lower().startswith("bearer "):
        raw = raw[7:].strip()
    try:
        claims = jwt.decode(raw, options={"verify_signature": False})
    except InvalidTokenError as e:
        raise ValueError(f"Invalid token: {e}") from e
    return dict(claims)


def get_token_expiry(token: str) -> Optional[datetime]:
    """
    Get the expiry time of a JWT.

    Args:
        token: Raw JWT

    Returns:
        Expiry as an aware UTC datetime, or None if unknown or undecodable
    """
    if not token:
        return None
    try:
        claims = decode_token_claims(token)
    except ValueError:
        return None
    exp = claims.get("exp")
    if not isinstance(exp, (int, float)):
        return None
    return datetime.fromtimestamp(exp, tz=timezone.utc)


def is_token_expired(token: str, now: Optional[datetime] = None) -> bool:
    """Check whether a JWT carries an ``exp`` claim in the past."""
    expiry = get_token_expiry(token)
    if expiry is None:
        return False
    return expiry <= (now or datetime.now(timezone.utc))
