"""Utility helpers for Court Autobook."""

from .token import decode_token_claims, get_token_expiry, is_token_expired

__all__ = ["decode_token_claims", "get_token_expiry", "is_token_expired"]
