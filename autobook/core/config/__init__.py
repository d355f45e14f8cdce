"""Configuration management module."""

from .booking_config import BookingConfig, ConfigStore, normalize_keys
from .settings import AutobookSettings, get_settings, reset_settings

__all__ = [
    "BookingConfig",
    "ConfigStore",
    "normalize_keys",
    "AutobookSettings",
    "get_settings",
    "reset_settings",
]
