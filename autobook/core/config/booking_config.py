"""Persisted booking configuration (auth token, upstream identifiers, API base).

The configuration is stored as a flat JSON key-value document. Reading merges
the persisted values over the defaults; a missing file is not an error.
"""

import json
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Union

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ...constants import UpstreamDefaults

MASK_PREFIX = "****"


class BookingConfig(BaseModel):
    """Upstream credentials and identifiers used by every booking run."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=True,
    )

    token: str = Field(default="", description="Bearer token for the upstream API")
    organisation_id: str = Field(default=UpstreamDefaults.ORGANISATION_ID)
    federation_id: str = Field(default=UpstreamDefaults.FEDERATION_ID)
    location_id: str = Field(default=UpstreamDefaults.LOCATION_ID)
    reservation_type_id: int = Field(default=UpstreamDefaults.RESERVATION_TYPE_ID)
    api_base: str = Field(default=UpstreamDefaults.API_BASE)

    @property
    def has_token(self) -> bool:
        """Check whether an auth token is configured."""
        return bool(self.token)

    def to_document(self) -> Dict[str, Any]:
        """Serialize to the flat camelCase document persisted on disk."""
        return self.model_dump(by_alias=True)

    def to_public_dict(self) -> Dict[str, Any]:
        """Serialize for display, masking the auth token."""
        data = self.to_document()
        if self.token:
            data["token"] = mask_token(self.token)
        return data


def mask_token(token: str) -> str:
    """Mask a token for display, keeping its last four characters."""
    return f"{MASK_PREFIX}{token[-4:]}" if len(token) > 8 else MASK_PREFIX


def normalize_keys(values: Dict[str, Any]) -> Dict[str, Any]:
    """Map camelCase document keys onto BookingConfig field names."""
    by_alias = {to_camel(name): name for name in BookingConfig.model_fields}
    return {by_alias.get(key, key): value for key, value in values.items()}


class ConfigStore:
    """Loads, merges and persists the booking configuration document."""

    def __init__(self, path: Union[str, Path]):
        """
        Initialize config store.

        Args:
            path: Location of the JSON configuration file
        """
        self.path = Path(path)
        self._lock = threading.Lock()
        self._config = self.load()

    def _read_document(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring {self.path}: expected a JSON object")
            return {}
        logger.info(f"Loaded saved config from {self.path}")
        return data

    def load(self) -> BookingConfig:
        """
        Read the persisted document and merge it over the defaults.

        Returns:
            Merged booking configuration
        """
        merged = {**BookingConfig().model_dump(), **normalize_keys(self._read_document())}
        return BookingConfig.model_validate(merged)

    def get(self) -> BookingConfig:
        """Get a snapshot of the current configuration."""
        with self._lock:
            return self._config.model_copy()

    def update(self, values: Optional[Dict[str, Any]]) -> BookingConfig:
        """
        Merge new values into the configuration and persist it.

        A write failure is logged; the in-memory configuration is still updated.

        Args:
            values: Partial configuration document (camelCase or snake_case keys)

        Returns:
            Updated configuration

        Raises:
            pydantic.ValidationError: If a value has the wrong type
        """
        with self._lock:
            current = self._config.model_dump()
            updates = normalize_keys(values or {})
            # A masked token echoed back from a display form keeps the stored token
            token = updates.get("token")
            if isinstance(token, str) and token.startswith(MASK_PREFIX):
                updates.pop("token")
            self._config = BookingConfig.model_validate({**current, **updates})
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with open(self.path, "w", encoding="utf-8") as f:
                    json.dump(self._config.to_document(), f, indent=2)
            except OSError as e:
                logger.warning(f"Failed to write {self.path}: {e}")
            return self._config.model_copy()
