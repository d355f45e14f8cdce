"""Run command models for the Court Autobook control plane."""

from datetime import date as date_type
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from autobook.constants import BookingDefaults
from autobook.services.booking.window_matcher import parse_hhmm


def _validate_date(value: Optional[str]) -> Optional[str]:
    if value is None or value == "":
        return None
    date_type.fromisoformat(value)
    return value


class StartRequest(BaseModel):
    """Start a booking run (immediately, optionally repeating)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    date: Optional[str] = Field(default=None, description="YYYY-MM-DD, today if empty")
    durations: List[int] = Field(
        default_factory=lambda: list(BookingDefaults.DURATIONS),
        description="Durations in minutes, in priority order",
    )
    interval_seconds: float = Field(default=0, ge=0, description="Repeat interval, 0 for one run")
    window_start: str = Field(default=BookingDefaults.WINDOW_START, description="HH:MM")
    window_end: str = Field(default=BookingDefaults.WINDOW_END, description="HH:MM or 24:00")

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: Optional[str]) -> Optional[str]:
        """Validate date format."""
        return _validate_date(v)

    @field_validator("durations")
    @classmethod
    def validate_durations(cls, v: List[int]) -> List[int]:
        """Fall back to the default durations and reject non-positive values."""
        if not v:
            return list(BookingDefaults.DURATIONS)
        if any(duration <= 0 for duration in v):
            raise ValueError("Durations must be positive")
        return v

    @field_validator("window_start")
    @classmethod
    def validate_time_of_day(cls, v: str) -> str:
        """Validate HH:MM format."""
        if parse_hhmm(v) is None:
            raise ValueError(f"Invalid time of day: {v!r} (expected HH:MM)")
        return v.strip()

    @field_validator("window_end")
    @classmethod
    def validate_window_end(cls, v: str) -> str:
        """Validate HH:MM format; 24:00 closes the window at midnight."""
        if parse_hhmm(v, end_of_day=True) is None:
            raise ValueError(f"Invalid window end: {v!r} (expected HH:MM or 24:00)")
        return v.strip()

    @model_validator(mode="after")
    def validate_window(self) -> "StartRequest":
        """Window start must not be after its end."""
        if parse_hhmm(self.window_start) > parse_hhmm(self.window_end, end_of_day=True):
            raise ValueError("windowStart must not be after windowEnd")
        return self


class ProxySearchRequest(BaseModel):
    """Raw availability search through the configured credentials."""

    date: Optional[str] = Field(default=None, description="YYYY-MM-DD, today if empty")
    duration: int = Field(default=BookingDefaults.DURATIONS[0], gt=0, description="Minutes")

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: Optional[str]) -> Optional[str]:
        """Validate date format."""
        return _validate_date(v)
