"""Pass-through request models for the Court Autobook control plane."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProxyRequest(BaseModel):
    """Arbitrary upstream request, by path under the API base or by full URL."""

    method: str = Field(default="GET", description="HTTP method")
    path: Optional[str] = Field(default=None, description="Path relative to the API base")
    full_url: Optional[str] = Field(default=None, alias="fullUrl", description="Absolute URL")
    params: Optional[Dict[str, Any]] = None
    data: Any = None
    headers: Optional[Dict[str, str]] = None

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "method": "GET",
                "path": "/search?reservationTypeId=85&playingTimes[]=90",
            }
        },
    )


class RawBookingRequest(BaseModel):
    """Booking body POSTed verbatim to a full URL."""

    full_url: Optional[str] = Field(default=None, alias="fullUrl", description="Absolute URL")
    headers: Optional[Dict[str, str]] = None
    data: Any = None

    model_config = ConfigDict(populate_by_name=True)
