"""Tests for upstream pass-through variants."""

from unittest.mock import AsyncMock

import pytest

from autobook.core.config.booking_config import BookingConfig
from autobook.core.exceptions import NetworkError
from autobook.services.api.models import TransportResponse
from autobook.services.api.passthrough import (
    UpstreamPassthrough,
    header_variants,
    path_variants,
    search_variants,
)

API_BASE = "https://api.example/court-booking/members/api/v1"


@pytest.fixture
def config():
    """Booking configuration pointing at a test API base."""
    return BookingConfig(
        token="tok-1", location_id="loc-1", reservation_type_id=85, api_base=API_BASE + "/"
    )


@pytest.fixture
def passthrough(fake_transport, config):
    """Pass-through over the fake transport with a recorded sleep."""
    return UpstreamPassthrough(
        fake_transport, config, site_origin="https://courts.example/", sleep=AsyncMock()
    )


class TestVariantBuilders:
    """Tests for the variant lists."""

    def test_search_variants(self, config):
        """The public search comes first, then the members-API shapes."""
        variants = search_variants(config, "2025-03-01", 90)

        urls = [url for _, url, _ in variants]
        assert urls == [
            "https://api.example/court-booking/public/api/v1/locations/search",
            f"{API_BASE}/search",
            f"{API_BASE}/search",
            f"{API_BASE}/search",
            f"{API_BASE}/availability",
            f"{API_BASE}/availability",
        ]
        _, _, first = variants[0]
        assert first == {
            "reservationTypeId": 85,
            "locationId": "loc-1",
            "playingTimes[]": 90,
            "date": "2025-03-01T00:00:00.000Z",
        }
        assert variants[2][2]["playingTimes"] == 90
        assert "playingTimes" not in variants[3][2]
        assert "playingTimes[]" not in variants[3][2]
        assert variants[1][0] == (
            f"{API_BASE}/search?reservationTypeId=85&locationId=loc-1"
            "&playingTimes%5B%5D=90&date=2025-03-01T00%3A00%3A00.000Z"
        )

    def test_path_variants_without_special_characters(self):
        """A plain path only adds its endpoint moves."""
        assert path_variants("/search") == ["/search", "/availability", "/availability/search"]

    def test_path_variants_encode_like_a_browser(self):
        """Spaces and brackets are percent-encoded; URL punctuation is kept."""
        variants = path_variants("/bookings?note=a b&x[]=1")

        assert variants[1] == "/bookings?note=a%20b&x%5B%5D=1"

    def test_header_variants(self):
        """Origin/Referer combinations come first, the bare set last."""
        variants = header_variants("https://courts.example/")

        assert variants[0] == {
            "Origin": "https://courts.example",
            "Referer": "https://courts.example/",
        }
        assert variants[-1] == {}
        assert len(variants) == 6


class TestUpstreamPassthrough:
    """Tests for UpstreamPassthrough."""

    @pytest.mark.asyncio
    async def test_search_stops_at_first_success(self, passthrough, fake_transport):
        """Later variants are not requested once one answers 2xx."""
        result = await passthrough.search("2025-03-01", 90)

        assert result.ok is True
        assert result.tried.startswith("https://api.example/court-booking/public/api/v1/")
        assert fake_transport.request.await_count == 1

    @pytest.mark.asyncio
    async def test_last_failure_decides_the_outcome(self, passthrough, fake_transport):
        """A trailing network failure hides earlier upstream answers."""
        fake_transport.request.side_effect = [
            TransportResponse(status=401, body="no"),
            NetworkError("reset by peer"),
            NetworkError("reset by peer"),
        ]

        result = await passthrough.request_path("GET", "/search")

        assert result.ok is False
        assert result.response is None
        assert result.error == "reset by peer"
        assert result.tried == ["/search", "/availability", "/availability/search"]

    @pytest.mark.asyncio
    async def test_rejection_after_network_failure_is_returned(self, passthrough, fake_transport):
        """An upstream answer in the last slot is kept for the caller."""
        fake_transport.request.side_effect = [
            NetworkError("timeout"),
            TransportResponse(status=404, body="nope"),
            TransportResponse(status=404, body="still nope"),
        ]

        result = await passthrough.request_path("GET", "/search")

        assert result.response.status == 404
        assert result.response.body == "still nope"
        assert result.error is None

    @pytest.mark.asyncio
    async def test_submit_raw_defaults_to_empty_body(self, passthrough, fake_transport):
        """A raw booking without data sends an empty object."""
        await passthrough.submit_raw("https://api.example/b")

        fake_transport.request.assert_awaited_once_with(
            "POST", "https://api.example/b", json={}, headers=None, browser_headers=False
        )

    @pytest.mark.asyncio
    async def test_header_variants_pause_between_failures(self, passthrough, fake_transport):
        """Failed header sets are recorded, with a pause between them."""
        fake_transport.request.return_value = TransportResponse(status=403, body="blocked")

        result = await passthrough.submit_header_variants({"reservationTypeId": 85})

        assert result.ok is False
        assert len(result.attempts) == 6
        assert result.attempts[-1] == {
            "headers": ["Authorization", "Content-Type", "x-organisationid", "x-federationid"],
            "error": "Request failed with status code 403",
            "status": 403,
        }
        assert passthrough._sleep.await_count == 5
        passthrough._sleep.assert_awaited_with(passthrough.variant_delay)
        calls = fake_transport.request.await_args_list
        assert calls[3].kwargs["headers"] == {"Connection": "close"}
        assert all(c.kwargs["browser_headers"] is False for c in calls)

    @pytest.mark.asyncio
    async def test_header_variant_accepted(self, passthrough, fake_transport):
        """The first accepted header set ends the attempts."""
        fake_transport.request.return_value = TransportResponse(status=201, body={"guid": "g"})

        result = await passthrough.submit_header_variants({})

        assert result.ok is True
        assert result.tried_headers[-2:] == ["Origin", "Referer"]
        assert result.attempts == []
        passthrough._sleep.assert_not_awaited()
