"""Tests for the booking orchestrator."""

from unittest.mock import AsyncMock

import pytest

from autobook.core.exceptions import NetworkError, UpstreamRejectedError
from autobook.services.api.models import TransportResponse
from autobook.services.booking.booking_orchestrator import BookingOrchestrator
from autobook.services.booking.booking_submitter import BookingSubmitter
from autobook.services.booking.models import BookingWindow

DATE = "2025-03-01"
WINDOW = BookingWindow("18:30", "22:00")


def searches_by_duration(documents):
    """Search side effect returning (or raising) a document per duration."""

    def search(date, duration):
        result = documents.get(duration, {"slots": []})
        if isinstance(result, Exception):
            raise result
        return result

    return search


@pytest.fixture
def orchestrator(fake_transport):
    """Orchestrator over the fake transport."""
    submitter = BookingSubmitter(
        fake_transport, reservation_type_id=85, booking_url_base="https://courts.example/b/"
    )
    return BookingOrchestrator(fake_transport, submitter)


class TestRun:
    """Tests for BookingOrchestrator.run."""

    @pytest.mark.asyncio
    async def test_no_slots_reports_zero_counts(self, orchestrator, fake_transport):
        """A duration without slots reports found 0 / candidates 0."""
        result = await orchestrator.run([90], DATE, WINDOW)

        assert result.booked is False
        assert [d.to_dict() for d in result.details] == [
            {"duration": 90, "found": 0, "candidates": 0}
        ]
        fake_transport.submit_booking.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_books_on_later_duration_and_stops(self, orchestrator, fake_transport, make_slot):
        """Only 90 has a fitting slot: book it and search no further durations."""
        fake_transport.search_availability.side_effect = searches_by_duration(
            {
                60: {"slots": [make_slot(1, "2025-03-01T17:00")]},
                90: {"slots": [make_slot(2, "2025-03-01T19:00")]},
                120: {"slots": [make_slot(3, "2025-03-01T18:30")]},
            }
        )

        result = await orchestrator.run([60, 90, 120], DATE, WINDOW)

        assert result.booked is True
        assert result.duration == 90
        assert result.slot.inventory_id == "2"
        assert result.booking_url == "https://courts.example/b/guid-1"
        searched = [c.args[1] for c in fake_transport.search_availability.await_args_list]
        assert searched == [60, 90]
        assert [d.to_dict() for d in result.details] == [
            {"duration": 60, "found": 1, "candidates": 0},
            {"duration": 90, "found": 1, "candidates": 1},
        ]

    @pytest.mark.asyncio
    async def test_candidates_tried_in_order_until_success(
        self, orchestrator, fake_transport, make_slot
    ):
        """A rejected candidate moves on to the next one."""
        fake_transport.search_availability.return_value = {
            "slots": [make_slot(1, "2025-03-01T18:30"), make_slot(2, "2025-03-01T19:00")]
        }
        fake_transport.submit_booking.side_effect = [
            TransportResponse(status=409, body={"message": "taken"}),
            TransportResponse(status=201, body={"guid": "second"}),
        ]

        result = await orchestrator.run([90], DATE, WINDOW)

        assert result.booked is True
        assert result.slot.inventory_id == "2"
        assert result.reference == "second"
        submitted = [
            c.args[0]["reservations"][0]["inventoryItemId"]
            for c in fake_transport.submit_booking.await_args_list
        ]
        assert submitted == [1, 2]

    @pytest.mark.asyncio
    async def test_exhaustion_records_last_failure(self, orchestrator, fake_transport, make_slot):
        """When every candidate fails the run is not booked."""
        fake_transport.search_availability.return_value = {
            "slots": [make_slot(1, "2025-03-01T18:30")]
        }
        fake_transport.submit_booking.side_effect = NetworkError("timeout")

        result = await orchestrator.run([90], DATE, WINDOW)

        assert result.booked is False
        assert result.details[0].candidates == 1
        assert result.details[0].error == "timeout"
        assert result.to_dict() == {"booked": False, "details": [result.details[0].to_dict()]}

    @pytest.mark.asyncio
    async def test_rejected_candidate_keeps_upstream_answer(
        self, orchestrator, fake_transport, make_slot
    ):
        """A rejected submission reports the upstream status and body."""
        fake_transport.search_availability.return_value = {
            "slots": [make_slot(1, "2025-03-01T18:30")]
        }
        fake_transport.submit_booking.return_value = TransportResponse(
            status=409, body={"message": "taken"}
        )

        result = await orchestrator.run([90], DATE, WINDOW)

        report = result.details[0].to_dict()
        assert report["status"] == 409
        assert report["body"] == {"message": "taken"}
        assert report["error"] == "Upstream rejected booking with status 409"
        assert report["attempts"] == [
            {
                "inventoryItemId": "1",
                "start": "2025-03-01T18:30",
                "reason": "upstream_rejected",
                "status": 409,
                "body": {"message": "taken"},
                "error": "Upstream rejected booking with status 409",
            }
        ]

    @pytest.mark.asyncio
    async def test_every_rejected_candidate_is_reported(
        self, orchestrator, fake_transport, make_slot
    ):
        """Earlier rejections are kept when a later candidate fails too."""
        fake_transport.search_availability.return_value = {
            "slots": [make_slot(1, "2025-03-01T18:30"), make_slot(2, "2025-03-01T19:00")]
        }
        fake_transport.submit_booking.side_effect = [
            TransportResponse(status=409, body={"message": "taken"}),
            NetworkError("reset by peer"),
        ]

        result = await orchestrator.run([90], DATE, WINDOW)

        report = result.details[0]
        assert [a["inventoryItemId"] for a in report.attempts] == ["1", "2"]
        assert report.attempts[0]["status"] == 409
        assert report.attempts[1] == {
            "inventoryItemId": "2",
            "start": "2025-03-01T19:00",
            "reason": "network_failure",
            "error": "reset by peer",
        }
        assert report.status == 409
        assert report.error == "reset by peer"

    @pytest.mark.asyncio
    async def test_unexpected_submit_error_moves_to_next_candidate(
        self, orchestrator, fake_transport, make_slot
    ):
        """An exception outside the transport contract fails only that candidate."""
        fake_transport.search_availability.return_value = {
            "slots": [make_slot(1, "2025-03-01T18:30"), make_slot(2, "2025-03-01T19:00")]
        }
        fake_transport.submit_booking.side_effect = [
            RuntimeError("boom"),
            TransportResponse(status=201, body={"guid": "second"}),
        ]

        result = await orchestrator.run([90], DATE, WINDOW)

        assert result.booked is True
        assert result.slot.inventory_id == "2"
        assert result.details[0].attempts[0]["error"] == "boom"

    @pytest.mark.asyncio
    async def test_unavailable_slots_are_skipped(self, orchestrator, fake_transport, make_slot):
        """Slots flagged available: false are never submitted."""
        fake_transport.search_availability.return_value = {
            "slots": [make_slot(1, "2025-03-01T18:30", available=False)]
        }

        result = await orchestrator.run([90], DATE, WINDOW)

        assert result.booked is False
        assert result.details[0].found == 1
        assert result.details[0].candidates == 0
        fake_transport.submit_booking.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_search_rejection_continues_with_next_duration(
        self, orchestrator, fake_transport, make_slot
    ):
        """A rejected search is recorded and the next duration is tried."""
        fake_transport.search_availability.side_effect = searches_by_duration(
            {
                60: UpstreamRejectedError(500, {"error": "boom"}),
                90: {"slots": [make_slot(2, "2025-03-01T19:00")]},
            }
        )

        result = await orchestrator.run([60, 90], DATE, WINDOW)

        assert result.booked is True
        assert result.details[0].to_dict() == {
            "duration": 60,
            "status": 500,
            "body": {"error": "boom"},
        }

    @pytest.mark.asyncio
    async def test_search_network_failure_is_recorded(self, orchestrator, fake_transport):
        """A network failure during search is recorded per duration."""
        fake_transport.search_availability.side_effect = NetworkError("DNS failure")

        result = await orchestrator.run([60, 90], DATE, WINDOW)

        assert result.booked is False
        assert [d.error for d in result.details] == ["DNS failure", "DNS failure"]

    @pytest.mark.asyncio
    async def test_unexpected_search_error_continues_with_next_duration(
        self, orchestrator, fake_transport, make_slot
    ):
        """An undecodable search body is recorded and the next duration is tried."""
        fake_transport.search_availability.side_effect = searches_by_duration(
            {
                60: UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte"),
                90: {"slots": [make_slot(2, "2025-03-01T19:00")]},
            }
        )

        result = await orchestrator.run([60, 90], DATE, WINDOW)

        assert result.booked is True
        assert result.duration == 90
        assert result.details[0].duration == 60
        assert "can't decode byte 0xff" in result.details[0].error

    @pytest.mark.asyncio
    async def test_search_error_without_message_uses_exception_name(
        self, orchestrator, fake_transport
    ):
        """Exceptions without text are reported by class name."""
        fake_transport.search_availability.side_effect = RuntimeError()

        result = await orchestrator.run([90], DATE, WINDOW)

        assert result.booked is False
        assert result.details[0].to_dict() == {"duration": 90, "error": "RuntimeError"}

    @pytest.mark.asyncio
    async def test_error_shaped_document_is_a_search_failure(self, orchestrator, fake_transport):
        """A document with ok: false is treated as a structured failure."""
        fake_transport.search_availability.return_value = {
            "ok": False,
            "status": 401,
            "data": {"message": "Unauthorized"},
        }

        result = await orchestrator.run([90], DATE, WINDOW)

        assert result.details[0].to_dict() == {
            "duration": 90,
            "status": 401,
            "body": {"message": "Unauthorized"},
        }

    @pytest.mark.asyncio
    async def test_pacing_between_candidates(self, fake_transport, make_slot):
        """The pacing delay is applied between candidates, not before the first."""
        fake_transport.search_availability.return_value = {
            "slots": [
                make_slot(1, "2025-03-01T18:30"),
                make_slot(2, "2025-03-01T19:00"),
                make_slot(3, "2025-03-01T19:30"),
            ]
        }
        fake_transport.submit_booking.return_value = TransportResponse(status=409, body={})
        sleep = AsyncMock()
        submitter = BookingSubmitter(fake_transport, reservation_type_id=85)
        orchestrator = BookingOrchestrator(
            fake_transport, submitter, pacing_seconds=0.5, sleep=sleep
        )

        await orchestrator.run([90], DATE, WINDOW)

        assert sleep.await_count == 2
        sleep.assert_awaited_with(0.5)


def test_select_candidates_keeps_discovery_order(orchestrator, make_slot):
    """Filtering preserves the order slots were discovered in."""
    from autobook.services.booking.slot_extractor import extract_slots

    slots = extract_slots(
        {
            "slots": [
                make_slot(3, "2025-03-01T20:00"),
                make_slot(1, "2025-03-01T21:00"),
                make_slot(2, "2025-03-01T18:30"),
            ]
        }
    )

    selected = orchestrator.select_candidates(slots, WINDOW, 60)

    assert [s.inventory_id for s in selected] == ["3", "1", "2"]
