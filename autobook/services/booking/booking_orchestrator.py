"""Booking orchestrator - drives search, filter and submit across durations."""

import asyncio
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Sequence

from loguru import logger

from ...constants import Intervals
from ...core.exceptions import AutobookError, UpstreamRejectedError
from ..api.models import BookingTransport
from .booking_submitter import BookingSubmitter
from .models import (
    BookingOutcome,
    BookingWindow,
    CandidateSlot,
    DurationReport,
    ErrorKind,
    RunResult,
)
from .slot_extractor import extract_slots
from .window_matcher import slot_fits_window


def _search_failure(document: Any) -> Optional[DurationReport]:
    """Detect an error-shaped search document ({"ok": false, ...})."""
    if isinstance(document, Mapping) and document.get("ok") is False:
        return DurationReport(
            duration=0,
            status=document.get("status"),
            body=document.get("data", document.get("body")),
            error=document.get("error"),
        )
    return None


class BookingOrchestrator:
    """
    Tries to book one slot for a date.

    Durations are processed in order; within a duration, candidates are
    submitted one at a time in discovery order. The first successful
    submission ends the run. There is never more than one outstanding
    search or submission: concurrent attempts could double-book a court.
    """

    def __init__(
        self,
        transport: BookingTransport,
        submitter: BookingSubmitter,
        pacing_seconds: float = Intervals.BOOKING_PACING,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize booking orchestrator.

        Args:
            transport: Upstream transport used for searches
            submitter: Submitter used for single-attempt bookings
            pacing_seconds: Delay between consecutive candidate submissions
            sleep: Awaitable sleep function
        """
        self.transport = transport
        self.submitter = submitter
        self.pacing_seconds = pacing_seconds
        self._sleep = sleep

    def select_candidates(
        self, slots: Sequence[CandidateSlot], window: BookingWindow, duration: int
    ) -> List[CandidateSlot]:
        """
        Keep the slots that fit the window for a duration.

        Slots explicitly flagged unavailable are dropped as well.

        Args:
            slots: Extracted slots in discovery order
            window: Daily booking window
            duration: Requested duration in minutes

        Returns:
            Fitting slots, order preserved
        """
        return [
            slot
            for slot in slots
            if slot.available is not False
            and slot_fits_window(slot.start, window.start_of_day, window.end_of_day, duration)
        ]

    async def _search(self, date: str, duration: int) -> Any:
        document = await self.transport.search_availability(date, duration)
        return document

    async def run(
        self, durations: Sequence[int], date: str, window: BookingWindow
    ) -> RunResult:
        """
        Run one booking attempt across durations.

        Args:
            durations: Durations in minutes, in priority order
            date: Target date (YYYY-MM-DD)
            window: Daily booking window

        Returns:
            RunResult with booked=True and the winning slot, or booked=False
            with per-duration diagnostics
        """
        details: List[DurationReport] = []

        for duration in durations:
            logger.info(
                f"Searching {date} for {duration}min slots "
                f"({window.start_of_day}-{window.end_of_day})"
            )
            try:
                document = await self._search(date, duration)
            except UpstreamRejectedError as e:
                logger.warning(f"Search for {duration}min rejected: {e.status}")
                details.append(DurationReport(duration=duration, status=e.status, body=e.body))
                continue
            except AutobookError as e:
                logger.warning(f"Search for {duration}min failed: {e.message}")
                details.append(DurationReport(duration=duration, error=e.message))
                continue
            except Exception as e:
                message = str(e) or e.__class__.__name__
                logger.error(f"Search for {duration}min raised {e.__class__.__name__}: {message}")
                details.append(DurationReport(duration=duration, error=message))
                continue

            failure = _search_failure(document)
            if failure is not None:
                failure.duration = duration
                details.append(failure)
                continue

            slots = extract_slots(document)
            candidates = self.select_candidates(slots, window, duration)
            report = DurationReport(duration=duration, found=len(slots), candidates=len(candidates))
            details.append(report)
            logger.info(f"{duration}min: found {len(slots)} slot(s), {len(candidates)} in window")

            for index, slot in enumerate(candidates):
                if index and self.pacing_seconds:
                    await self._sleep(self.pacing_seconds)

                try:
                    outcome = await self.submitter.submit(slot, duration)
                except Exception as e:
                    message = str(e) or e.__class__.__name__
                    logger.error(f"Submitting {slot.inventory_id}@{slot.start} raised: {message}")
                    outcome = BookingOutcome.failed(ErrorKind.NETWORK_FAILURE, message=message)
                if outcome.success:
                    logger.success(
                        f"Booked inventory {slot.inventory_id} at {slot.start} for {duration}min"
                    )
                    return RunResult(
                        booked=True,
                        details=details,
                        duration=duration,
                        slot=slot,
                        outcome=outcome,
                    )
                report.record_attempt(slot, outcome)
                logger.info(
                    f"Slot {slot.inventory_id}@{slot.start} not booked "
                    f"({outcome.error_kind.value if outcome.error_kind else 'unknown'})"
                )

        logger.info(f"No booking made for {date}")
        return RunResult(booked=False, details=details)
