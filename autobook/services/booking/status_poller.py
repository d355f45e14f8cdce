"""Reservation status poller."""

import asyncio
from typing import Any, Awaitable, Callable, Optional, Tuple

from loguru import logger

from ...constants import Intervals, PollStatus
from .aliases import Accessor, field, first_item, resolve_first
from .models import PollState

StatusQuery = Callable[[str], Awaitable[Any]]
UpdateCallback = Callable[[PollState], None]

STATUS_ACCESSORS: Tuple[Accessor, ...] = (
    field("status"),
    field("bookingStatus"),
    field("state"),
    first_item("reservations", "status"),
)


def extract_status(document: Any) -> Optional[str]:
    """
    Extract the reservation status from a lookup document.

    Args:
        document: Raw reservation document

    Returns:
        Status string as sent upstream, or None if no alias carries one
    """
    status = resolve_first(document, STATUS_ACCESSORS)
    return str(status).strip() if status is not None else None


def classify_status(raw_status: Optional[str]) -> str:
    """Map an upstream status onto pending / terminal / unknown."""
    if raw_status is None:
        return PollStatus.UNKNOWN
    if raw_status.lower() == PollStatus.PENDING:
        return PollStatus.PENDING
    return PollStatus.TERMINAL


class StatusPoller:
    """
    Polls one reservation until it leaves the pending state.

    At most one poll is active: starting a poll for a new reference cancels
    the previous one. Query failures and status-less documents are reported
    as "unknown" and polling continues.
    """

    def __init__(
        self,
        query: StatusQuery,
        interval: float = Intervals.STATUS_POLL,
        on_update: Optional[UpdateCallback] = None,
    ):
        """
        Initialize status poller.

        Args:
            query: Async function returning the reservation document for a reference
            interval: Seconds between polls
            on_update: Optional callback invoked after every poll
        """
        self._query = query
        self.interval = interval
        self._on_update = on_update
        self._state: Optional[PollState] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def state(self) -> Optional[PollState]:
        """Current poll state, or None if nothing was polled yet."""
        return self._state

    @property
    def is_active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, guid: str) -> PollState:
        """
        Start polling a reservation, replacing any active poll.

        Must be called from within a running event loop.

        Args:
            guid: Reservation reference

        Returns:
            Fresh poll state
        """
        self._cancel_task()
        state = PollState(guid=guid)
        self._state = state
        self._task = asyncio.create_task(self._run(state), name=f"status_poll_{guid}")
        logger.info(f"Polling reservation {guid} every {self.interval}s")
        return state

    async def stop(self) -> None:
        """Stop the active poll, if any."""
        task = self._task
        self._cancel_task()
        if task and not task.done():
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def wait(self) -> Optional[PollState]:
        """Wait for the active poll to finish and return its final state."""
        if self._task is not None:
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        return self._state

    def _cancel_task(self) -> None:
        if self._state is not None:
            self._state.active = False
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def _notify(self, state: PollState) -> None:
        if self._on_update is None:
            return
        try:
            self._on_update(state)
        except Exception as e:
            logger.error(f"Status update callback failed: {e}")

    async def _poll_once(self, state: PollState) -> str:
        state.polls += 1
        try:
            document = await self._query(state.guid)
        except Exception as e:
            logger.warning(f"Status lookup for {state.guid} failed: {e}")
            state.raw_status = None
            state.last_status = PollStatus.UNKNOWN
            return state.last_status

        state.raw_status = extract_status(document)
        state.last_status = classify_status(state.raw_status)
        logger.info(
            f"Reservation {state.guid}: {state.raw_status or 'no status'} "
            f"(poll #{state.polls})"
        )
        return state.last_status

    async def _run(self, state: PollState) -> None:
        try:
            while state.active:
                result = await self._poll_once(state)
                if result == PollStatus.TERMINAL:
                    state.active = False
                self._notify(state)
                if not state.active:
                    break
                await asyncio.sleep(self.interval)
        finally:
            state.active = False
        logger.info(f"Stopped polling reservation {state.guid}: {state.raw_status}")
