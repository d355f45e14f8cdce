"""
Run controller singleton for managing booking runs.

This controller provides a central point for starting, stopping, and inspecting
booking runs from the control plane and the CLI. It also owns the single
reservation status poll.
"""

import asyncio
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Set

from loguru import logger

from ..constants import BookingDefaults, Timeouts
from ..services.api.client import CourtBookingClient
from ..services.booking.booking_orchestrator import BookingOrchestrator
from ..services.booking.booking_submitter import BookingSubmitter
from ..services.booking.models import BookingWindow, PollState, RunResult
from ..services.booking.status_poller import StatusPoller
from ..utils.token import get_token_expiry
from .config.booking_config import BookingConfig, ConfigStore
from .config.settings import AutobookSettings
from .exceptions import ConfigurationError, MissingTokenError

# Builds an async-context-managed transport for a configuration snapshot and timeout
TransportFactory = Callable[[BookingConfig, Optional[float]], Any]


@dataclass
class RunParams:
    """Parameters of a (possibly recurring) booking run."""

    date: str
    durations: List[int] = field(default_factory=lambda: list(BookingDefaults.DURATIONS))
    window: BookingWindow = field(default_factory=BookingWindow)
    interval_seconds: float = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "durations": self.durations,
            "windowStart": self.window.start_of_day,
            "windowEnd": self.window.end_of_day,
            "intervalSeconds": self.interval_seconds,
        }


class RunController:
    """
    Singleton controller for managing booking runs.

    A run reads a fresh configuration snapshot, searches and books through the
    orchestrator, and hands a created reservation to the status poller. Runs
    never overlap: stopping a schedule takes effect between runs.
    """

    _instance: Optional["RunController"] = None
    _init_lock = threading.Lock()

    def __init__(self):
        """Initialize run controller (use get_instance() instead)."""
        self._store: Optional[ConfigStore] = None
        self._settings: Optional[AutobookSettings] = None
        self._transport_factory: Optional[TransportFactory] = None
        self._poller: Optional[StatusPoller] = None
        self._params: Optional[RunParams] = None
        self._schedule_task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None
        # Schedule tasks stay referenced until they finish, stopped or not
        self._tasks: Set[asyncio.Task] = set()
        self._last_result: Optional[RunResult] = None
        self._last_error: Optional[str] = None
        self._last_run_at: Optional[str] = None
        self._starting = False
        self._configured = False
        self._async_lock = asyncio.Lock()
        self._run_lock = asyncio.Lock()

    @classmethod
    def get_instance(cls) -> "RunController":
        """
        Get singleton instance of RunController.

        Returns:
            RunController instance
        """
        if cls._instance is None:
            with cls._init_lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @classmethod
    async def reset_instance(cls) -> None:
        """
        Reset singleton instance (for testing).

        Stops any schedule and status poll, then clears the singleton.
        """
        instance = cls._instance
        if instance is not None:
            try:
                await instance.shutdown()
            except Exception as e:
                logger.error(f"Error stopping run controller during reset: {e}")

        with cls._init_lock:
            cls._instance = None

    def configure(
        self,
        store: ConfigStore,
        settings: AutobookSettings,
        transport_factory: Optional[TransportFactory] = None,
    ) -> None:
        """
        Configure the run controller with dependencies.

        Args:
            store: Booking configuration store
            settings: Application settings
            transport_factory: Optional factory creating a transport for a config
                snapshot (defaults to CourtBookingClient)
        """
        self._store = store
        self._settings = settings
        self._transport_factory = transport_factory or self._default_transport_factory
        self._poller = StatusPoller(self._query_status, interval=settings.status_poll_interval)
        self._configured = True
        logger.info("RunController configured")

    def _default_transport_factory(
        self, config: BookingConfig, timeout: Optional[float] = None
    ) -> CourtBookingClient:
        assert self._settings is not None
        return CourtBookingClient(
            config,
            site_origin=self._settings.site_origin,
            timeout=timeout or self._settings.request_timeout,
        )

    def _require_configured(self) -> None:
        if not self._configured:
            raise ConfigurationError(
                "Run controller not configured", details={"reason": "not-configured"}
            )

    def snapshot_config(self) -> BookingConfig:
        """
        Get a fresh configuration snapshot that carries a token.

        Raises:
            ConfigurationError: If the controller is not configured
            MissingTokenError: If no auth token is configured
        """
        self._require_configured()
        assert self._store is not None
        config = self._store.get()
        if not config.has_token:
            raise MissingTokenError()

        expiry = get_token_expiry(config.token)
        if expiry is not None and expiry <= datetime.now(timezone.utc):
            logger.warning(f"Auth token expired at {expiry.isoformat()}; upstream may reject calls")
        return config

    def create_transport(self, config: BookingConfig, timeout: Optional[float] = None) -> Any:
        """
        Create a transport for a configuration snapshot.

        Args:
            config: Configuration snapshot
            timeout: Request timeout in seconds (settings default when None)
        """
        self._require_configured()
        assert self._transport_factory is not None
        return self._transport_factory(config, timeout)

    async def _query_status(self, guid: str) -> Any:
        config = self.snapshot_config()
        assert self._settings is not None
        async with self.create_transport(config, self._settings.proxy_timeout) as transport:
            return await transport.get_booking_status(guid)

    async def run_once(self, params: RunParams) -> RunResult:
        """
        Execute one booking run.

        Args:
            params: Run parameters

        Returns:
            Run result

        Raises:
            MissingTokenError: If no auth token is configured
        """
        config = self.snapshot_config()
        assert self._settings is not None

        async with self._run_lock:
            async with self.create_transport(config) as transport:
                submitter = BookingSubmitter(
                    transport,
                    reservation_type_id=config.reservation_type_id,
                    booking_url_base=self._settings.booking_url_base,
                )
                orchestrator = BookingOrchestrator(
                    transport, submitter, pacing_seconds=self._settings.booking_pacing
                )
                result = await orchestrator.run(params.durations, params.date, params.window)

        self._last_result = result
        self._last_error = None
        self._last_run_at = datetime.now(timezone.utc).isoformat()

        if result.booked and result.reference:
            self.start_poll(result.reference)
        return result

    async def _execute(self, params: RunParams) -> Dict[str, Any]:
        """Run once, converting failures into a result document."""
        try:
            result = await self.run_once(params)
            return result.to_dict()
        except Exception as e:
            logger.exception(f"Booking run failed: {e}")
            self._last_result = None
            self._last_error = str(e)
            self._last_run_at = datetime.now(timezone.utc).isoformat()
            return {"error": str(e)}

    async def _schedule_loop(self, params: RunParams, stop_event: asyncio.Event) -> None:
        """Repeat runs every interval until stopped or a booking succeeds."""
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=params.interval_seconds)
                break
            except asyncio.TimeoutError:
                pass

            outcome = await self._execute(params)
            if outcome.get("booked"):
                logger.info("Booking made; stopping the run schedule")
                break
        logger.info("Run schedule finished")

    async def start(self, params: RunParams) -> Dict[str, Any]:
        """
        Run immediately and schedule repeats when an interval is set.

        Args:
            params: Run parameters

        Returns:
            Status dictionary with the immediate run's result

        Raises:
            MissingTokenError: If no auth token is configured
        """
        async with self._async_lock:
            if not self._configured:
                logger.error("RunController not configured")
                return {"ok": False, "reason": "not-configured"}

            if self._starting or self.is_running:
                logger.warning("Booking run is already running")
                return {"ok": False, "reason": "already-running"}

            self.snapshot_config()
            self._starting = True
            self._params = params

        try:
            logger.info(f"Starting booking run: {params.to_dict()}")
            last_run = await self._execute(params)

            async with self._async_lock:
                if params.interval_seconds > 0 and not last_run.get("booked"):
                    self._stop_event = asyncio.Event()
                    self._schedule_task = asyncio.create_task(
                        self._schedule_loop(params, self._stop_event),
                        name="autobook_run_schedule",
                    )
                    self._tasks.add(self._schedule_task)
                    self._schedule_task.add_done_callback(self._on_schedule_done)
                    logger.info(f"Repeating booking run every {params.interval_seconds}s")
        finally:
            self._starting = False

        return {"ok": True, "running": self.is_running, "lastRun": last_run}

    async def stop(self) -> Dict[str, Any]:
        """
        Stop the run schedule. An in-flight run completes.

        The schedule task stays tracked until it finishes, so shutdown() can
        still wait for the in-flight run.

        Returns:
            Status dictionary with result
        """
        async with self._async_lock:
            if not self.is_running:
                logger.warning("Booking run is not running")
                return {"ok": False, "reason": "not-running"}

            if self._stop_event:
                self._stop_event.set()

        logger.info("Booking run schedule stopped")
        return {"ok": True}

    def _on_schedule_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if self._schedule_task is task:
            self._schedule_task = None
            self._stop_event = None

    async def wait(self) -> None:
        """Wait until the run schedule finishes (booked or stopped)."""
        task = self._schedule_task
        if task is not None:
            await task

    def start_poll(self, guid: str) -> PollState:
        """Start polling a reservation, replacing any previous poll."""
        self._require_configured()
        assert self._poller is not None
        return self._poller.start(guid)

    async def stop_poll(self) -> None:
        """Stop the active reservation poll, if any."""
        if self._poller is not None:
            await self._poller.stop()

    async def wait_for_poll(self) -> Optional[PollState]:
        """Wait for the active reservation poll to finish."""
        if self._poller is None:
            return None
        return await self._poller.wait()

    async def shutdown(self) -> None:
        """Stop the schedule and the status poll, waiting for schedule tasks."""
        if self._stop_event:
            self._stop_event.set()

        pending = [task for task in self._tasks if not task.done()]
        if pending:
            _, unfinished = await asyncio.wait(
                pending, timeout=Timeouts.GRACEFUL_SHUTDOWN_SECONDS
            )
            for task in unfinished:
                logger.warning("Run schedule did not finish in time; cancelling")
                task.cancel()
        await self.stop_poll()

    @property
    def last_result(self) -> Optional[RunResult]:
        return self._last_result

    @property
    def poll_state(self) -> Optional[PollState]:
        return self._poller.state if self._poller else None

    def get_status(self) -> Dict[str, Any]:
        """
        Get current run status.

        Returns:
            Status dictionary with run, schedule and poll state
        """
        poll = self.poll_state
        return {
            "configured": self._configured,
            "running": self.is_running,
            "starting": self._starting,
            "params": self._params.to_dict() if self._params else None,
            "lastRun": self._last_result.to_dict() if self._last_result else None,
            "lastError": self._last_error,
            "lastRunAt": self._last_run_at,
            "poll": poll.to_dict() if poll else None,
        }

    @property
    def is_running(self) -> bool:
        """
        Check if a run schedule is active.

        Returns:
            True if runs repeat on an interval and no stop was requested
        """
        return (
            self._schedule_task is not None
            and not self._schedule_task.done()
            and not (self._stop_event is not None and self._stop_event.is_set())
        )
