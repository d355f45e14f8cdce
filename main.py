#!/usr/bin/env python3
"""
Court Autobook - Automated court slot discovery and reservation.

Main entry point for the application.
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import date
from typing import List, Optional

from autobook.constants import BookingDefaults
from autobook.core.config.booking_config import ConfigStore
from autobook.core.config.settings import AutobookSettings, get_settings
from autobook.core.exceptions import AutobookError
from autobook.core.logger import setup_structured_logging
from autobook.core.run_controller import RunController, RunParams
from autobook.services.booking.models import BookingWindow
from autobook.services.booking.window_matcher import parse_hhmm
from autobook.utils.token import decode_token_claims, get_token_expiry


def _print_json(data: object) -> None:
    print(json.dumps(data, indent=2, default=str))


def _time_of_day(value: str) -> str:
    if parse_hhmm(value) is None:
        raise argparse.ArgumentTypeError(f"invalid time of day: {value!r} (expected HH:MM)")
    return value


def _window_end(value: str) -> str:
    if parse_hhmm(value, end_of_day=True) is None:
        raise argparse.ArgumentTypeError(f"invalid window end: {value!r} (HH:MM or 24:00)")
    return value


def _iso_date(value: str) -> str:
    try:
        date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date: {value!r} (expected YYYY-MM-DD)")
    return value


async def run_booking_mode(
    settings: AutobookSettings,
    params: RunParams,
    follow: bool = False,
) -> bool:
    """
    Run a booking attempt from the command line.

    Args:
        settings: Application settings
        params: Run parameters
        follow: Keep polling a created reservation until it leaves "pending"

    Returns:
        True if a reservation was created
    """
    logger = logging.getLogger(__name__)
    controller = RunController.get_instance()
    controller.configure(ConfigStore(settings.config_path), settings)

    try:
        started = await controller.start(params)
        _print_json(started)
        if controller.is_running:
            logger.info("Waiting for scheduled runs (Ctrl+C to stop)...")
            await controller.wait()

        last = controller.last_result
        booked = bool(last and last.booked)
        if booked and follow:
            state = await controller.wait_for_poll()
            if state is not None:
                _print_json(state.to_dict())
        return booked
    finally:
        await controller.shutdown()


def run_web_mode(settings: AutobookSettings) -> None:
    """
    Run the control plane.

    Args:
        settings: Application settings
    """
    logger = logging.getLogger(__name__)
    logger.info(f"Starting control plane on http://{settings.host}:{settings.port}")

    import uvicorn

    from web.app import create_app

    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)


def decode_token_mode(settings: AutobookSettings, token: Optional[str]) -> None:
    """
    Print the claims and expiry of an auth token.

    Args:
        settings: Application settings
        token: Raw token, or None to use the configured one
    """
    raw = token or ConfigStore(settings.config_path).get().token
    if not raw:
        raise AutobookError("No token given and none configured", recoverable=False)
    try:
        claims = decode_token_claims(raw)
    except ValueError as e:
        raise AutobookError(str(e), recoverable=False)

    expiry = get_token_expiry(raw)
    _print_json({"claims": claims, "expiresAt": expiry.isoformat() if expiry else None})


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        description="Court Autobook - Automated court slot booking"
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (defaults to LOG_LEVEL)",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    run = commands.add_parser("run", help="Search and book one slot")
    run.add_argument("--date", type=_iso_date, default=None, help="Target date (YYYY-MM-DD)")
    run.add_argument(
        "--durations",
        type=int,
        nargs="+",
        default=list(BookingDefaults.DURATIONS),
        help="Durations in minutes, in priority order",
    )
    run.add_argument("--window-start", type=_time_of_day, default=BookingDefaults.WINDOW_START)
    run.add_argument("--window-end", type=_window_end, default=BookingDefaults.WINDOW_END)
    run.add_argument(
        "--interval", type=float, default=0, help="Repeat every N seconds until booked"
    )
    run.add_argument(
        "--follow", action="store_true", help="Poll the created reservation until confirmed"
    )

    commands.add_parser("serve", help="Run the control plane")

    decode = commands.add_parser("decode-token", help="Show the claims of an auth token")
    decode.add_argument("token", nargs="?", default=None, help="Token (defaults to configured)")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    settings = get_settings()

    setup_structured_logging(
        args.log_level or settings.log_level,
        json_format=settings.log_json,
        logs_dir=settings.logs_dir,
        diagnose=settings.is_development,
    )
    logger = logging.getLogger(__name__)

    try:
        if args.command == "run":
            params = RunParams(
                date=args.date or date.today().isoformat(),
                durations=args.durations,
                window=BookingWindow(args.window_start, args.window_end),
                interval_seconds=args.interval,
            )
            booked = asyncio.run(run_booking_mode(settings, params, follow=args.follow))
            sys.exit(0 if booked else 2)
        elif args.command == "serve":
            run_web_mode(settings)
        else:
            decode_token_mode(settings, args.token)
    except KeyboardInterrupt:
        logger.info("Interrupted")
        sys.exit(130)
    except AutobookError as e:
        logger.error(f"{e.__class__.__name__}: {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
