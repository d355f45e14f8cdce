"""Tests for the command line entry point."""

import json
from unittest.mock import AsyncMock, patch

import pytest

import main


class TestParser:
    """Tests for argument parsing."""

    def test_run_defaults(self):
        """The run command falls back to the default durations and window."""
        args = main.build_parser().parse_args(["run"])

        assert args.command == "run"
        assert args.date is None
        assert args.durations == [90]
        assert args.window_start == "18:30"
        assert args.window_end == "22:00"
        assert args.interval == 0
        assert args.follow is False

    def test_run_arguments(self):
        """Explicit run parameters are parsed."""
        args = main.build_parser().parse_args(
            [
                "run",
                "--date",
                "2025-03-01",
                "--durations",
                "60",
                "90",
                "--window-start",
                "19:00",
                "--interval",
                "30",
                "--follow",
            ]
        )

        assert args.date == "2025-03-01"
        assert args.durations == [60, 90]
        assert args.window_start == "19:00"
        assert args.interval == 30
        assert args.follow is True

    def test_window_may_end_at_midnight(self):
        """24:00 is accepted as the window end."""
        args = main.build_parser().parse_args(["run", "--window-end", "24:00"])

        assert args.window_end == "24:00"

    @pytest.mark.parametrize(
        "argv",
        [
            ["run", "--date", "01-03-2025"],
            ["run", "--window-end", "24:30"],
            ["run", "--window-start", "24:00"],
            [],
        ],
    )
    def test_invalid_arguments(self, argv):
        """Malformed dates, times and missing commands exit with usage errors."""
        with pytest.raises(SystemExit) as exc_info:
            main.build_parser().parse_args(argv)

        assert exc_info.value.code == 2


class TestMain:
    """Tests for main()."""

    def test_run_exit_code_reflects_booking(self):
        """Booked runs exit 0, unbooked runs exit 2."""
        with patch("main.setup_structured_logging"), patch(
            "main.run_booking_mode", new=AsyncMock(return_value=False)
        ) as run_mode:
            with pytest.raises(SystemExit) as exc_info:
                main.main(["run", "--date", "2025-03-01"])

        assert exc_info.value.code == 2
        params = run_mode.await_args.args[1]
        assert params.date == "2025-03-01"
        assert params.durations == [90]

        with patch("main.setup_structured_logging"), patch(
            "main.run_booking_mode", new=AsyncMock(return_value=True)
        ):
            with pytest.raises(SystemExit) as exc_info:
                main.main(["run"])

        assert exc_info.value.code == 0

    def test_decode_token(self, capsys, make_token):
        """Token claims and expiry are printed as JSON."""
        with patch("main.setup_structured_logging"):
            main.main(["decode-token", make_token(email="player@example.com")])

        output = json.loads(capsys.readouterr().out)
        assert output["claims"]["email"] == "player@example.com"
        assert output["expiresAt"] is not None

    def test_decode_configured_token(self, capsys, make_token, settings, monkeypatch):
        """Without an argument the configured token is decoded."""
        from autobook.core.config.booking_config import ConfigStore

        ConfigStore(settings.config_path).update({"token": make_token(sub="member-7")})
        monkeypatch.setenv("CONFIG_PATH", settings.config_path)

        with patch("main.setup_structured_logging"):
            main.main(["decode-token"])

        assert json.loads(capsys.readouterr().out)["claims"]["sub"] == "member-7"

    @pytest.mark.parametrize("argv", [["decode-token", "not-a-jwt"], ["decode-token"]])
    def test_decode_token_errors_exit_1(self, argv):
        """Invalid or missing tokens exit with status 1."""
        with patch("main.setup_structured_logging"):
            with pytest.raises(SystemExit) as exc_info:
                main.main(argv)

        assert exc_info.value.code == 1
