"""Tests for structured logging module."""

import json
import logging

import pytest
from loguru import logger

from autobook.core.logger import InterceptHandler, setup_structured_logging


@pytest.fixture(autouse=True)
def restore_logging():
    """Restore loguru and stdlib logging after each test."""
    yield
    logger.remove()
    logging.basicConfig(handlers=[], force=True)


def test_setup_writes_json_lines(tmp_path):
    """The JSON sink writes one serialized record per line."""
    setup_structured_logging("INFO", json_format=True, logs_dir=tmp_path)

    logger.info("booking attempt")
    logger.complete()

    lines = (tmp_path / "autobook.jsonl").read_text(encoding="utf-8").splitlines()
    records = [json.loads(line) for line in lines]
    assert any(record["record"]["message"] == "booking attempt" for record in records)


def test_setup_text_format(tmp_path):
    """Without JSON the file sink is plain text."""
    setup_structured_logging("DEBUG", json_format=False, logs_dir=tmp_path / "logs")

    logger.debug("plain line")

    content = (tmp_path / "logs" / "autobook.log").read_text(encoding="utf-8")
    assert "plain line" in content
    assert "DEBUG" in content


def test_stdlib_records_are_intercepted(tmp_path):
    """Records sent through logging reach the loguru sinks."""
    setup_structured_logging("INFO", json_format=False, logs_dir=tmp_path)

    logging.getLogger("tenacity.test").warning("retrying in 0.3s")

    content = (tmp_path / "autobook.log").read_text(encoding="utf-8")
    assert "retrying in 0.3s" in content
    assert any(isinstance(h, InterceptHandler) for h in logging.root.handlers)


def test_level_filters_records(tmp_path):
    """Records below the configured level are dropped."""
    setup_structured_logging("WARNING", json_format=False, logs_dir=tmp_path)

    logger.info("hidden")
    logger.warning("shown")

    content = (tmp_path / "autobook.log").read_text(encoding="utf-8")
    assert "hidden" not in content
    assert "shown" in content
