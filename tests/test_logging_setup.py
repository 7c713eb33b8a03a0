from __future__ import annotations

import io
import logging

import pytest

import gibrocash.logging_setup as logging_setup
from gibrocash.logging_setup import configure_logging, get_logger, parse_level
from gibrocash.settings import load_settings, read_log_level


@pytest.fixture
def fresh_logging(monkeypatch):
    """Let ``configure_logging`` run again and undo its handlers afterwards."""

    monkeypatch.setattr(logging_setup, "_CONFIGURED", False)
    names = ("gibrocash", "httpx", "httpcore")
    saved = {
        n: (list(logging.getLogger(n).handlers), logging.getLogger(n).level, logging.getLogger(n).propagate)
        for n in names
    }
    yield
    for n, (handlers, level, propagate) in saved.items():
        logger = logging.getLogger(n)
        logger.handlers[:] = handlers
        logger.setLevel(level)
        logger.propagate = propagate


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("debug", logging.DEBUG),
        (" WARNING ", logging.WARNING),
        ("15", 15),
        (logging.ERROR, logging.ERROR),
        ("chatty", logging.INFO),
        (None, logging.INFO),
        ("", logging.INFO),
    ],
)
def test_parse_level(raw, expected):
    assert parse_level(raw) == expected


def test_log_level_comes_from_settings(monkeypatch):
    monkeypatch.setenv("GIBROCASH_LOG_LEVEL", " debug ")
    assert read_log_level() == "debug"
    assert load_settings().log_level == "debug"


def test_configure_logging_writes_package_records_once(fresh_logging):
    stream = io.StringIO()
    configure_logging("INFO", stream=stream)
    configure_logging("DEBUG", stream=io.StringIO())

    get_logger("gibrocash.gateway").info("GET /proposals -> 200")
    get_logger("gibrocash.gateway").debug("hidden")

    lines = stream.getvalue().splitlines()
    assert len(lines) == 1
    assert "INFO gibrocash.gateway: GET /proposals -> 200" in lines[0]
    assert logging.getLogger("gibrocash").propagate is False


def test_http_client_loggers_quiet_unless_debug(fresh_logging):
    configure_logging("INFO", stream=io.StringIO())
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("httpcore").level == logging.WARNING


def test_debug_level_lets_http_client_logs_through(fresh_logging):
    stream = io.StringIO()
    configure_logging("DEBUG", stream=stream)
    logging.getLogger("httpx").debug("HTTP Request: GET https://api.test/proposals")
    assert "httpx: HTTP Request" in stream.getvalue()
