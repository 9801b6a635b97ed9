"""Tests for ferzcli.logging_config."""

from __future__ import annotations

import logging

import pytest

from ferzcli.logging_config import _parse_level, setup_logging

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    httpx_level = logging.getLogger("httpx").level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("httpx").setLevel(httpx_level)


class TestParseLevel:
    @pytest.mark.parametrize(
        "value, expected",
        [("debug", logging.DEBUG), ("INFO", logging.INFO), (None, logging.WARNING), ("bogus", logging.WARNING)],
    )
    def test_values(self, value, expected):
        assert _parse_level(value) == expected


class TestSetupLogging:
    def test_installs_single_handler(self):
        setup_logging("INFO")
        setup_logging("INFO")
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.INFO

    def test_quiets_third_party(self):
        setup_logging("INFO")
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_debug_format_includes_line_numbers(self):
        setup_logging("DEBUG")
        handler = logging.getLogger().handlers[0]
        assert "%(lineno)d" in handler.formatter._fmt
