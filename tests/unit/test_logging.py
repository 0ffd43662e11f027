"""
Tests for logging setup.
"""

import logging

import pytest

from torchharness.infrastructure import get_logger, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestSetupLogging:
    """Test setup_logging."""

    def test_level_name(self, restore_root_logger) -> None:
        """Level names are case-insensitive."""
        setup_logging("debug")
        assert restore_root_logger.level == logging.DEBUG

    def test_numeric_level(self, restore_root_logger) -> None:
        """Numeric levels are accepted."""
        setup_logging(logging.WARNING)
        assert restore_root_logger.level == logging.WARNING

    def test_unknown_level(self, restore_root_logger) -> None:
        """Unknown level names are rejected."""
        with pytest.raises(ValueError, match="Unknown log level"):
            setup_logging("chatty")

    def test_custom_format(self, restore_root_logger) -> None:
        """A custom format is applied to the handler."""
        setup_logging("INFO", format_string="%(message)s")
        assert restore_root_logger.handlers[0].formatter._fmt == "%(message)s"


def test_get_logger():
    """get_logger returns the standard logger."""
    assert get_logger("torchharness.test") is logging.getLogger("torchharness.test")
