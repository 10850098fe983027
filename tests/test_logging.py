"""Tests for logging utilities."""

import logging

from ragcontext.utils import get_logger, set_log_level


class TestLogging:
    """Tests for get_logger and set_log_level."""

    def test_get_logger_configures_once(self):
        logger = get_logger("ragcontext.tests.once")
        handlers = list(logger.handlers)

        assert get_logger("ragcontext.tests.once").handlers == handlers
        assert len(handlers) == 1
        assert logger.level == logging.INFO

    def test_set_log_level_updates_children(self):
        child = get_logger("ragcontext.tests.child")

        set_log_level("debug")
        try:
            assert logging.getLogger("ragcontext").level == logging.DEBUG
            assert child.level == logging.DEBUG
        finally:
            set_log_level(logging.INFO)
