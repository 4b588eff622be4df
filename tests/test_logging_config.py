# tests/test_logging_config.py

"""Tests for the per-run logging configuration."""

import logging
import shutil
import tempfile
import unittest
from pathlib import Path

from ecom_insights.config.logging_config import ROOT_LOGGER_NAME, setup_logging


def _reset_handlers() -> None:
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root_logger.handlers):
        handler.close()
        root_logger.removeHandler(handler)


class TestLoggingConfig(unittest.TestCase):
    """Verify logging setup behaviour."""

    def setUp(self) -> None:
        """Start from a logger with no handlers and a fresh log dir."""
        _reset_handlers()
        self.log_dir = Path(tempfile.mkdtemp())
        self.addCleanup(shutil.rmtree, self.log_dir, True)
        self.addCleanup(_reset_handlers)

    def _stream_handlers(self) -> list[logging.Handler]:
        return [
            h
            for h in logging.getLogger(ROOT_LOGGER_NAME).handlers
            if isinstance(h, logging.StreamHandler)
            and not isinstance(h, logging.FileHandler)
        ]

    def test_setup_creates_log_file(self) -> None:
        """setup_logging returns a path that exists on disk."""
        log_path = setup_logging(self.log_dir)
        self.assertTrue(log_path.exists())
        self.assertEqual(log_path.parent, self.log_dir)

    def test_log_file_naming_convention(self) -> None:
        """Log file name matches run_YYYYMMDD_HHMMSS.log format."""
        log_path = setup_logging(self.log_dir)
        self.assertRegex(log_path.name, r"^run_\d{8}_\d{6}\.log$")

    def test_file_handler_level_debug(self) -> None:
        setup_logging(self.log_dir)
        file_handlers = [
            h
            for h in logging.getLogger(ROOT_LOGGER_NAME).handlers
            if isinstance(h, logging.FileHandler)
        ]
        self.assertEqual(len(file_handlers), 1)
        self.assertEqual(file_handlers[0].level, logging.DEBUG)

    def test_console_handler_level_warning(self) -> None:
        setup_logging(self.log_dir)
        handlers = self._stream_handlers()
        self.assertEqual(len(handlers), 1)
        self.assertEqual(handlers[0].level, logging.WARNING)

    def test_verbose_console_level_info(self) -> None:
        setup_logging(self.log_dir, verbose=True)
        self.assertEqual(self._stream_handlers()[0].level, logging.INFO)

    def test_second_call_reuses_handlers(self) -> None:
        """Repeated setup does not stack handlers or open a new file."""
        first = setup_logging(self.log_dir)
        second = setup_logging(self.log_dir)
        self.assertEqual(first, second)
        self.assertEqual(len(logging.getLogger(ROOT_LOGGER_NAME).handlers), 2)

    def test_child_records_reach_file(self) -> None:
        log_path = setup_logging(self.log_dir)
        logging.getLogger("ecom_insights.storage").debug("stored 3 products")
        for handler in logging.getLogger(ROOT_LOGGER_NAME).handlers:
            handler.flush()
        self.assertIn("stored 3 products", log_path.read_text(encoding="utf-8"))
