# tests/test_logging_config.py

"""Tests for the per-run logging configuration."""

import logging
import unittest
from pathlib import Path
from unittest.mock import patch

from src.config.logging_config import setup_logging
from src.config.settings import Settings


class TestLoggingConfig(unittest.TestCase):
    """Verify logging setup behaviour."""

    def setUp(self) -> None:
        """Clean up the canmade_search logger before each test."""
        logging.getLogger("canmade_search").handlers.clear()

    def tearDown(self) -> None:
        for name in ["canmade_search", *Settings.LIBRARY_LOGGERS]:
            logger = logging.getLogger(name)
            for handler in logger.handlers:
                handler.close()
            logger.handlers.clear()

    def test_setup_creates_log_file(self) -> None:
        """setup_logging returns a path that exists on disk."""
        log_path = setup_logging()
        self.assertTrue(log_path.exists())

    def test_log_file_naming_convention(self) -> None:
        """Log file name matches run_YYYYMMDD_HHMMSS.log format."""
        log_path = setup_logging()
        self.assertRegex(log_path.name, r"^run_\d{8}_\d{6}\.log$")

    def test_file_debug_console_warning(self) -> None:
        """File handler logs DEBUG, console only WARNING and above."""
        setup_logging()
        root_logger = logging.getLogger("canmade_search")
        file_handlers = [
            h for h in root_logger.handlers
            if isinstance(h, logging.FileHandler)
        ]
        stream_handlers = [
            h for h in root_logger.handlers
            if isinstance(h, logging.StreamHandler)
            and not isinstance(h, logging.FileHandler)
        ]
        self.assertEqual(file_handlers[0].level, logging.DEBUG)
        self.assertEqual(stream_handlers[0].level, logging.WARNING)

    def test_repeated_calls_no_duplicate_handlers(self) -> None:
        """Calling setup_logging twice does not duplicate handlers."""
        setup_logging()
        root_logger = logging.getLogger("canmade_search")
        count_before = len(root_logger.handlers)
        setup_logging()
        self.assertEqual(count_before, len(root_logger.handlers))

    def test_log_file_inside_logs_dir(self) -> None:
        """Log file is created inside the logs/ directory."""
        self.assertEqual(setup_logging().parent.name, "logs")

    def test_repeated_call_returns_same_file(self) -> None:
        """A second call reports the file opened by the first."""
        self.assertEqual(setup_logging(), setup_logging())

    @patch("src.config.settings.Settings.CONSOLE_LOG_LEVEL", "INFO")
    def test_console_level_configurable(self) -> None:
        """CONSOLE_LOG_LEVEL sets the console threshold."""
        setup_logging()
        handler = next(
            h for h in logging.getLogger("canmade_search").handlers
            if not isinstance(h, logging.FileHandler)
        )
        self.assertEqual(handler.level, logging.INFO)

    @patch("src.config.settings.Settings.CONSOLE_LOG_LEVEL", "LOUD")
    def test_unknown_console_level_falls_back(self) -> None:
        """An unrecognised level name means WARNING."""
        setup_logging()
        handler = next(
            h for h in logging.getLogger("canmade_search").handlers
            if not isinstance(h, logging.FileHandler)
        )
        self.assertEqual(handler.level, logging.WARNING)

    def test_library_warnings_reach_run_file(self) -> None:
        """Client library warnings are written to the run file once."""
        log_path = setup_logging()
        logging.getLogger("canmade_search").handlers.clear()
        setup_logging()
        for name in Settings.LIBRARY_LOGGERS:
            with self.subTest(logger=name):
                handlers = [
                    h for h in logging.getLogger(name).handlers
                    if isinstance(h, logging.FileHandler)
                ]
                self.assertEqual(len(handlers), 1)
        logging.getLogger("openai").warning("retrying request")
        run_file = next(
            h for h in logging.getLogger("openai").handlers
            if isinstance(h, logging.FileHandler)
        )
        run_file.flush()
        self.assertIn(
            "retrying request",
            Path(run_file.baseFilename).read_text(encoding="utf-8"),
        )
        self.assertTrue(log_path.exists())


if __name__ == "__main__":
    unittest.main()
