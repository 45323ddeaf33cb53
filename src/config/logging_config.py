# src/config/logging_config.py

"""Per-run logging for the canmade_search server and CLI.

Every launch writes ``logs/run_<timestamp>.log``. The ``canmade_search``
logger tree records DEBUG and up there (candidate rejections, retry
decisions, rate-limit store faults). Warnings from the HTTP server and
the provider and store client libraries are copied into the same file,
so a failed search can be traced without the console.

The console threshold comes from ``CONSOLE_LOG_LEVEL`` (WARNING by
default), which keeps provider timeouts visible while a CLI table or
uvicorn's own access log stays readable.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from src.config.settings import Settings

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | "
    "%(message)s"
)

_CONSOLE_FORMAT = "%(levelname)-8s %(name)s: %(message)s"

_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_ROOT = "canmade_search"
_LIBRARY_HANDLER = "canmade_search.run_file"


def _existing_log_file(logger: logging.Logger) -> Path | None:
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler):
            return Path(handler.baseFilename)
    return None


def _attach_library_loggers(file_handler: logging.Handler) -> None:
    """Copy third-party warnings into the run file, replacing older runs."""
    file_handler.set_name(_LIBRARY_HANDLER)
    for name in Settings.LIBRARY_LOGGERS:
        library_logger = logging.getLogger(name)
        for handler in list(library_logger.handlers):
            if handler.get_name() == _LIBRARY_HANDLER:
                library_logger.removeHandler(handler)
                handler.close()
        library_logger.addHandler(file_handler)


def setup_logging() -> Path:
    """Configure the ``canmade_search`` logger tree for this process.

    Safe to call more than once (tests, uvicorn reload): later calls
    reuse the file opened by the first.

    Returns:
        The path of this run's log file.
    """
    root_logger = logging.getLogger(_ROOT)
    root_logger.setLevel(logging.DEBUG)

    existing = _existing_log_file(root_logger)
    if existing is not None:
        return existing

    Settings.LOGS_DIR.mkdir(parents=True, exist_ok=True)
    log_file = (
        Settings.LOGS_DIR
        / f"run_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
    )

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT)
    )
    root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(
        logging.getLevelNamesMapping().get(
            Settings.CONSOLE_LOG_LEVEL, logging.WARNING
        )
    )
    console_handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    root_logger.addHandler(console_handler)

    # Library records reach the file only, at WARNING and above
    library_handler = logging.FileHandler(log_file, encoding="utf-8")
    library_handler.setLevel(logging.WARNING)
    library_handler.setFormatter(
        logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT)
    )
    _attach_library_loggers(library_handler)

    root_logger.info(
        "Logging to %s (console level %s)",
        log_file,
        logging.getLevelName(console_handler.level),
    )
    return log_file
