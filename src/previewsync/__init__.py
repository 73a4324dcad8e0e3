"""previewsync - map preview selections and search hits onto a rich-text editor.

Selecting text in a sanitised, read-only HTML preview locates and highlights
the same span inside a separately maintained editor buffer. Free-text search
over the preview marks every hit and cycles through them.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

__version__ = "0.1.0"

# Handler names identify what configure_logging() installed on the root logger
_FILE_HANDLER = "previewsync.file"
_CONSOLE_HANDLER = "previewsync.console"


def _installed(name: str) -> logging.Handler | None:
    for handler in logging.getLogger().handlers:
        if handler.get_name() == name:
            return handler
    return None


def configure_logging(log_dir: Path | None = None, level: str = "INFO") -> Path:
    """Send log records to a rotating file and to the console.

    Safe to call more than once: later calls only adjust the console level
    and keep the log file chosen by the first call.

    Args:
        log_dir: Directory for log files. Created if missing.
        level: Console log level name.

    Returns:
        Path of the log file in use.
    """
    root_logger = logging.getLogger()
    console_handler = _installed(_CONSOLE_HANDLER)
    file_handler = _installed(_FILE_HANDLER)

    if console_handler is None:
        console_handler = logging.StreamHandler()
        console_handler.set_name(_CONSOLE_HANDLER)
        console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        root_logger.addHandler(console_handler)
    console_handler.setLevel(level.upper())

    if isinstance(file_handler, RotatingFileHandler):
        return Path(file_handler.baseFilename)

    log_dir = log_dir or Path("logs")
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"previewsync.{os.getpid()}.log"

    # 10 MB per file, five backups
    file_handler = RotatingFileHandler(
        log_file, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"
    )
    file_handler.set_name(_FILE_HANDLER)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(levelname)s [%(name)s] %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )
    root_logger.addHandler(file_handler)
    root_logger.setLevel(logging.DEBUG)

    logging.getLogger(__name__).info("Logging to %s", log_file.absolute())
    return log_file
