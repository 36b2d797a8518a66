"""Centralized logging configuration for ThreeDPrintManager."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    log_dir: Path | None = None,
    level: str = "INFO",
    log_file_prefix: str = "printmanager",
) -> logging.Logger:
    """
    Configure logging for the application.

    Sets up console logging and, when ``log_dir`` is given, a rotating log
    file that keeps at most 4 previous files. Only configures if not already
    configured to avoid duplicate handlers.

    Args:
        log_dir: Directory for the log file (no file logging if None)
        level: Log level name, e.g. "INFO" or "DEBUG"
        log_file_prefix: Prefix for the log file name (default: "printmanager")

    Returns:
        Logger instance for the calling module
    """
    root_logger = logging.getLogger()

    # Only configure if not already configured (avoid duplicate handlers)
    if root_logger.handlers:
        return logging.getLogger(__name__)

    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        # 5 MB per file, 4 backups
        file_handler = RotatingFileHandler(
            log_dir / f"{log_file_prefix}.log",
            mode="a",
            maxBytes=5 * 1024 * 1024,
            backupCount=4,
            encoding="utf-8",
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    root_logger.setLevel(log_level)

    return logging.getLogger(__name__)
