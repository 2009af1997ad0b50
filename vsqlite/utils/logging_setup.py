"""Logging configuration for vsqlite."""
from __future__ import annotations
import logging
import sys
from typing import Optional

DEFAULT_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'

def configure_logging(level: str = "WARNING",
                      log_file: Optional[str] = None,
                      format_str: Optional[str] = None) -> None:
    """Configure logging with consistent format and options.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path to write logs to
        format_str: Optional custom format string
    """
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")

    log_format = format_str or DEFAULT_FORMAT
    handlers = []

    # Console handler; results go to stdout so diagnostics stay on stderr
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter(log_format))
    handlers.append(console_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(logging.Formatter(log_format))
            handlers.append(file_handler)
        except OSError as e:
            print(f"Warning: Could not configure log file: {e}", file=sys.stderr)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    for handler in handlers:
        root_logger.addHandler(handler)

    # Keep library chatter out of DEBUG sessions
    logging.getLogger("duckdb").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("prompt_toolkit").setLevel(logging.WARNING)
