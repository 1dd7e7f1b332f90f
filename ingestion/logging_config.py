"""
Logging setup shared by the CLI and the HTTP services.

Modules log through ``logging.getLogger(__name__)``; ``setup_logging``
configures the root logger once. The level can come from the ``LOG_LEVEL``
environment variable.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional, TextIO, Union

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# HTTP client libraries log every request at INFO.
NOISY_LOGGERS = ("httpx", "httpcore", "urllib3")


def resolve_level(level: Union[int, str, None], default: int = logging.INFO) -> int:
    """Accept ``logging.DEBUG``, ``"debug"`` or ``"DEBUG"``; None reads LOG_LEVEL."""
    if level is None:
        level = os.environ.get("LOG_LEVEL") or default
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def setup_logging(
    level: Union[int, str, None] = None,
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Configure the root logger.

    Args:
        level: Level name or number; defaults to LOG_LEVEL, then INFO
        log_file: Also append records to this file (parent dirs are created)
        format_string: Record format (default: DEFAULT_FORMAT)
        stream: Console stream (default: stderr, so stdout stays parseable)

    Returns:
        The root logger
    """
    numeric_level = resolve_level(level)
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT, datefmt=DATE_FORMAT)

    root = logging.getLogger()
    root.setLevel(numeric_level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler(stream or sys.stderr)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    return root
