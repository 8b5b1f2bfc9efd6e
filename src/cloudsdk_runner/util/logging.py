"""Logging setup for cloudsdk-runner and the processes it launches.

Output lines of launched processes are logged under their own logger tree,
``cloudsdk_runner.process``, so their verbosity can be tuned apart from the
library's diagnostics.
"""

from __future__ import annotations

import logging
from typing import Final

DEFAULT_LOG_FORMAT: Final[str] = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
PROCESS_LOGGER: Final[str] = "cloudsdk_runner.process"
STDOUT_LOGGER: Final[str] = f"{PROCESS_LOGGER}.stdout"
STDERR_LOGGER: Final[str] = f"{PROCESS_LOGGER}.stderr"
_LEVELS: Final[dict[str, int]] = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


def configure_logging(
    level: str = "INFO",
    fmt: str | None = None,
    *,
    process_output_level: str | None = None,
) -> None:
    """Configure application logging.

    Args:
        level: Logging level name (e.g., "INFO", "DEBUG").
        fmt: Optional logging format string.
        process_output_level: Level for the lines of launched processes.
            None lets them follow ``level``.
    """

    logging.basicConfig(
        level=normalize_level(level),
        format=fmt or DEFAULT_LOG_FORMAT,
    )
    process_logger = logging.getLogger(PROCESS_LOGGER)
    if process_output_level is None:
        process_logger.setLevel(logging.NOTSET)
    else:
        process_logger.setLevel(normalize_level(process_output_level))


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the given module or component."""

    return logging.getLogger(name)


def stream_logger(stream: str) -> logging.Logger:
    """Return the logger receiving a launched process's ``stdout`` or ``stderr`` lines."""

    if stream == "stdout":
        return logging.getLogger(STDOUT_LOGGER)
    if stream == "stderr":
        return logging.getLogger(STDERR_LOGGER)
    raise ValueError(f"Unknown process stream: {stream!r}")


def normalize_level(level: str) -> int:
    """Map a level name to its numeric value, falling back to INFO."""

    return _LEVELS.get(level.strip().upper(), logging.INFO)
