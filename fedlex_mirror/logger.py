# === FILE: fedlex_mirror/logger.py ===
"""Project logger of the **fedlex_mirror** tools.

Both worker pools report progress through :data:`logger`, so console output
goes to *stdout*; diagnostics of a long mirror run can additionally be kept
in a rotating file::

    from fedlex_mirror.logger import logger
    logger.info("Fetch started")

The CLI calls :func:`configure` once per invocation; calling it again
replaces the previous handlers.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Union

DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOGGER_NAME: Final[str] = "FedlexMirror"

LOG_FILE_MAX_BYTES: Final[int] = 5 * 1024 * 1024
LOG_FILE_BACKUPS: Final[int] = 3


def configure(
    level: Union[int, str] = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Attach a stdout handler (and a rotating file handler if *log_file* is given)."""
    formatter = logging.Formatter(log_format)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(RotatingFileHandler(
            filename=str(log_file),
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding="utf-8",
        ))

    lg = logging.getLogger(LOGGER_NAME)
    for old in lg.handlers[:]:
        lg.removeHandler(old)
        old.close()
    for handler in handlers:
        handler.setFormatter(formatter)
        lg.addHandler(handler)
    lg.setLevel(level)
    lg.propagate = False
    return lg


logger: logging.Logger = configure()

__all__ = ["logger", "configure", "LOGGER_NAME", "DEFAULT_FORMAT"]
