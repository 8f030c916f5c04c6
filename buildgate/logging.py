"""Logging setup shared by the check and build stages."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

_LOGGER_NAME = "buildgate"
_CONSOLE_FORMAT = "[buildgate] %(levelname)s %(message)s"
# Log files outlive the pipeline step, so they carry timestamps and component names.
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a component logger, e.g. ``buildgate.materializer``."""
    return logging.getLogger(f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Send buildgate logs to stderr and, when ``log_file`` is given, append them there too."""
    level = logging.DEBUG if verbose else logging.INFO

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    handlers[0].setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        handlers.append(file_handler)

    logger = logging.getLogger(_LOGGER_NAME)
    for stale in list(logger.handlers):
        logger.removeHandler(stale)
        stale.close()
    for handler in handlers:
        handler.setLevel(level)
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger


def log_params(logger: logging.Logger, title: str, params: dict[str, object]) -> None:
    """Emit one INFO line per parameter so pipeline logs show the exact inputs."""
    logger.info("%s with params:", title)
    for key, value in params.items():
        logger.info("- %s: %s", key, value)


__all__ = ["configure_logging", "get_logger", "log_params"]
