"""File-based skip status handed from the check stage to the build stage."""

from __future__ import annotations

from pathlib import Path

from .errors import CollaboratorError
from .logging import get_logger

SKIPPED_STATUS = "Skipped"

_logger = get_logger("status")


def write_status(path: Path, content: str) -> None:
    """Write ``content`` verbatim, replacing any previous status."""
    try:
        path.write_bytes(content.encode("utf-8"))
    except OSError as exc:
        raise CollaboratorError("skip status write", exc) from exc


def write_skip_status(path: Path) -> None:
    _logger.info("Setting %s in status file %s", SKIPPED_STATUS, path)
    write_status(path, SKIPPED_STATUS)


def is_build_skipped(path: Path) -> bool:
    """Return True only when the file holds exactly ``Skipped``.

    A missing file means the build proceeds. The file is left in place.
    """
    _logger.info("Checking status file %s for skipped status", path)
    try:
        content = path.read_bytes()
    except FileNotFoundError:
        _logger.info("No status file found; continuing build")
        return False
    except OSError as exc:
        raise CollaboratorError("skip status read", exc) from exc
    return content == SKIPPED_STATUS.encode("ascii")


__all__ = ["SKIPPED_STATUS", "is_build_skipped", "write_skip_status", "write_status"]
