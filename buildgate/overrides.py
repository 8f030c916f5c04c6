"""Copy override files into a fresh clone."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import List

from .errors import CollaboratorError
from .logging import get_logger

_logger = get_logger("overrides")


def copy_override_files(override_dir: Path, clone_path: Path) -> List[Path]:
    """Copy every file under ``override_dir`` to the same relative path in the clone.

    Returns the destination paths. A missing override directory is not an error.
    """
    if not override_dir.is_dir():
        _logger.info("Skipping override files. No override dir exists at %s", override_dir)
        return []

    _logger.info("Adding files from %s to %s", override_dir, clone_path)
    copied: List[Path] = []
    for source in sorted(override_dir.rglob("*")):
        if not source.is_file():
            continue
        destination = clone_path / source.relative_to(override_dir)
        _logger.info("%s -> %s", source, destination)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, destination)
        except OSError as exc:
            raise CollaboratorError("override copy", exc) from exc
        copied.append(destination)
    _logger.info("Finished adding %d override files", len(copied))
    return copied


__all__ = ["copy_override_files"]
