"""Output folder helpers."""

from __future__ import annotations

import logging
from pathlib import Path
import shutil


logger = logging.getLogger(__name__)


def ensure_directory(path: Path | str) -> Path:
    """Create ``path`` and its parents when missing."""
    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def copy_files(source: Path | str, target: Path | str) -> list[Path]:
    """Mirror ``source`` into ``target`` without overwriting existing files.

    Returns the files that were actually copied. Files already present in the
    target are left alone so local edits of copied styles survive rebuilds.
    """
    source_dir = Path(source)
    target_dir = ensure_directory(target)
    copied: list[Path] = []
    for entry in sorted(source_dir.iterdir()):
        destination = target_dir / entry.name
        if entry.is_dir():
            copied.extend(copy_files(entry, destination))
        elif not destination.exists():
            shutil.copy2(entry, destination)
            copied.append(destination)
        else:
            logger.debug("Keeping existing file %s", destination)
    return copied


__all__ = ["copy_files", "ensure_directory"]
