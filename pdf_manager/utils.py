"""Utilities shared by the PDF Manager entry points."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from .exceptions import NoSuchFileError, PDFIOError

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
    return logger


def configure_logging(level: int | str = logging.WARNING) -> logging.Logger:
    """Attach a stream handler to the ``pdf_manager`` logger tree."""

    logger = get_logger("pdf_manager")
    logger.setLevel(level)
    return logger


def resolve_path(path: str | Path | None) -> Path:
    if path is None:
        raise ValueError("Path must not be None")
    return Path(path).expanduser().resolve()


def ensure_input_file(path: str | Path) -> Path:
    """Return ``path`` resolved, raising :class:`NoSuchFileError` if it is not a file."""

    resolved = resolve_path(path)
    if not resolved.exists():
        raise NoSuchFileError(f"File not found: {path}")
    if not resolved.is_file():
        raise NoSuchFileError(f"Path is not a file: {path}")
    return resolved


def read_file(path: str | Path) -> bytes:
    resolved = ensure_input_file(path)
    try:
        return resolved.read_bytes()
    except OSError as exc:
        raise PDFIOError(f"Cannot read {path}: {exc}") from exc


def atomic_write(path: str | Path, data: bytes) -> Path:
    """Write ``data`` next to ``path`` and move it into place.

    The destination either keeps its previous content or receives the full
    new content; a partially written file never appears at ``path``.
    """

    destination = resolve_path(path)
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        tmp_file = tempfile.NamedTemporaryFile(
            dir=destination.parent, prefix=f".{destination.name}.", suffix=".tmp", delete=False
        )
    except OSError as exc:
        raise PDFIOError(f"Cannot write {path}: {exc}") from exc

    temp_path = Path(tmp_file.name)
    try:
        with tmp_file:
            tmp_file.write(data)
        os.replace(temp_path, destination)
    except OSError as exc:
        temp_path.unlink(missing_ok=True)
        raise PDFIOError(f"Cannot write {path}: {exc}") from exc
    return destination


def format_file_size(size_bytes: float) -> str:
    """
    Format file size in human-readable format.

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string (e.g., "1.5 MB", "500.0 B")
    """
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if size_bytes < 1024.0:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024.0
    return f"{size_bytes:.1f} PB"
