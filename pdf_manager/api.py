"""Path-level entry points: load, transform, write.

Every function is all-or-nothing. Inputs are fully loaded and transformed
before anything is written, and the output is placed atomically, so a
failure never leaves a partial file at the destination.

Merge, split and extract outputs Flate-compress their unfiltered streams
unless ``Settings.compress`` is off.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional, Sequence, Union

from .config import Settings
from .core.document import Document
from .core.loader import load
from .core.serializer import write_file
from .exceptions import InsufficientInputError
from .operations import delete, extract, extract_page, get_metadata, merge, rotate
from .pagespec import expand_page_ranges, parse_page_ranges
from .types import OperationResult
from .utils import read_file

LOGGER = logging.getLogger("pdf_manager.api")

PathLike = Union[str, Path]


def _settings(settings: Optional[Settings]) -> Settings:
    return settings if settings is not None else Settings.from_env()


def load_file(path: PathLike, *, settings: Optional[Settings] = None) -> Document:
    """Read and parse the PDF at ``path``.

    Raises:
        NoSuchFileError: If ``path`` is not an existing file.
        PDFIOError: If the file cannot be read.
        MalformedPdfError: If the bytes are not a loadable PDF.
    """

    settings = _settings(settings)
    data = read_file(path)
    LOGGER.debug("Loading %s (%d bytes)", path, len(data))
    return load(data, strict=settings.strict)


def _write(document: Document, output: PathLike, settings: Settings, *, compress: bool = False) -> Path:
    destination = write_file(document, output, xref_format=settings.xref_format, compress=compress)
    LOGGER.debug("Wrote %s", destination)
    return destination


def read_metadata(path: PathLike, *, settings: Optional[Settings] = None) -> Dict[str, str]:
    """Return the Info dictionary of the PDF at ``path`` as text."""

    return get_metadata(load_file(path, settings=settings))


def merge_files(
    paths: Sequence[PathLike],
    output: PathLike,
    *,
    metadata: bool = True,
    settings: Optional[Settings] = None,
) -> OperationResult:
    """Merge ``paths`` in order into ``output``.

    The result's ``page_count`` is the page count of the merged file.
    """

    if len(paths) < 2:
        raise InsufficientInputError(f"At least two PDF documents are required to merge, got {len(paths)}.")
    settings = _settings(settings)
    documents = [load_file(path, settings=settings) for path in paths]
    merged = merge(documents, metadata=metadata)
    destination = _write(merged, output, settings, compress=settings.compress)
    LOGGER.info("Merged %d PDFs into %s", len(paths), destination)
    return OperationResult("merge", destination, merged.page_count)


def split_file(
    path: PathLike, spec: str, output: PathLike, *, settings: Optional[Settings] = None
) -> OperationResult:
    """Write the pages selected by ``spec`` into ``output``."""

    settings = _settings(settings)
    ranges = parse_page_ranges(spec)
    document = load_file(path, settings=settings)
    pages = expand_page_ranges(ranges, page_count=document.page_count)
    extracted = extract(document, pages)
    destination = _write(extracted, output, settings, compress=settings.compress)
    return OperationResult("split", destination, extracted.page_count, pages)


def extract_page_file(
    path: PathLike, page: int, output: PathLike, *, settings: Optional[Settings] = None
) -> OperationResult:
    """Write the single page ``page`` into ``output``."""

    settings = _settings(settings)
    document = load_file(path, settings=settings)
    extracted = extract_page(document, page)
    destination = _write(extracted, output, settings, compress=settings.compress)
    return OperationResult("extract-page", destination, extracted.page_count, [page])


def rotate_file(
    path: PathLike,
    spec: str,
    rotation: int,
    output: PathLike,
    *,
    settings: Optional[Settings] = None,
) -> OperationResult:
    """Rotate the pages selected by ``spec`` (all pages when blank)."""

    settings = _settings(settings)
    ranges = parse_page_ranges(spec)
    document = load_file(path, settings=settings)
    pages = expand_page_ranges(ranges, page_count=document.page_count)
    rotated = rotate(document, pages, rotation)
    destination = _write(rotated, output, settings)
    return OperationResult("rotate", destination, rotated.page_count, pages)


def delete_pages_file(
    path: PathLike, spec: str, output: PathLike, *, settings: Optional[Settings] = None
) -> OperationResult:
    """Remove the pages selected by ``spec`` and write the rest to ``output``."""

    settings = _settings(settings)
    ranges = parse_page_ranges(spec)
    document = load_file(path, settings=settings)
    pages = expand_page_ranges(ranges, page_count=document.page_count)
    remaining = delete(document, pages, prune=settings.prune)
    destination = _write(remaining, output, settings)
    return OperationResult("delete", destination, remaining.page_count, pages)


__all__ = [
    "delete_pages_file",
    "extract_page_file",
    "load_file",
    "merge_files",
    "read_metadata",
    "rotate_file",
    "split_file",
]
