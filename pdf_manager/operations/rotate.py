"""Page rotation."""

from __future__ import annotations

import logging
from typing import Iterable

from ..core.document import Document
from ..core.pagetree import inherited
from ..exceptions import InvalidRotationError
from .common import select_pages

LOGGER = logging.getLogger("pdf_manager.rotate")


def normalize_rotation(angle: int) -> int:
    """Reduce ``angle`` into ``{0, 90, 180, 270}``."""

    angle %= 360
    return angle - angle % 90


def _current_rotation(document: Document, page) -> int:
    value = document.resolve(inherited(document, page, "Rotate"))
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return int(value)


def rotate(document: Document, pages: Iterable[int], rotation: int) -> Document:
    """Add *rotation* degrees to the ``/Rotate`` of each selected page.

    An empty selection rotates every page.

    Raises:
        InvalidRotationError: If *rotation* is not a multiple of 90.
        PageOutOfRangeError: If a page number exceeds the page count.
    """

    if isinstance(rotation, bool) or not isinstance(rotation, int) or rotation % 90:
        raise InvalidRotationError(f"Invalid rotation angle {rotation}. Must be a multiple of 90.")

    result = document.copy()
    selection = select_pages(result, pages, allow_empty=True)
    if not selection:
        LOGGER.info("No pages selected; rotating all %d pages", result.page_count)
        selection = list(enumerate(result.page_refs, start=1))

    for number, ref in selection:
        current = _current_rotation(result, ref)
        updated = normalize_rotation(current + rotation)
        node = dict(result.objects[ref])
        node["Rotate"] = updated
        result.set(ref, node)
        LOGGER.debug("Page %d rotation %d -> %d", number, current, updated)

    LOGGER.info("Rotated %d pages by %d degrees", len(selection), rotation)
    return result


__all__ = ["normalize_rotation", "rotate"]
