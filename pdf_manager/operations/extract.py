"""Split and single-page extraction."""

from __future__ import annotations

import logging
from typing import Iterable

from ..core.copier import ObjectCopier, copy_info
from ..core.document import Document
from ..core.objects import Name
from .common import select_pages

LOGGER = logging.getLogger("pdf_manager.extract")


def extract(document: Document, pages: Iterable[int]) -> Document:
    """Return a new document holding only *pages* (1-based).

    Pages are emitted in ascending order whatever order they are requested
    in. Only objects reachable from the selected pages are copied.

    Raises:
        EmptySelectionError: If *pages* is empty.
        PageOutOfRangeError: If a page number exceeds the page count.
    """

    selection = select_pages(document, pages)
    result = Document.empty(document.version)
    pages_ref = result.pages_ref

    kids = ObjectCopier(document, result).copy_pages([ref for _, ref in selection], pages_ref)
    result.set(pages_ref, {"Type": Name("Pages"), "Kids": kids, "Count": len(kids)})
    copy_info(document, result)

    LOGGER.info("Extracted pages %s", ", ".join(str(number) for number, _ in selection))
    return result


def extract_page(document: Document, page: int) -> Document:
    return extract(document, [page])


__all__ = ["extract", "extract_page"]
