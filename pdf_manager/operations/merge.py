"""Merge several documents into one."""

from __future__ import annotations

import logging
from typing import List, Sequence

from ..core.copier import ObjectCopier, copy_info
from ..core.document import Document
from ..core.objects import Name, Reference
from ..exceptions import InsufficientInputError
from .common import version_key

LOGGER = logging.getLogger("pdf_manager.merge")


def merge(documents: Sequence[Document], *, metadata: bool = True) -> Document:
    """Concatenate the pages of *documents* into a new document.

    Args:
        documents: At least two source documents, in output order.
        metadata: When ``True`` the Info dictionary of the first document is
            copied into the result.

    Raises:
        InsufficientInputError: If fewer than two documents are supplied.
    """

    if len(documents) < 2:
        raise InsufficientInputError(
            f"At least two PDF documents are required to merge, got {len(documents)}."
        )

    version = max((document.version for document in documents), key=version_key)
    result = Document.empty(version)
    pages_ref = result.pages_ref

    kids: List[Reference] = []
    for index, source in enumerate(documents, start=1):
        source_pages = source.page_refs
        if not source_pages:
            LOGGER.info("Document %d has no pages; nothing to copy", index)
            continue
        LOGGER.debug("Copying %d pages from document %d", len(source_pages), index)
        kids.extend(ObjectCopier(source, result).copy_pages(source_pages, pages_ref))

    result.set(pages_ref, {"Type": Name("Pages"), "Kids": kids, "Count": len(kids)})

    if metadata:
        copy_info(documents[0], result)

    LOGGER.info("Merged %d documents into %d pages", len(documents), len(kids))
    return result


__all__ = ["merge"]
