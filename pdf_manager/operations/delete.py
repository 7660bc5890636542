"""Page deletion."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable

from ..core.document import Document
from ..core.objects import Name, Reference
from ..exceptions import MalformedPdfError
from .common import select_pages

LOGGER = logging.getLogger("pdf_manager.delete")


def _remove_kid(document: Document, parent: Reference, child: Reference) -> int:
    """Drop ``child`` from ``parent``'s kids and return how many remain."""

    node = dict(document.resolve(parent))
    kids_value: Any = node.get("Kids")
    kids = document.resolve(kids_value)
    if not isinstance(kids, list):
        raise MalformedPdfError(f"Page tree node {parent} has an invalid /Kids entry")
    remaining = [kid for kid in kids if kid != child]
    if isinstance(kids_value, Reference):
        document.set(kids_value, remaining)
    else:
        node["Kids"] = remaining
        document.set(parent, node)
    return len(remaining)


def _decrement_count(document: Document, node_ref: Reference) -> None:
    node = dict(document.resolve(node_ref))
    count = node.get("Count")
    if isinstance(count, int) and not isinstance(count, bool):
        node["Count"] = max(count - 1, 0)
        document.set(node_ref, node)


def delete(document: Document, pages: Iterable[int], *, prune: bool = True) -> Document:
    """Return a copy of *document* without *pages* (1-based).

    Surviving pages keep their object identities. When *prune* is true,
    objects left unreachable by the deletion are dropped.

    Raises:
        EmptySelectionError: If *pages* is empty.
        PageOutOfRangeError: If a page number exceeds the page count.
    """

    result = document.copy()
    selection = select_pages(result, pages)
    parents: Dict[Reference, Reference] = result.page_parents
    root = result.pages_ref

    if len(selection) == result.page_count:
        LOGGER.warning("Deleting every page; the result has an empty page tree")

    for number, page in selection:
        LOGGER.debug("Deleting page %d (%s)", number, page)
        if page == root:
            catalog = dict(result.catalog)
            catalog["Pages"] = result.add({"Type": Name("Pages"), "Kids": [], "Count": 0})
            result.set(result.root_ref, catalog)
            continue

        ancestor = parents.get(page)
        while ancestor is not None:
            _decrement_count(result, ancestor)
            ancestor = parents.get(ancestor)

        child = page
        parent = parents.get(child)
        while parent is not None:
            if _remove_kid(result, parent, child) or parent == root:
                break
            LOGGER.debug("Removing empty page tree node %s", parent)
            child = parent
            parent = parents.get(child)

    if prune:
        result = result.pruned()

    LOGGER.info("Deleted %d pages; %d remain", len(selection), result.page_count)
    return result


__all__ = ["delete"]
