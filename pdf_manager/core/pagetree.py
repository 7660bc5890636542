"""Page tree traversal and inherited attribute lookup."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from ..exceptions import MalformedPdfError
from .filters import decode_stream
from .objects import Reference, Stream, Unresolved, type_of

if TYPE_CHECKING:  # pragma: no cover
    from .document import Document

LOGGER = logging.getLogger("pdf_manager.pagetree")


def _is_leaf(node: Dict[str, Any]) -> bool:
    marker = type_of(node)
    if marker == "Page":
        return True
    return "Kids" not in node and marker != "Pages"


def walk_pages(document: "Document") -> Tuple[List[Reference], Dict[Reference, Reference]]:
    """Enumerate page leaves in depth-first, left-to-right order.

    Returns the ordered page references and a map from every visited node to
    the tree node that listed it as a kid.

    Raises:
        MalformedPdfError: If the tree is missing, contains a non-dictionary
            node, an unresolved kid, or visits a node twice.
    """

    root = document.catalog.get("Pages")
    if not isinstance(root, Reference):
        raise MalformedPdfError("Document catalog does not reference a page tree")

    pages: List[Reference] = []
    parents: Dict[Reference, Reference] = {}
    visited: set[Reference] = set()
    stack: List[Tuple[Reference, Optional[Reference]]] = [(root, None)]

    while stack:
        ref, parent = stack.pop()
        if ref in visited:
            raise MalformedPdfError(f"Page tree revisits object {ref}; the tree contains a cycle")
        visited.add(ref)

        node = document.resolve(ref)
        if isinstance(node, Unresolved):
            raise MalformedPdfError(f"Page tree references missing object {ref}")
        if not isinstance(node, dict):
            raise MalformedPdfError(f"Page tree node {ref} is not a dictionary")
        if parent is not None:
            parents[ref] = parent

        if _is_leaf(node):
            pages.append(ref)
            continue

        kids = document.resolve(node.get("Kids", []))
        if not isinstance(kids, list):
            raise MalformedPdfError(f"Page tree node {ref} has an invalid /Kids entry")
        for kid in reversed(kids):
            if not isinstance(kid, Reference):
                raise MalformedPdfError(f"Page tree node {ref} lists a kid that is not a reference")
            stack.append((kid, ref))

    LOGGER.debug("Page tree walk found %s pages across %s nodes", len(pages), len(visited))
    return pages, parents


def inherited(document: "Document", page: Reference, key: str) -> Any:
    """Return ``key`` from ``page`` or the nearest ancestor carrying it.

    ``None`` is returned when no node on the chain defines the attribute.
    """

    visited: set[Reference] = set()
    current: Any = page
    while isinstance(current, Reference) and current not in visited:
        visited.add(current)
        node = document.resolve(current)
        if not isinstance(node, dict):
            return None
        if key in node:
            return node[key]
        current = node.get("Parent")
    return None


def page_content(document: "Document", page: Reference) -> bytes:
    """Concatenate the decoded payloads of a page's content streams."""

    node = document.resolve(page)
    if not isinstance(node, dict):
        return b""
    contents = document.resolve(node.get("Contents"))
    if not isinstance(contents, list):
        contents = [contents]
    chunks = []
    for item in contents:
        stream = document.resolve(item)
        if isinstance(stream, Stream):
            chunks.append(decode_stream(stream, document.resolve))
    return b"".join(chunks)


__all__ = ["inherited", "page_content", "walk_pages"]
