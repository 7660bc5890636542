"""Page selection helpers shared by the operations."""

from __future__ import annotations

from typing import Iterable, List, Tuple

from ..core.document import Document
from ..core.objects import Reference
from ..exceptions import EmptySelectionError, PageOutOfRangeError


def select_pages(
    document: Document, pages: Iterable[int], *, allow_empty: bool = False
) -> List[Tuple[int, Reference]]:
    """Return ``(page number, page reference)`` pairs in ascending order.

    Raises:
        EmptySelectionError: If ``pages`` is empty and ``allow_empty`` is false.
        PageOutOfRangeError: If a page number is below 1 or above the page count.
    """

    selection = sorted(set(pages))
    if not selection and not allow_empty:
        raise EmptySelectionError()

    refs = document.page_refs
    for number in selection:
        if number < 1 or number > len(refs):
            raise PageOutOfRangeError(page=number, page_count=len(refs))
    return [(number, refs[number - 1]) for number in selection]


def version_key(version: str) -> Tuple[int, ...]:
    parts = []
    for part in version.split("."):
        parts.append(int(part) if part.isdigit() else 0)
    return tuple(parts)
