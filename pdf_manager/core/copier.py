"""Copy object closures between documents under fresh identities."""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .document import Document
from .objects import (
    INHERITABLE_PAGE_KEYS,
    Reference,
    Stream,
    iter_references,
    map_references,
    type_of,
)
from .pagetree import inherited

LOGGER = logging.getLogger("pdf_manager.copier")

_TREE_TYPES = ("Page", "Pages")


def _outgoing(value: Any) -> Iterable[Reference]:
    # Page and tree nodes point back up through /Parent; that edge is never
    # followed so the closure stays below the copied pages.
    if type_of(value) in _TREE_TYPES:
        dictionary = value.dictionary if isinstance(value, Stream) else value
        for key, item in dictionary.items():
            if key != "Parent":
                yield from iter_references(item)
        return
    yield from iter_references(value)


class ObjectCopier:
    """Copies objects from ``source`` into ``target``.

    Every copied object receives a new number in ``target``; references
    inside copied objects are rewritten to the new identities, and references
    leaving the copied closure become null.
    """

    def __init__(self, source: Document, target: Document) -> None:
        self.source = source
        self.target = target

    def _flatten_page(self, page: Reference) -> Dict[str, Any]:
        node = dict(self.source.resolve(page))
        for key in INHERITABLE_PAGE_KEYS:
            if key not in node:
                value = inherited(self.source, page, key)
                if value is not None:
                    node[key] = value
        node.pop("Parent", None)
        return node

    def _closure(self, roots: Sequence[Reference], overrides: Dict[Reference, Any]) -> List[Reference]:
        order: List[Reference] = []
        seen = set(roots)
        queue = deque(roots)
        while queue:
            ref = queue.popleft()
            if ref in overrides:
                value = overrides[ref]
            elif ref in self.source.objects:
                value = self.source.objects[ref]
                if type_of(value) in _TREE_TYPES:
                    # Pages outside the selection (e.g. link targets) are not copied.
                    continue
            else:
                LOGGER.warning("Object %s is referenced but missing; it is copied as null", ref)
                continue
            order.append(ref)
            for child in _outgoing(value):
                if child not in seen:
                    seen.add(child)
                    queue.append(child)
        return order

    def _copy(self, roots: Sequence[Reference], overrides: Dict[Reference, Any]) -> Dict[Reference, Optional[Reference]]:
        order = self._closure(roots, overrides)
        start = self.target.next_number()
        mapping: Dict[Reference, Optional[Reference]] = {
            ref: Reference(start + index) for index, ref in enumerate(order)
        }
        for ref in order:
            value = overrides[ref] if ref in overrides else self.source.objects[ref]
            self.target.objects[mapping[ref]] = map_references(value, mapping)
        self.target.invalidate()
        LOGGER.debug("Copied %s objects into objects %s..%s", len(order), start, start + len(order) - 1)
        return mapping

    def copy_pages(self, pages: Sequence[Reference], parent: Reference) -> List[Reference]:
        """Copy ``pages`` with their resources and content under ``parent``.

        Inherited attributes are flattened onto each copied page. Returns the
        new page references in the order given.
        """

        overrides = {page: self._flatten_page(page) for page in pages}
        mapping = self._copy(list(pages), overrides)
        copied = []
        for page in pages:
            new_ref = mapping[page]
            self.target.objects[new_ref]["Parent"] = parent
            copied.append(new_ref)
        return copied

    def copy_value(self, value: Any) -> Any:
        """Copy ``value`` and every object it references; return its new form."""

        if isinstance(value, Reference):
            return self._copy([value], {}).get(value)
        roots = list(dict.fromkeys(iter_references(value)))
        mapping = self._copy(roots, {})
        return map_references(value, mapping)


def copy_info(source: Document, target: Document) -> None:
    """Copy the source Info dictionary into ``target``'s trailer."""

    info = source.trailer.get("Info")
    if info is None or not isinstance(source.resolve(info), dict):
        return
    copied = ObjectCopier(source, target).copy_value(info)
    if isinstance(copied, dict):
        copied = target.add(copied)
    if isinstance(copied, Reference):
        target.trailer["Info"] = copied


__all__ = ["ObjectCopier", "copy_info"]
