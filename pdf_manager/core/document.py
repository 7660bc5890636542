"""In-memory PDF document: an object arena plus its trailer anchors."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from ..exceptions import MalformedPdfError
from .objects import Name, Reference, Unresolved, iter_references
from .pagetree import walk_pages

LOGGER = logging.getLogger("pdf_manager.document")

DEFAULT_VERSION = "1.7"


@dataclass
class Document:
    """A PDF document held as an identity-keyed object map.

    Operations never mutate a document they receive; they work on
    :meth:`copy` and return the result.
    """

    objects: Dict[Reference, Any] = field(default_factory=dict)
    trailer: Dict[str, Any] = field(default_factory=dict)
    version: str = DEFAULT_VERSION
    _pages: Optional[List[Reference]] = field(default=None, init=False, repr=False, compare=False)
    _parents: Optional[Dict[Reference, Reference]] = field(
        default=None, init=False, repr=False, compare=False
    )

    @classmethod
    def empty(cls, version: str = DEFAULT_VERSION) -> "Document":
        """Create a document with an empty page tree.

        The page tree root is object 1 and the catalog object 2.
        """

        pages_ref = Reference(1)
        catalog_ref = Reference(2)
        document = cls(version=version)
        document.objects[pages_ref] = {"Type": Name("Pages"), "Kids": [], "Count": 0}
        document.objects[catalog_ref] = {"Type": Name("Catalog"), "Pages": pages_ref}
        document.trailer["Root"] = catalog_ref
        return document

    # ------------------------------------------------------------------
    # Anchors
    # ------------------------------------------------------------------
    @property
    def root_ref(self) -> Reference:
        root = self.trailer.get("Root")
        if not isinstance(root, Reference):
            raise MalformedPdfError("Trailer does not reference a document catalog")
        return root

    @property
    def catalog(self) -> Dict[str, Any]:
        catalog = self.resolve(self.root_ref)
        if not isinstance(catalog, dict):
            raise MalformedPdfError(f"Document catalog {self.root_ref} is missing or not a dictionary")
        return catalog

    @property
    def pages_ref(self) -> Reference:
        pages = self.catalog.get("Pages")
        if not isinstance(pages, Reference):
            raise MalformedPdfError("Document catalog does not reference a page tree")
        return pages

    @property
    def info(self) -> Any:
        """The Info dictionary (resolved), or ``None`` when absent."""

        info = self.trailer.get("Info")
        if info is None:
            return None
        return self.resolve(info)

    # ------------------------------------------------------------------
    # Object access
    # ------------------------------------------------------------------
    def resolve(self, value: Any) -> Any:
        """Follow ``value`` if it is a reference; other values pass through."""

        if isinstance(value, Reference):
            if value in self.objects:
                return self.objects[value]
            return Unresolved(value)
        return value

    def next_number(self) -> int:
        if not self.objects:
            return 1
        return max(ref.number for ref in self.objects) + 1

    def add(self, value: Any) -> Reference:
        ref = Reference(self.next_number())
        self.objects[ref] = value
        self.invalidate()
        return ref

    def set(self, ref: Reference, value: Any) -> None:
        self.objects[ref] = value
        self.invalidate()

    def remove(self, ref: Reference) -> None:
        self.objects.pop(ref, None)
        self.invalidate()

    def invalidate(self) -> None:
        self._pages = None
        self._parents = None

    def copy(self) -> "Document":
        """Return a deep, independent copy of this document."""

        return Document(
            objects=copy.deepcopy(self.objects),
            trailer=copy.deepcopy(self.trailer),
            version=self.version,
        )

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------
    def _walk(self) -> None:
        self._pages, self._parents = walk_pages(self)

    @property
    def page_refs(self) -> List[Reference]:
        if self._pages is None:
            self._walk()
        return list(self._pages or [])

    @property
    def page_parents(self) -> Dict[Reference, Reference]:
        if self._parents is None:
            self._walk()
        return dict(self._parents or {})

    @property
    def page_count(self) -> int:
        return len(self.page_refs)

    # ------------------------------------------------------------------
    # Reachability
    # ------------------------------------------------------------------
    def reachable(self) -> Set[Reference]:
        """Mark every object reachable from the trailer's Root and Info."""

        marked: Set[Reference] = set()
        pending = [ref for key in ("Root", "Info") for ref in iter_references(self.trailer.get(key))]
        while pending:
            ref = pending.pop()
            if ref in marked or ref not in self.objects:
                continue
            marked.add(ref)
            pending.extend(iter_references(self.objects[ref]))
        return marked

    def pruned(self) -> "Document":
        """Return a copy without objects unreachable from the trailer."""

        marked = self.reachable()
        dropped = len(self.objects) - len(marked)
        if dropped:
            LOGGER.debug("Pruning %s unreachable objects", dropped)
        return Document(
            objects={ref: copy.deepcopy(value) for ref, value in self.objects.items() if ref in marked},
            trailer=copy.deepcopy(self.trailer),
            version=self.version,
        )


__all__ = ["DEFAULT_VERSION", "Document"]
