"""PDF object value types used throughout :mod:`pdf_manager`.

The object model is a closed set of Python types:

========================  ==========================================
PDF kind                  Python representation
========================  ==========================================
Null                      ``None``
Boolean                   ``bool``
Integer                   ``int``
Real                      ``float``
String                    :class:`PdfString`
Name                      :class:`Name`
Array                     ``list``
Dictionary                ``dict`` keyed by name text (no slash)
Stream                    :class:`Stream`
Reference                 :class:`Reference`
========================  ==========================================

A reference that cannot be found in its owning document resolves to an
:class:`Unresolved` value rather than raising.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator


@dataclass(frozen=True, order=True)
class Reference:
    """Indirect object identity (``12 0 R``).

    References double as the keys of a document's object map.
    """

    number: int
    generation: int = 0

    def __str__(self) -> str:
        return f"{self.number} {self.generation} R"


@dataclass(frozen=True)
class Name:
    """PDF name object (e.g. ``/Page``), stored without the leading slash."""

    value: str

    def __str__(self) -> str:
        return f"/{self.value}"


@dataclass(frozen=True)
class PdfString:
    """PDF string object holding raw bytes.

    ``hex`` records whether the string was written in ``<...>`` form so the
    serializer can preserve it.
    """

    value: bytes
    hex: bool = False


@dataclass
class Stream:
    """Stream object: a dictionary plus its raw (still encoded) payload."""

    dictionary: Dict[str, Any] = field(default_factory=dict)
    data: bytes = b""

    def get(self, key: str, default: Any = None) -> Any:
        return self.dictionary.get(key, default)


@dataclass(frozen=True)
class Unresolved:
    """Result of resolving a reference missing from the owning document."""

    reference: Reference


INHERITABLE_PAGE_KEYS = ("Resources", "MediaBox", "CropBox", "Rotate")


def is_name(value: Any, expected: str) -> bool:
    return isinstance(value, Name) and value.value == expected


def type_of(value: Any) -> str | None:
    """Return the ``/Type`` name of a dictionary or stream, if any."""

    if isinstance(value, Stream):
        value = value.dictionary
    if isinstance(value, dict):
        marker = value.get("Type")
        if isinstance(marker, Name):
            return marker.value
    return None


def iter_references(value: Any) -> Iterator[Reference]:
    """Yield every reference contained in ``value`` (not following them)."""

    stack = [value]
    while stack:
        current = stack.pop()
        if isinstance(current, Reference):
            yield current
        elif isinstance(current, Stream):
            stack.extend(current.dictionary.values())
        elif isinstance(current, dict):
            stack.extend(current.values())
        elif isinstance(current, list):
            stack.extend(current)


def map_references(value: Any, mapping: Dict[Reference, Reference | None]) -> Any:
    """Return a copy of ``value`` with references rewritten through ``mapping``.

    References missing from ``mapping`` (or mapped to ``None``) become Null.
    """

    if isinstance(value, Reference):
        return mapping.get(value)
    if isinstance(value, Stream):
        return Stream(
            {key: map_references(item, mapping) for key, item in value.dictionary.items()},
            value.data,
        )
    if isinstance(value, dict):
        return {key: map_references(item, mapping) for key, item in value.items()}
    if isinstance(value, list):
        return [map_references(item, mapping) for item in value]
    return value


__all__ = [
    "INHERITABLE_PAGE_KEYS",
    "Name",
    "PdfString",
    "Reference",
    "Stream",
    "Unresolved",
    "is_name",
    "iter_references",
    "map_references",
    "type_of",
]
