"""Parse PDF bytes into a :class:`~pdf_manager.core.document.Document`.

The loader resolves the cross-reference chain (classic tables, streams and
hybrid files) to the latest visible state of every object, then parses the
objects eagerly. Tolerable damage is logged and repaired unless strict mode
is enabled.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set, Tuple

from ..exceptions import MalformedPdfError, PdfSyntaxError, UnsupportedFeatureError
from .document import Document
from .filters import decode_stream
from .lexer import Lexer
from .objects import Reference, Stream, Unresolved, type_of

LOGGER = logging.getLogger("pdf_manager.loader")

HEADER_SEARCH_LIMIT = 1024
STARTXREF_SEARCH_LIMIT = 4096

_HEADER_RE = re.compile(rb"%PDF-(\d+\.\d+)")
_OBJECT_HEADER_RE = re.compile(rb"(?<![0-9])(\d+)\s+(\d+)\s+obj\b")
_CONTAINER_TYPES = ("XRef", "ObjStm")
_TRAILER_KEYS = ("Root", "Info", "ID", "Encrypt")

_MISSING = object()


@dataclass(frozen=True)
class XrefEntry:
    """One cross-reference entry.

    ``kind`` is ``"free"``, ``"offset"`` (``location`` is a byte offset) or
    ``"compressed"`` (``location`` is the object stream number and ``index``
    the position inside it).
    """

    kind: str
    generation: int = 0
    location: int = 0
    index: int = 0


class DocumentLoader:
    """Single-use loader for one PDF byte string."""

    def __init__(self, data: bytes, *, strict: bool = False) -> None:
        self.data = data
        self.strict = strict
        self._entries: Dict[int, XrefEntry] = {}
        self._parsed: Dict[int, Any] = {}
        self._object_streams: Dict[int, Dict[int, Any]] = {}
        self._resolving: Set[int] = set()
        self._rebuilt = False

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------
    def load(self) -> Document:
        version = self._read_version()
        try:
            entries, trailer = self._read_xref_chain()
        except MalformedPdfError as exc:
            if self.strict:
                raise
            LOGGER.warning("Cross-reference data is damaged (%s); rebuilding by scanning the file", exc)
            entries, trailer = self._rebuild()
            self._rebuilt = True

        if "Encrypt" in trailer:
            raise UnsupportedFeatureError("Encrypted PDF files are not supported.")

        self._entries = entries
        objects = self._materialize()
        document = Document(
            objects=objects,
            trailer={key: trailer[key] for key in _TRAILER_KEYS if key in trailer},
            version=version,
        )
        self._ensure_catalog(document)
        LOGGER.debug("Loaded PDF %s with %s objects", version, len(objects))
        return document

    # ------------------------------------------------------------------
    # Header and cross-reference chain
    # ------------------------------------------------------------------
    def _read_version(self) -> str:
        match = _HEADER_RE.search(self.data[:HEADER_SEARCH_LIMIT])
        if not match:
            raise MalformedPdfError("File does not start with a %PDF header")
        return match.group(1).decode("ascii")

    def _find_startxref(self) -> int:
        position = self.data.rfind(b"startxref")
        if position == -1:
            raise MalformedPdfError("Missing startxref marker")
        lexer = Lexer(self.data, position + len(b"startxref"))
        return lexer.read_integer()

    def _read_xref_chain(self) -> Tuple[Dict[int, XrefEntry], Dict[str, Any]]:
        entries: Dict[int, XrefEntry] = {}
        trailer: Dict[str, Any] = {}
        visited: Set[int] = set()
        pending: List[int] = [self._find_startxref()]

        while pending:
            offset = pending.pop()
            if offset in visited:
                LOGGER.warning("Cross-reference chain loops back to byte offset %s", offset)
                continue
            visited.add(offset)

            section_entries, section_trailer = self._read_xref_section(offset)
            hybrid = section_trailer.get("XRefStm")
            if isinstance(hybrid, int) and not isinstance(hybrid, bool) and hybrid not in visited:
                visited.add(hybrid)
                self._merge_hybrid_section(section_entries, hybrid)
            for number, entry in section_entries.items():
                entries.setdefault(number, entry)
            for key, value in section_trailer.items():
                trailer.setdefault(key, value)

            previous = section_trailer.get("Prev")
            if isinstance(previous, int) and not isinstance(previous, bool):
                pending.append(previous)

        if "Root" not in trailer:
            raise MalformedPdfError("Trailer does not reference a document catalog")
        return entries, trailer

    def _merge_hybrid_section(self, table_entries: Dict[int, XrefEntry], offset: int) -> None:
        """Fold a hybrid file's ``/XRefStm`` entries into its table section.

        Hybrid writers list compressed objects as free in the table, so the
        stream's entries replace free or missing ones from the same section.
        """

        try:
            stream_entries, _ = self._read_xref_section(offset)
        except MalformedPdfError as exc:
            if self.strict:
                raise
            LOGGER.warning("Ignoring unreadable /XRefStm section at byte offset %s (%s)", offset, exc)
            return
        for number, entry in stream_entries.items():
            current = table_entries.get(number)
            if current is None or (current.kind == "free" and entry.kind != "free"):
                table_entries[number] = entry

    def _read_xref_section(self, offset: int) -> Tuple[Dict[int, XrefEntry], Dict[str, Any]]:
        if offset < 0 or offset >= len(self.data):
            raise MalformedPdfError(f"Cross-reference offset {offset} lies outside the file")
        lexer = Lexer(self.data, offset, strict=self.strict)
        if lexer.peek_keyword() == b"xref":
            return self._read_xref_table(lexer)
        return self._read_xref_stream(lexer)

    def _read_xref_table(self, lexer: Lexer) -> Tuple[Dict[int, XrefEntry], Dict[str, Any]]:
        lexer.expect_keyword(b"xref")
        entries: Dict[int, XrefEntry] = {}
        while lexer.peek_keyword() != b"trailer":
            first = lexer.read_integer()
            count = lexer.read_integer()
            for number in range(first, first + count):
                location = lexer.read_integer()
                generation = lexer.read_integer()
                kind = lexer.read_regular()
                if kind == b"n":
                    entry = XrefEntry("offset", generation, location)
                elif kind == b"f":
                    entry = XrefEntry("free", generation)
                else:
                    raise PdfSyntaxError(f"Invalid cross-reference entry type {kind!r}", offset=lexer.pos)
                entries.setdefault(number, entry)

        lexer.expect_keyword(b"trailer")
        trailer = lexer.parse_value()
        if not isinstance(trailer, dict):
            raise MalformedPdfError("Trailer is not a dictionary")
        return entries, trailer

    def _read_xref_stream(self, lexer: Lexer) -> Tuple[Dict[int, XrefEntry], Dict[str, Any]]:
        offset = lexer.pos
        _, stream = lexer.parse_indirect_object(self._resolve_length)
        if not isinstance(stream, Stream) or type_of(stream) != "XRef":
            raise MalformedPdfError(f"No cross-reference table or stream at byte offset {offset}")

        dictionary = stream.dictionary
        widths = dictionary.get("W")
        if (
            not isinstance(widths, list)
            or len(widths) != 3
            or not all(isinstance(width, int) and width >= 0 for width in widths)
        ):
            raise MalformedPdfError("Cross-reference stream has an invalid /W array")
        size = dictionary.get("Size")
        if not isinstance(size, int):
            raise MalformedPdfError("Cross-reference stream has no /Size")
        index = dictionary.get("Index", [0, size])
        if not isinstance(index, list) or len(index) % 2 or not all(isinstance(i, int) for i in index):
            raise MalformedPdfError("Cross-reference stream has an invalid /Index array")

        payload = decode_stream(stream, self._resolve_value)
        row_size = sum(widths)
        if row_size == 0:
            raise MalformedPdfError("Cross-reference stream rows are empty")

        entries: Dict[int, XrefEntry] = {}
        position = 0
        for first, count in zip(index[0::2], index[1::2]):
            for number in range(first, first + count):
                if position + row_size > len(payload):
                    LOGGER.warning("Cross-reference stream holds fewer rows than its /Index declares")
                    return entries, dictionary
                fields: List[Optional[int]] = []
                for width in widths:
                    fields.append(
                        int.from_bytes(payload[position : position + width], "big") if width else None
                    )
                    position += width
                kind = fields[0] if fields[0] is not None else 1
                if kind == 0:
                    entry = XrefEntry("free", fields[2] or 0)
                elif kind == 1:
                    entry = XrefEntry("offset", fields[2] or 0, fields[1] or 0)
                elif kind == 2:
                    entry = XrefEntry("compressed", 0, fields[1] or 0, fields[2] or 0)
                else:
                    # Unknown entry types are read as references to null.
                    continue
                entries.setdefault(number, entry)
        return entries, dictionary

    def _rebuild(self) -> Tuple[Dict[int, XrefEntry], Dict[str, Any]]:
        entries: Dict[int, XrefEntry] = {}
        for match in _OBJECT_HEADER_RE.finditer(self.data):
            number, generation = int(match.group(1)), int(match.group(2))
            entries[number] = XrefEntry("offset", generation, match.start())
        if not entries:
            raise MalformedPdfError("No PDF objects found in file")

        trailer: Dict[str, Any] = {}
        position = self.data.rfind(b"trailer")
        while position != -1 and not trailer:
            lexer = Lexer(self.data, position + len(b"trailer"))
            try:
                candidate = lexer.parse_value()
            except MalformedPdfError:
                candidate = None
            if isinstance(candidate, dict):
                trailer = candidate
            position = self.data.rfind(b"trailer", 0, position)
        LOGGER.info("Rebuilt cross-reference map with %s objects", len(entries))
        return entries, trailer

    # ------------------------------------------------------------------
    # Objects
    # ------------------------------------------------------------------
    def _materialize(self) -> Dict[Reference, Any]:
        objects: Dict[Reference, Any] = {}
        for number, entry in sorted(self._entries.items()):
            if entry.kind == "free" or number == 0:
                continue
            value = self._object_value(number)
            if value is _MISSING:
                continue
            if isinstance(value, Stream) and type_of(value) in _CONTAINER_TYPES:
                if self._rebuilt and type_of(value) == "ObjStm":
                    for inner_number, inner in self._read_object_stream(number).items():
                        if inner_number not in self._entries:
                            objects.setdefault(Reference(inner_number), inner)
                continue
            objects[Reference(number, entry.generation)] = value
        return objects

    def _object_value(self, number: int) -> Any:
        if number in self._parsed:
            return self._parsed[number]
        entry = self._entries.get(number)
        if entry is None or entry.kind == "free":
            return _MISSING

        if entry.kind == "compressed":
            value = self._read_object_stream(entry.location).get(number, _MISSING)
            if value is _MISSING:
                value = self._dangling(number, entry, "is not in its object stream")
        else:
            value = self._parse_at(entry.location, number)
            if value is _MISSING:
                value = self._dangling(number, entry, f"does not start at byte offset {entry.location}")
        self._parsed[number] = value
        return value

    def _parse_at(self, offset: int, number: int) -> Any:
        if offset < 0 or offset >= len(self.data):
            return _MISSING
        lexer = Lexer(self.data, offset, strict=self.strict)
        self._resolving.add(number)
        try:
            ref, value = lexer.parse_indirect_object(self._resolve_length)
        except PdfSyntaxError:
            return _MISSING
        finally:
            self._resolving.discard(number)
        if ref.number != number:
            return _MISSING
        return value

    def _dangling(self, number: int, entry: XrefEntry, problem: str) -> Any:
        if self.strict:
            raise MalformedPdfError(f"Cross-reference entry for object {number} {problem}")
        offset = self._search_object_offset(number, entry.generation)
        if offset is not None:
            value = self._parse_at(offset, number)
            if value is not _MISSING:
                LOGGER.warning(
                    "Cross-reference entry for object %s %s; found it at byte offset %s",
                    number,
                    problem,
                    offset,
                )
                return value
        LOGGER.warning("Cross-reference entry for object %s %s; dropping it", number, problem)
        return _MISSING

    def _search_object_offset(self, number: int, generation: int) -> Optional[int]:
        pattern = re.compile(rb"(?<![0-9])%d\s+%d\s+obj\b" % (number, generation))
        found = None
        for match in pattern.finditer(self.data):
            found = match.start()
        return found

    def _read_object_stream(self, number: int) -> Dict[int, Any]:
        if number in self._object_streams:
            return self._object_streams[number]
        self._object_streams[number] = {}

        entry = self._entries.get(number)
        container = self._parse_at(entry.location, number) if entry and entry.kind == "offset" else _MISSING
        if not isinstance(container, Stream) or type_of(container) != "ObjStm":
            if self.strict:
                raise MalformedPdfError(f"Object stream {number} is missing")
            LOGGER.warning("Object stream %s is missing; its objects are dropped", number)
            return {}

        try:
            contents = self._parse_object_stream(container)
        except MalformedPdfError as exc:
            if self.strict:
                raise
            LOGGER.warning("Object stream %s is damaged (%s); its objects are dropped", number, exc)
            contents = {}
        self._object_streams[number] = contents
        return contents

    def _parse_object_stream(self, container: Stream) -> Dict[int, Any]:
        count = container.get("N")
        first = container.get("First")
        if not isinstance(count, int) or not isinstance(first, int):
            raise MalformedPdfError("Object stream lacks /N or /First")

        payload = decode_stream(container, self._resolve_value)
        header = Lexer(payload)
        offsets = [(header.read_integer(), header.read_integer()) for _ in range(count)]
        contents: Dict[int, Any] = {}
        for inner_number, relative in offsets:
            contents.setdefault(inner_number, Lexer(payload, first + relative).parse_value())
        return contents

    # ------------------------------------------------------------------
    # Reference resolution during loading
    # ------------------------------------------------------------------
    def _resolve_value(self, ref: Reference) -> Any:
        if ref.number in self._resolving:
            return None
        if ref.number in self._entries:
            value = self._object_value(ref.number)
        else:
            offset = self._search_object_offset(ref.number, ref.generation)
            value = self._parse_at(offset, ref.number) if offset is not None else _MISSING
        if value is _MISSING:
            return Unresolved(ref)
        return value

    def _resolve_length(self, ref: Reference) -> Optional[int]:
        value = self._resolve_value(ref)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        return None

    def _ensure_catalog(self, document: Document) -> None:
        root = document.trailer.get("Root")
        if not isinstance(root, Reference) and not self.strict:
            for ref, value in document.objects.items():
                if type_of(value) == "Catalog":
                    LOGGER.warning("Trailer lacks /Root; using catalog object %s", ref)
                    document.trailer["Root"] = ref
                    break
        catalog = document.resolve(document.trailer.get("Root"))
        if not isinstance(catalog, dict):
            raise MalformedPdfError("Trailer does not reference a valid document catalog")


def load(data: bytes, *, strict: bool = False) -> Document:
    """Parse ``data`` into a :class:`Document`."""

    return DocumentLoader(data, strict=strict).load()


__all__ = ["DocumentLoader", "XrefEntry", "load"]
