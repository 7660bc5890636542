"""Write a :class:`~pdf_manager.core.document.Document` back to PDF bytes."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any, Dict, List, Tuple

from ..exceptions import MalformedPdfError
from ..utils import atomic_write
from .document import Document
from .filters import encode_flate
from .objects import Name, PdfString, Reference, Stream, Unresolved

LOGGER = logging.getLogger("pdf_manager.serializer")

BINARY_MARKER = b"%\xe2\xe3\xcf\xd3\n"
XREF_FORMATS = ("table", "stream")

_NAME_DELIMITERS = frozenset(b"()<>[]{}/%#")
_LITERAL_ESCAPES = {
    ord("\\"): b"\\\\",
    ord("("): b"\\(",
    ord(")"): b"\\)",
    ord("\r"): b"\\r",
    ord("\n"): b"\\n",
}


def _format_real(value: float) -> bytes:
    if math.isnan(value) or math.isinf(value):
        raise ValueError(f"Cannot serialize non-finite real number {value!r}")
    text = f"{value:.6f}".rstrip("0").rstrip(".")
    if text in ("", "-", "-0"):
        text = "0"
    return text.encode("ascii")


def _format_name(name: Name) -> bytes:
    try:
        raw = name.value.encode("latin-1")
    except UnicodeEncodeError:
        raw = name.value.encode("utf-8")
    out = bytearray(b"/")
    for byte in raw:
        if 0x21 <= byte <= 0x7E and byte not in _NAME_DELIMITERS:
            out.append(byte)
        else:
            out += b"#%02X" % byte
    return bytes(out)


def _format_string(string: PdfString) -> bytes:
    if string.hex:
        return b"<" + string.value.hex().upper().encode("ascii") + b">"
    out = bytearray(b"(")
    for byte in string.value:
        out += _LITERAL_ESCAPES.get(byte, bytes((byte,)))
    out += b")"
    return bytes(out)


def serialize_value(value: Any) -> bytes:
    """Render a direct object value.

    Streams cannot be rendered directly; they are only valid as the body of
    an indirect object.
    """

    if value is None or isinstance(value, Unresolved):
        return b"null"
    if isinstance(value, bool):
        return b"true" if value else b"false"
    if isinstance(value, int):
        return str(value).encode("ascii")
    if isinstance(value, float):
        return _format_real(value)
    if isinstance(value, Name):
        return _format_name(value)
    if isinstance(value, PdfString):
        return _format_string(value)
    if isinstance(value, Reference):
        return f"{value.number} {value.generation} R".encode("ascii")
    if isinstance(value, list):
        return b"[" + b" ".join(serialize_value(item) for item in value) + b"]"
    if isinstance(value, dict):
        parts = [_format_name(Name(key)) + b" " + serialize_value(item) for key, item in value.items()]
        return b"<<" + b" ".join(parts) + b">>"
    if isinstance(value, Stream):
        raise MalformedPdfError("A stream can only appear as an indirect object")
    raise TypeError(f"Cannot serialize value of type {type(value).__name__}")


def _object_body(value: Any, compress: bool = False) -> bytes:
    if isinstance(value, Stream):
        dictionary = dict(value.dictionary)
        data = value.data
        if compress and "Filter" not in dictionary:
            encoded = encode_flate(data)
            if len(encoded) < len(data):
                dictionary["Filter"] = Name("FlateDecode")
                dictionary.pop("DecodeParms", None)
                data = encoded
        dictionary["Length"] = len(data)
        return serialize_value(dictionary) + b"\nstream\n" + data + b"\nendstream"
    return serialize_value(value)


def _trailer_dictionary(document: Document, size: int) -> Dict[str, Any]:
    trailer: Dict[str, Any] = {"Size": size, "Root": document.root_ref}
    info = document.trailer.get("Info")
    if isinstance(document.resolve(info), dict):
        trailer["Info"] = info
    elif info is not None:
        LOGGER.warning("Dropping trailer /Info: %s is not a dictionary in the document", info)
    if document.trailer.get("ID") is not None:
        trailer["ID"] = document.trailer["ID"]
    return trailer


def _free_chain(size: int, offsets: Dict[int, Tuple[int, int]]) -> Dict[int, int]:
    """Map each free object number (and 0) to the next free number."""

    free = [number for number in range(1, size) if number not in offsets]
    chain = {}
    previous = 0
    for number in free:
        chain[previous] = number
        previous = number
    chain[previous] = 0
    return chain


def _write_table(out: bytearray, document: Document, offsets: Dict[int, Tuple[int, int]]) -> None:
    size = max(offsets, default=0) + 1
    chain = _free_chain(size, offsets)
    xref_offset = len(out)
    lines: List[bytes] = [b"xref\n", b"0 %d\n" % size, b"%010d 65535 f \n" % chain[0]]
    for number in range(1, size):
        if number in offsets:
            offset, generation = offsets[number]
            lines.append(b"%010d %05d n \n" % (offset, generation))
        else:
            lines.append(b"%010d 00000 f \n" % chain[number])
    out += b"".join(lines)
    out += b"trailer\n" + serialize_value(_trailer_dictionary(document, size)) + b"\n"
    out += b"startxref\n%d\n%%%%EOF\n" % xref_offset


def _write_stream(out: bytearray, document: Document, offsets: Dict[int, Tuple[int, int]]) -> None:
    xref_number = max(offsets, default=0) + 1
    size = xref_number + 1
    xref_offset = len(out)
    offsets = dict(offsets)
    offsets[xref_number] = (xref_offset, 0)
    chain = _free_chain(size, offsets)

    offset_width = max(4, (xref_offset.bit_length() + 7) // 8)
    rows = bytearray()
    rows += b"\x00" + chain[0].to_bytes(offset_width, "big") + (65535).to_bytes(2, "big")
    for number in range(1, size):
        if number in offsets:
            offset, generation = offsets[number]
            rows += b"\x01" + offset.to_bytes(offset_width, "big") + generation.to_bytes(2, "big")
        else:
            rows += b"\x00" + chain[number].to_bytes(offset_width, "big") + b"\x00\x00"

    dictionary = _trailer_dictionary(document, size)
    dictionary.update({"Type": Name("XRef"), "W": [1, offset_width, 2], "Filter": Name("FlateDecode")})
    stream = Stream(dictionary, encode_flate(bytes(rows)))
    out += b"%d 0 obj\n" % xref_number + _object_body(stream) + b"\nendobj\n"
    out += b"startxref\n%d\n%%%%EOF\n" % xref_offset


def write(document: Document, *, xref_format: str = "table", compress: bool = False) -> bytes:
    """Serialize ``document`` into a complete PDF file.

    Args:
        document: The document to write. It is not modified.
        xref_format: ``"table"`` for a classic cross-reference table or
            ``"stream"`` for a compressed cross-reference stream.
        compress: Flate-encode unfiltered streams when that makes them
            smaller. Only the output is affected.
    """

    if xref_format not in XREF_FORMATS:
        raise ValueError(f"xref_format must be one of {', '.join(XREF_FORMATS)}")
    if not isinstance(document.resolve(document.root_ref), dict):
        raise MalformedPdfError("Cannot write a document whose catalog is missing")

    out = bytearray(b"%PDF-" + document.version.encode("ascii") + b"\n" + BINARY_MARKER)
    offsets: Dict[int, Tuple[int, int]] = {}
    for ref in sorted(document.objects):
        if ref.number in offsets:
            raise MalformedPdfError(f"Object number {ref.number} appears with more than one generation")
        offsets[ref.number] = (len(out), ref.generation)
        out += b"%d %d obj\n" % (ref.number, ref.generation)
        out += _object_body(document.objects[ref], compress)
        out += b"\nendobj\n"

    if xref_format == "stream":
        _write_stream(out, document, offsets)
    else:
        _write_table(out, document, offsets)
    LOGGER.debug("Serialized %s objects (%s bytes, xref %s)", len(offsets), len(out), xref_format)
    return bytes(out)


def write_file(
    document: Document, path: str | Path, *, xref_format: str = "table", compress: bool = False
) -> Path:
    """Serialize ``document`` and place it at ``path`` atomically."""

    return atomic_write(path, write(document, xref_format=xref_format, compress=compress))


__all__ = ["serialize_value", "write", "write_file", "XREF_FORMATS"]
