"""Byte-level PDF lexer and object parser.

:class:`Lexer` works directly on the raw file bytes and keeps an explicit
cursor so the loader can jump to cross-reference offsets and parse one
indirect object at a time.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..exceptions import MalformedPdfError, PdfSyntaxError
from .objects import Name, PdfString, Reference, Stream

LOGGER = logging.getLogger("pdf_manager.lexer")

WHITESPACE = frozenset(b"\x00\t\n\x0c\r ")
DELIMITERS = frozenset(b"()<>[]{}/%")

_NUMBER_RE = re.compile(rb"[+-]?(?:\d+\.?\d*|\.\d+)")
_INTEGER_RE = re.compile(rb"[+-]?\d+")
_UNSIGNED_RE = re.compile(rb"\d+")
_HEX_DIGITS = frozenset(b"0123456789abcdefABCDEF")

_ESCAPES = {
    ord("n"): b"\n",
    ord("r"): b"\r",
    ord("t"): b"\t",
    ord("b"): b"\b",
    ord("f"): b"\f",
    ord("("): b"(",
    ord(")"): b")",
    ord("\\"): b"\\",
}

LengthResolver = Callable[[Reference], Optional[int]]

MAX_NESTING_DEPTH = 128


class Lexer:
    """Cursor over PDF bytes producing object values."""

    def __init__(self, data: bytes, pos: int = 0, *, strict: bool = False) -> None:
        self.data = data
        self.pos = pos
        self.strict = strict
        self._depth = 0

    # ------------------------------------------------------------------
    # Low level scanning
    # ------------------------------------------------------------------
    def at_end(self) -> bool:
        return self.pos >= len(self.data)

    def skip_whitespace(self) -> None:
        data = self.data
        length = len(data)
        pos = self.pos
        while pos < length:
            byte = data[pos]
            if byte in WHITESPACE:
                pos += 1
            elif byte == 0x25:  # '%' comment runs to end of line
                while pos < length and data[pos] not in (0x0A, 0x0D):
                    pos += 1
            else:
                break
        self.pos = pos

    def _is_boundary(self, pos: int) -> bool:
        return pos >= len(self.data) or self.data[pos] in WHITESPACE or self.data[pos] in DELIMITERS

    def read_regular(self) -> bytes:
        """Read a run of regular characters (keyword or bare token)."""

        self.skip_whitespace()
        data = self.data
        start = self.pos
        pos = start
        while pos < len(data) and data[pos] not in WHITESPACE and data[pos] not in DELIMITERS:
            pos += 1
        self.pos = pos
        return data[start:pos]

    def peek_keyword(self) -> bytes:
        saved = self.pos
        try:
            return self.read_regular()
        finally:
            self.pos = saved

    def expect_keyword(self, keyword: bytes) -> None:
        offset = self.pos
        token = self.read_regular()
        if token != keyword:
            raise PdfSyntaxError(f"Expected {keyword.decode()!r}, found {token!r}", offset=offset)

    def read_integer(self) -> int:
        self.skip_whitespace()
        match = _INTEGER_RE.match(self.data, self.pos)
        if not match or not self._is_boundary(match.end()):
            raise PdfSyntaxError("Expected integer", offset=self.pos)
        self.pos = match.end()
        return int(match.group())

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------
    def parse_value(self) -> Any:
        self.skip_whitespace()
        if self.at_end():
            raise PdfSyntaxError("Unexpected end of data", offset=self.pos)

        data = self.data
        byte = data[self.pos]
        if byte == 0x2F:  # '/'
            return self._read_name()
        if byte == 0x28:  # '('
            return self._read_literal_string()
        if byte == 0x3C:  # '<'
            if data[self.pos + 1 : self.pos + 2] == b"<":
                return self._read_dictionary()
            return self._read_hex_string()
        if byte == 0x5B:  # '['
            return self._read_array()
        if byte in b"+-.0123456789":
            return self._read_number_or_reference()

        offset = self.pos
        token = self.read_regular()
        if token == b"true":
            return True
        if token == b"false":
            return False
        if token == b"null":
            return None
        if not token:
            token = data[offset : offset + 1]
        raise PdfSyntaxError(f"Unexpected token {token!r}", offset=offset)

    def _read_name(self) -> Name:
        data = self.data
        pos = self.pos + 1
        raw = bytearray()
        while pos < len(data) and data[pos] not in WHITESPACE and data[pos] not in DELIMITERS:
            byte = data[pos]
            if (
                byte == 0x23  # '#'
                and pos + 2 < len(data)
                and data[pos + 1] in _HEX_DIGITS
                and data[pos + 2] in _HEX_DIGITS
            ):
                raw.append(int(data[pos + 1 : pos + 3], 16))
                pos += 3
                continue
            raw.append(byte)
            pos += 1
        self.pos = pos
        return Name(raw.decode("latin-1"))

    def _read_literal_string(self) -> PdfString:
        data = self.data
        start = self.pos
        pos = start + 1
        depth = 1
        out = bytearray()
        while pos < len(data):
            byte = data[pos]
            if byte == 0x5C:  # backslash
                pos += 1
                if pos >= len(data):
                    break
                escaped = data[pos]
                if escaped in _ESCAPES:
                    out += _ESCAPES[escaped]
                    pos += 1
                elif 0x30 <= escaped <= 0x37:
                    digits = 1
                    while digits < 3 and pos + digits < len(data) and 0x30 <= data[pos + digits] <= 0x37:
                        digits += 1
                    out.append(int(data[pos : pos + digits], 8) & 0xFF)
                    pos += digits
                elif escaped == 0x0D:
                    pos += 2 if data[pos + 1 : pos + 2] == b"\n" else 1
                elif escaped == 0x0A:
                    pos += 1
                else:
                    out.append(escaped)
                    pos += 1
                continue
            if byte == 0x28:
                depth += 1
            elif byte == 0x29:
                depth -= 1
                if depth == 0:
                    self.pos = pos + 1
                    return PdfString(bytes(out))
            elif byte == 0x0D:
                # An unescaped end-of-line is read as a single line feed.
                out.append(0x0A)
                pos += 2 if data[pos + 1 : pos + 2] == b"\n" else 1
                continue
            out.append(byte)
            pos += 1
        raise PdfSyntaxError("Unterminated literal string", offset=start)

    def _read_hex_string(self) -> PdfString:
        start = self.pos
        end = self.data.find(b">", start + 1)
        if end == -1:
            raise PdfSyntaxError("Unterminated hex string", offset=start)
        digits = bytes(b for b in self.data[start + 1 : end] if b not in WHITESPACE)
        if any(b not in _HEX_DIGITS for b in digits):
            raise PdfSyntaxError("Invalid character in hex string", offset=start)
        if len(digits) % 2:
            digits += b"0"
        self.pos = end + 1
        return PdfString(bytes.fromhex(digits.decode("ascii")), hex=True)

    def _enter_container(self, start: int) -> None:
        self._depth += 1
        if self._depth > MAX_NESTING_DEPTH:
            raise PdfSyntaxError(
                f"Arrays and dictionaries nest deeper than {MAX_NESTING_DEPTH} levels", offset=start
            )

    def _read_array(self) -> List[Any]:
        start = self.pos
        self._enter_container(start)
        try:
            return self._read_array_items(start)
        finally:
            self._depth -= 1

    def _read_array_items(self, start: int) -> List[Any]:
        self.pos += 1
        items: List[Any] = []
        while True:
            self.skip_whitespace()
            if self.at_end():
                raise PdfSyntaxError("Unterminated array", offset=start)
            if self.data[self.pos] == 0x5D:  # ']'
                self.pos += 1
                return items
            items.append(self.parse_value())

    def _read_dictionary(self) -> Dict[str, Any]:
        start = self.pos
        self._enter_container(start)
        try:
            return self._read_dictionary_items(start)
        finally:
            self._depth -= 1

    def _read_dictionary_items(self, start: int) -> Dict[str, Any]:
        self.pos += 2
        result: Dict[str, Any] = {}
        while True:
            self.skip_whitespace()
            if self.at_end():
                raise PdfSyntaxError("Unterminated dictionary", offset=start)
            if self.data.startswith(b">>", self.pos):
                self.pos += 2
                return result
            if self.data[self.pos] != 0x2F:
                raise PdfSyntaxError("Expected name key in dictionary", offset=self.pos)
            key = self._read_name().value
            result[key] = self.parse_value()

    def _read_number_or_reference(self) -> Any:
        match = _NUMBER_RE.match(self.data, self.pos)
        if not match:
            raise PdfSyntaxError("Malformed number", offset=self.pos)
        text = match.group()
        self.pos = match.end()
        if b"." in text:
            return float(text)
        value = int(text)
        if not text.isdigit():
            return value

        # ``<int> <int> R`` is a reference; anything else leaves the cursor
        # right after the first integer.
        saved = self.pos
        self.skip_whitespace()
        generation = _UNSIGNED_RE.match(self.data, self.pos)
        if generation and self._is_boundary(generation.end()):
            self.pos = generation.end()
            self.skip_whitespace()
            if self.data[self.pos : self.pos + 1] == b"R" and self._is_boundary(self.pos + 1):
                self.pos += 1
                return Reference(value, int(generation.group()))
        self.pos = saved
        return value

    # ------------------------------------------------------------------
    # Indirect objects
    # ------------------------------------------------------------------
    def parse_indirect_object(
        self, length_resolver: LengthResolver | None = None
    ) -> Tuple[Reference, Any]:
        """Parse ``N G obj ... endobj`` starting at the cursor."""

        number = self.read_integer()
        generation = self.read_integer()
        self.expect_keyword(b"obj")
        value = self.parse_value()

        if isinstance(value, dict):
            saved = self.pos
            self.skip_whitespace()
            if self.data.startswith(b"stream", self.pos) and self._is_boundary(self.pos + 6):
                self.pos += 6
                value = self._read_stream_body(value, length_resolver)
            else:
                self.pos = saved

        saved = self.pos
        self.skip_whitespace()
        if self.data.startswith(b"endobj", self.pos):
            self.pos += 6
        else:
            self.pos = saved
        return Reference(number, generation), value

    def _endstream_follows(self, pos: int) -> bool:
        data = self.data
        while pos < len(data) and data[pos] in WHITESPACE:
            pos += 1
        return data.startswith(b"endstream", pos)

    def _read_stream_body(
        self, dictionary: Dict[str, Any], length_resolver: LengthResolver | None
    ) -> Stream:
        data = self.data
        if data.startswith(b"\r\n", self.pos):
            self.pos += 2
        elif data[self.pos : self.pos + 1] in (b"\n", b"\r"):
            self.pos += 1
        start = self.pos

        length = dictionary.get("Length")
        if isinstance(length, Reference):
            length = length_resolver(length) if length_resolver else None
        if not isinstance(length, int) or isinstance(length, bool) or length < 0:
            length = None

        if length is not None:
            end = start + length
            if end <= len(data) and self._endstream_follows(end):
                self.pos = data.find(b"endstream", end) + len(b"endstream")
                return Stream(dictionary, data[start:end])

        found = data.find(b"endstream", start)
        if found == -1:
            raise PdfSyntaxError("Stream is missing endstream", offset=start)
        if self.strict:
            raise MalformedPdfError(
                f"Stream at byte offset {start} declares length {length!r} "
                "which disagrees with its data"
            )
        end = found
        if data[end - 2 : end] == b"\r\n" and end - 2 >= start:
            end -= 2
        elif end - 1 >= start and data[end - 1] in (0x0A, 0x0D):
            end -= 1
        LOGGER.warning(
            "Stream at byte offset %s declares length %r but holds %s bytes; using actual data",
            start,
            length,
            end - start,
        )
        self.pos = found + len(b"endstream")
        return Stream(dictionary, data[start:end])


def parse_value(data: bytes) -> Any:
    """Parse a single direct object from ``data``."""

    return Lexer(data).parse_value()


__all__ = ["Lexer", "LengthResolver", "parse_value", "WHITESPACE", "DELIMITERS"]
