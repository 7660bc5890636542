"""Parser for human-typed page selections such as ``"1, 3-5, 8"``."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .exceptions import InvalidPageSpecError, PageOutOfRangeError

_DIGITS = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class PageRange:
    """Inclusive range of 1-based page numbers."""

    start: int
    end: int

    def pages(self) -> range:
        return range(self.start, self.end + 1)


def _parse_number(text: str, spec: str) -> int:
    text = text.strip()
    if not _DIGITS.fullmatch(text):
        raise InvalidPageSpecError(f"Invalid page number {text!r} in page specification {spec!r}")
    number = int(text)
    if number == 0:
        raise InvalidPageSpecError(f"Page numbers start at 1; got 0 in page specification {spec!r}")
    return number


def parse_page_ranges(spec: str) -> List[PageRange]:
    """Parse ``spec`` into :class:`PageRange` tokens in the order written.

    Raises:
        InvalidPageSpecError: If any token is malformed. No partial result
            is returned.
    """

    ranges: List[PageRange] = []
    for token in spec.split(","):
        token = token.strip()
        if not token:
            continue
        if "-" in token:
            parts = token.split("-")
            if len(parts) != 2:
                raise InvalidPageSpecError(f"Invalid page range {token!r} in page specification {spec!r}")
            start = _parse_number(parts[0], spec)
            end = _parse_number(parts[1], spec)
            if start > end:
                raise InvalidPageSpecError(
                    f"Page range {token!r} starts after it ends in page specification {spec!r}"
                )
        else:
            start = end = _parse_number(token, spec)
        ranges.append(PageRange(start, end))
    return ranges


def expand_page_ranges(ranges: Iterable[PageRange], *, page_count: Optional[int] = None) -> List[int]:
    """Return the ascending, de-duplicated page numbers covered by ``ranges``.

    When ``page_count`` is given, ranges are checked against it before any
    page list is built.

    Raises:
        PageOutOfRangeError: If a range reaches past ``page_count``.
    """

    ordered = sorted(ranges, key=lambda page_range: page_range.start)
    if page_count is not None:
        beyond = [max(r.start, page_count + 1) for r in ordered if r.end > page_count]
        if beyond:
            raise PageOutOfRangeError(page=min(beyond), page_count=page_count)

    pages: List[int] = []
    for page_range in ordered:
        first = max(page_range.start, pages[-1] + 1) if pages else page_range.start
        pages.extend(range(first, page_range.end + 1))
    return pages


def parse_page_spec(spec: str | None, *, page_count: Optional[int] = None) -> List[int]:
    """Return the ascending, de-duplicated page numbers selected by ``spec``.

    Empty or blank input selects nothing and is not an error. Page numbers
    are only checked when ``page_count`` is given.

    Examples:
        >>> parse_page_spec("1, 3-5, 8")
        [1, 3, 4, 5, 8]
        >>> parse_page_spec("")
        []
    """

    if spec is None or not spec.strip():
        return []
    return expand_page_ranges(parse_page_ranges(spec), page_count=page_count)


__all__ = ["PageRange", "expand_page_ranges", "parse_page_ranges", "parse_page_spec"]
