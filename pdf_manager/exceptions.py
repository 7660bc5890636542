"""
Custom exceptions for PDF Manager.

Every failure surfaced by the library derives from :class:`PDFManagerError`
so callers can render one typed message per operation.
"""

from __future__ import annotations


class PDFManagerError(Exception):
    """Base exception for all PDF Manager errors."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    @property
    def default_message(self) -> str:
        return "An unknown PDF manager error occurred."


class InvalidPageSpecError(PDFManagerError):
    """Raised when a page specification string violates the grammar."""

    @property
    def default_message(self) -> str:
        return "Invalid page specification."


class EmptySelectionError(InvalidPageSpecError):
    """Raised when an operation requires at least one page but none were given."""

    @property
    def default_message(self) -> str:
        return "The page selection cannot be empty."


class InvalidInputError(PDFManagerError):
    """Raised when operation parameters are well-formed but unacceptable."""

    @property
    def default_message(self) -> str:
        return "Invalid input for PDF operation."


class PageOutOfRangeError(InvalidInputError):
    """Raised when a page number exceeds the document's page count."""

    def __init__(self, message: str = "", *, page: int | None = None, page_count: int | None = None) -> None:
        if not message and page is not None and page_count is not None:
            message = (
                f"Page {page} is out of range. Page numbers must be between 1 and {page_count}."
            )
        super().__init__(message)
        self.page = page
        self.page_count = page_count

    @property
    def default_message(self) -> str:
        return "Requested page number is out of range."


class InvalidRotationError(InvalidInputError):
    """Raised when a rotation angle is not a multiple of 90 degrees."""

    @property
    def default_message(self) -> str:
        return "Invalid rotation angle. Must be a multiple of 90."


class InsufficientInputError(InvalidInputError):
    """Raised when fewer inputs are supplied than an operation requires."""

    @property
    def default_message(self) -> str:
        return "At least two PDF documents are required."


class NoSuchFileError(PDFManagerError):
    """Raised when an input path does not exist or is not a file."""

    @property
    def default_message(self) -> str:
        return "Input file not found."


class PDFIOError(PDFManagerError):
    """Raised when reading or writing a file fails at the filesystem level."""

    @property
    def default_message(self) -> str:
        return "Failed to read or write PDF file."


class MalformedPdfError(PDFManagerError):
    """Raised when the PDF structure cannot be parsed or is inconsistent."""

    @property
    def default_message(self) -> str:
        return "Invalid or corrupted PDF file."


class PdfSyntaxError(MalformedPdfError):
    """Raised by the lexer when it meets bytes it cannot tokenize."""

    def __init__(self, message: str = "", *, offset: int | None = None) -> None:
        if offset is not None:
            message = f"{message} (at byte offset {offset})"
        super().__init__(message)
        self.offset = offset

    @property
    def default_message(self) -> str:
        return "PDF syntax error."


class UnsupportedFeatureError(PDFManagerError):
    """Raised for recognised PDF structures this library does not handle."""

    @property
    def default_message(self) -> str:
        return "The PDF uses a feature that is not supported."


__all__ = [
    "PDFManagerError",
    "InvalidPageSpecError",
    "EmptySelectionError",
    "InvalidInputError",
    "PageOutOfRangeError",
    "InvalidRotationError",
    "InsufficientInputError",
    "NoSuchFileError",
    "PDFIOError",
    "MalformedPdfError",
    "PdfSyntaxError",
    "UnsupportedFeatureError",
]
