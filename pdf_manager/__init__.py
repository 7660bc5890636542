"""
PDF Manager - merge, split, rotate and prune PDF documents.

The library parses PDF files into an in-memory object graph, transforms the
graph and writes a fresh, structurally valid file.

Quick Start:
    >>> from pdf_manager import merge_files, split_file
    >>> merge_files(['a.pdf', 'b.pdf'], 'merged.pdf')
    >>> split_file('merged.pdf', '1, 3-5', 'selection.pdf')

Path-level functions:
    - read_metadata, merge_files, split_file, extract_page_file,
      rotate_file, delete_pages_file

Document-level building blocks live in :mod:`pdf_manager.core` and
:mod:`pdf_manager.operations`.

For CLI usage, use the 'pdf-manager' command after installation.
"""

from pdf_manager.api import (
    delete_pages_file,
    extract_page_file,
    load_file,
    merge_files,
    read_metadata,
    rotate_file,
    split_file,
)
from pdf_manager.config import Settings
from pdf_manager.exceptions import (
    EmptySelectionError,
    InsufficientInputError,
    InvalidInputError,
    InvalidPageSpecError,
    InvalidRotationError,
    MalformedPdfError,
    NoSuchFileError,
    PageOutOfRangeError,
    PDFIOError,
    PDFManagerError,
    PdfSyntaxError,
    UnsupportedFeatureError,
)
from pdf_manager.pagespec import parse_page_spec
from pdf_manager.types import OperationResult

__version__ = "1.0.0"
__license__ = "MIT"

__all__ = [
    # Entry points
    "read_metadata",
    "merge_files",
    "split_file",
    "extract_page_file",
    "rotate_file",
    "delete_pages_file",
    "load_file",
    "parse_page_spec",
    # Data types
    "OperationResult",
    "Settings",
    # Exceptions
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
    # Version info
    "__version__",
]
