"""Object-graph engine: parse, inspect, copy and write PDF documents."""

from .copier import ObjectCopier, copy_info
from .document import Document
from .loader import DocumentLoader, load
from .objects import Name, PdfString, Reference, Stream, Unresolved
from .pagetree import inherited, page_content, walk_pages
from .serializer import write, write_file

__all__ = [
    "Document",
    "DocumentLoader",
    "Name",
    "ObjectCopier",
    "PdfString",
    "Reference",
    "Stream",
    "Unresolved",
    "copy_info",
    "inherited",
    "load",
    "page_content",
    "walk_pages",
    "write",
    "write_file",
]
