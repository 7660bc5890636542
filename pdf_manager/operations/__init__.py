"""Whole-document transformations. Each returns a new document."""

from .delete import delete
from .extract import extract, extract_page
from .merge import merge
from .metadata import get_metadata
from .rotate import normalize_rotation, rotate

__all__ = [
    "delete",
    "extract",
    "extract_page",
    "get_metadata",
    "merge",
    "normalize_rotation",
    "rotate",
]
