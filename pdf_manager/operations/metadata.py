"""Document information dictionary reader."""

from __future__ import annotations

import logging
from typing import Dict

from ..core.document import Document
from ..core.filters import decode_text
from ..core.objects import PdfString, Unresolved

LOGGER = logging.getLogger("pdf_manager.metadata")


def get_metadata(document: Document) -> Dict[str, str]:
    """Return the text entries of the Info dictionary keyed without slashes.

    A missing or empty Info dictionary yields ``{}``. Entries whose value is
    not a string are skipped.
    """

    info = document.info
    if info is None:
        return {}
    if isinstance(info, Unresolved):
        LOGGER.warning("Info dictionary %s is missing from the document", info.reference)
        return {}
    if not isinstance(info, dict):
        LOGGER.warning("Info entry is not a dictionary; ignoring it")
        return {}

    metadata: Dict[str, str] = {}
    for key, value in info.items():
        value = document.resolve(value)
        if isinstance(value, PdfString):
            metadata[key] = decode_text(value)
        else:
            LOGGER.debug("Skipping non-string Info entry %s", key)
    return metadata


__all__ = ["get_metadata"]
