"""Stream filter and text-string codecs backed by :mod:`pypdf`.

Only the container streams the loader has to look inside (cross-reference
streams and object streams) are ever decoded; page content is carried
through byte-for-byte.
"""

from __future__ import annotations

import logging
import zlib
from typing import Any, Callable

from pypdf.errors import PyPdfError
from pypdf.filters import FlateDecode, decode_stream_data
from pypdf.generic import (
    ArrayObject,
    BooleanObject,
    ByteStringObject,
    DictionaryObject,
    EncodedStreamObject,
    FloatObject,
    NameObject,
    NullObject,
    NumberObject,
    PdfObject,
    create_string_object,
)

from ..exceptions import MalformedPdfError, UnsupportedFeatureError
from .objects import Name, PdfString, Reference, Stream

LOGGER = logging.getLogger("pdf_manager.filters")

Resolver = Callable[[Reference], Any]

_MAX_RESOLVE_DEPTH = 8


def _to_pypdf(value: Any) -> PdfObject:
    if value is None:
        return NullObject()
    if isinstance(value, bool):
        return BooleanObject(value)
    if isinstance(value, int):
        return NumberObject(value)
    if isinstance(value, float):
        return FloatObject(value)
    if isinstance(value, Name):
        return NameObject(f"/{value.value}")
    if isinstance(value, PdfString):
        return ByteStringObject(value.value)
    if isinstance(value, list):
        return ArrayObject(_to_pypdf(item) for item in value)
    if isinstance(value, dict):
        result = DictionaryObject()
        for key, item in value.items():
            result[NameObject(f"/{key}")] = _to_pypdf(item)
        return result
    # Unresolved references and anything exotic degrade to null.
    return NullObject()


def _resolve_deep(value: Any, resolve: Resolver, depth: int = 0) -> Any:
    if depth > _MAX_RESOLVE_DEPTH:
        raise MalformedPdfError("Stream filter parameters nest too deeply")
    if isinstance(value, Reference):
        return _resolve_deep(resolve(value), resolve, depth + 1)
    if isinstance(value, list):
        return [_resolve_deep(item, resolve, depth + 1) for item in value]
    if isinstance(value, dict):
        return {key: _resolve_deep(item, resolve, depth + 1) for key, item in value.items()}
    return value


def decode_stream(stream: Stream, resolve: Resolver) -> bytes:
    """Return the decoded payload of ``stream``.

    ``resolve`` maps references found in ``/Filter`` or ``/DecodeParms`` to
    their values.
    """

    filters = _resolve_deep(stream.get("Filter"), resolve)
    if filters is None or filters == []:
        return stream.data

    encoded = EncodedStreamObject()
    encoded[NameObject("/Filter")] = _to_pypdf(filters)
    params = _resolve_deep(stream.get("DecodeParms"), resolve)
    if params is not None:
        encoded[NameObject("/DecodeParms")] = _to_pypdf(params)
    encoded._data = stream.data

    try:
        return decode_stream_data(encoded)
    except NotImplementedError as exc:
        raise UnsupportedFeatureError(f"Unsupported stream filter: {exc}") from exc
    except (PyPdfError, zlib.error, ValueError, KeyError, TypeError) as exc:
        raise MalformedPdfError(f"Failed to decode stream data: {exc}") from exc


def encode_flate(data: bytes) -> bytes:
    """Compress ``data`` with the Flate filter."""

    return FlateDecode.encode(data)


def decode_text(value: PdfString) -> str:
    """Decode a PDF text string (UTF-16BE with BOM or PDFDocEncoding)."""

    decoded = create_string_object(value.value)
    if isinstance(decoded, str):
        return str(decoded)
    LOGGER.debug("Text string is not valid PDFDocEncoding; falling back to latin-1")
    return value.value.decode("latin-1")


__all__ = ["decode_stream", "decode_text", "encode_flate"]
