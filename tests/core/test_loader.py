from __future__ import annotations

import zlib
from pathlib import Path
from typing import Callable, Dict, List, Tuple

import pytest
from pypdf import PdfReader

from pdf_manager.core.loader import DocumentLoader, load
from pdf_manager.core.objects import Name, Reference, Unresolved
from pdf_manager.core.pagetree import page_content
from pdf_manager.exceptions import MalformedPdfError, UnsupportedFeatureError


def _assemble(objects: List[Tuple[int, bytes]]) -> Tuple[bytearray, Dict[int, int]]:
    out = bytearray(b"%PDF-1.5\n%\xe2\xe3\xcf\xd3\n")
    offsets: Dict[int, int] = {}
    for number, body in objects:
        offsets[number] = len(out)
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"
    return out, offsets


def _classic_pdf(objects: List[Tuple[int, bytes]], trailer: bytes) -> bytes:
    out, offsets = _assemble(objects)
    size = max(offsets) + 1
    xref_offset = len(out)
    out += b"xref\n0 %d\n0000000000 65535 f \n" % size
    for number in range(1, size):
        if number in offsets:
            out += b"%010d 00000 n \n" % offsets[number]
        else:
            out += b"0000000000 00000 f \n"
    out += b"trailer\n" + trailer + b"\nstartxref\n%d\n%%%%EOF\n" % xref_offset
    return bytes(out)


def _png_up(rows: List[bytes]) -> bytes:
    encoded = bytearray()
    previous = bytes(len(rows[0]))
    for row in rows:
        encoded.append(2)
        encoded += bytes((current - above) & 0xFF for current, above in zip(row, previous))
        previous = row
    return bytes(encoded)


def _object_stream_pdf() -> bytes:
    """Catalog and content stay plain; the page tree lives in an object stream."""

    pages_body = b"<< /Type /Pages /Kids [4 0 R] /Count 1 /MediaBox [0 0 100 100] >>"
    page_body = b"<< /Type /Page /Parent 3 0 R /Contents 5 0 R >>"
    header = b"3 0 4 %d " % (len(pages_body) + 1)
    packed = zlib.compress(header + pages_body + b" " + page_body)
    content = b"0 0 m 10 10 l S"

    out, offsets = _assemble(
        [
            (1, b"<< /Type /Catalog /Pages 3 0 R >>"),
            (
                2,
                b"<< /Type /ObjStm /N 2 /First %d /Filter /FlateDecode /Length %d >>\nstream\n"
                % (len(header), len(packed))
                + packed
                + b"\nendstream",
            ),
            (5, b"<< /Length %d >>\nstream\n" % len(content) + content + b"\nendstream"),
        ]
    )

    xref_offset = len(out)
    widths = (1, 4, 2)
    entries = [
        (0, 0, 65535),
        (1, offsets[1], 0),
        (1, offsets[2], 0),
        (2, 2, 0),
        (2, 2, 1),
        (1, offsets[5], 0),
        (1, xref_offset, 0),
    ]
    rows = [
        b"".join(value.to_bytes(width, "big") for value, width in zip(entry, widths)) for entry in entries
    ]
    payload = zlib.compress(_png_up(rows))
    out += (
        b"6 0 obj\n<< /Type /XRef /Size 7 /W [1 4 2] /Root 1 0 R /Filter /FlateDecode "
        b"/DecodeParms << /Columns 7 /Predictor 12 >> /Length %d >>\nstream\n" % len(payload)
        + payload
        + b"\nendstream\nendobj\n"
    )
    out += b"startxref\n%d\n%%%%EOF\n" % xref_offset
    return bytes(out)


_BASIC_OBJECTS = [
    (1, b"<< /Type /Catalog /Pages 2 0 R >>"),
    (2, b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>"),
    (3, b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 50 50] /Contents 4 0 R >>"),
    (4, b"<< /Length 3 >>\nstream\nabc\nendstream"),
]


def test_load_pypdf_generated_file(sample_pdf: Path) -> None:
    data = sample_pdf.read_bytes()
    document = load(data)
    reader = PdfReader(str(sample_pdf))

    assert b"/Contents <<" not in data
    assert all(isinstance(document.objects[ref]["Contents"], Reference) for ref in document.page_refs)
    assert document.page_count == len(reader.pages) == 5
    for index, ref in enumerate(document.page_refs):
        expected = reader.pages[index]["/Contents"].get_object().get_data()
        assert page_content(document, ref) == expected


def test_load_reads_header_version() -> None:
    document = load(_classic_pdf(_BASIC_OBJECTS, b"<< /Size 5 /Root 1 0 R >>"))
    assert document.version == "1.5"
    assert document.root_ref == Reference(1)
    assert page_content(document, document.page_refs[0]) == b"abc"


def test_load_object_and_xref_streams() -> None:
    document = load(_object_stream_pdf())

    assert document.page_count == 1
    page = document.page_refs[0]
    assert page == Reference(4)
    assert page_content(document, page) == b"0 0 m 10 10 l S"
    # Container streams are not part of the object model.
    assert Reference(2) not in document.objects
    assert Reference(6) not in document.objects


def _hybrid_pdf() -> bytes:
    """The table marks page 3 free; its /XRefStm places it in object stream 4."""

    page_body = b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 50 50] /Contents 5 0 R >>"
    header = b"3 0 "
    packed = zlib.compress(header + page_body)
    row = (2).to_bytes(1, "big") + (4).to_bytes(2, "big") + (0).to_bytes(1, "big")

    out, offsets = _assemble(
        [
            (1, b"<< /Type /Catalog /Pages 2 0 R >>"),
            (2, b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>"),
            (
                4,
                b"<< /Type /ObjStm /N 1 /First %d /Filter /FlateDecode /Length %d >>\nstream\n"
                % (len(header), len(packed))
                + packed
                + b"\nendstream",
            ),
            (5, b"<< /Length 3 >>\nstream\nxyz\nendstream"),
            (
                6,
                b"<< /Type /XRef /Size 7 /W [1 2 1] /Index [3 1] /Length %d >>\nstream\n" % len(row)
                + row
                + b"\nendstream",
            ),
        ]
    )

    xref_offset = len(out)
    out += b"xref\n0 7\n0000000003 65535 f \n"
    for number in range(1, 7):
        if number in offsets:
            out += b"%010d 00000 n \n" % offsets[number]
        else:
            out += b"0000000000 00001 f \n"
    out += b"trailer\n<< /Size 7 /Root 1 0 R /XRefStm %d >>\n" % offsets[6]
    out += b"startxref\n%d\n%%%%EOF\n" % xref_offset
    return bytes(out)


def test_hybrid_file_reads_compressed_objects_marked_free_in_table() -> None:
    data = _hybrid_pdf()

    for strict in (False, True):
        document = load(data, strict=strict)
        assert document.page_refs == [Reference(3)]
        assert page_content(document, Reference(3)) == b"xyz"
        assert Reference(4) not in document.objects
        assert Reference(6) not in document.objects


def test_incremental_update_latest_state_wins() -> None:
    original = _classic_pdf(_BASIC_OBJECTS, b"<< /Size 5 /Root 1 0 R >>")
    first_xref = int(original.rsplit(b"startxref\n", 1)[1].split(b"\n", 1)[0])

    update = bytearray(original)
    offset = len(update)
    update += b"4 0 obj\n<< /Length 3 >>\nstream\nxyz\nendstream\nendobj\n"
    xref_offset = len(update)
    update += b"xref\n4 1\n%010d 00000 n \n" % offset
    update += b"trailer\n<< /Size 5 /Root 1 0 R /Prev %d >>\nstartxref\n%d\n%%%%EOF\n" % (
        first_xref,
        xref_offset,
    )

    document = load(bytes(update))
    assert page_content(document, document.page_refs[0]) == b"xyz"


def test_newer_free_entry_shadows_older_object() -> None:
    objects = _BASIC_OBJECTS + [(5, b"(orphan)")]
    original = _classic_pdf(objects, b"<< /Size 6 /Root 1 0 R >>")
    first_xref = int(original.rsplit(b"startxref\n", 1)[1].split(b"\n", 1)[0])

    update = bytearray(original)
    xref_offset = len(update)
    update += b"xref\n5 1\n0000000000 00001 f \n"
    update += b"trailer\n<< /Size 6 /Root 1 0 R /Prev %d >>\nstartxref\n%d\n%%%%EOF\n" % (
        first_xref,
        xref_offset,
    )

    document = load(bytes(update))
    assert Reference(5) not in document.objects


def test_dangling_entry_is_recovered_by_search() -> None:
    data = bytearray(_classic_pdf(_BASIC_OBJECTS, b"<< /Size 5 /Root 1 0 R >>"))
    # Point object 4 at object 3's offset.
    xref_start = data.rindex(b"\nxref\n") + 1
    lines = data[xref_start:].split(b"\n")
    lines[6] = lines[5]
    data[xref_start:] = b"\n".join(lines)

    document = load(bytes(data))
    assert page_content(document, document.page_refs[0]) == b"abc"

    with pytest.raises(MalformedPdfError):
        load(bytes(data), strict=True)


def test_missing_object_resolves_to_unresolved() -> None:
    objects = [
        (1, b"<< /Type /Catalog /Pages 2 0 R >>"),
        (2, b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>"),
        (3, b"<< /Type /Page /Parent 2 0 R /Contents 9 0 R >>"),
    ]
    document = load(_classic_pdf(objects, b"<< /Size 4 /Root 1 0 R >>"))
    page = document.resolve(document.page_refs[0])
    assert document.resolve(page["Contents"]) == Unresolved(Reference(9))


def test_damaged_startxref_is_rebuilt() -> None:
    data = _classic_pdf(_BASIC_OBJECTS, b"<< /Size 5 /Root 1 0 R >>")
    head, _ = data.rsplit(b"startxref\n", 1)
    damaged = head + b"startxref\n999999\n%%EOF\n"

    document = load(damaged)
    assert document.page_count == 1

    with pytest.raises(MalformedPdfError):
        load(damaged, strict=True)


def test_missing_trailer_uses_catalog_scan() -> None:
    out, _ = _assemble(_BASIC_OBJECTS)
    document = load(bytes(out) + b"%%EOF\n")
    assert document.root_ref == Reference(1)
    assert document.page_count == 1


def test_missing_header_is_malformed() -> None:
    with pytest.raises(MalformedPdfError):
        load(b"not a pdf at all")


def test_encrypted_file_is_unsupported() -> None:
    objects = _BASIC_OBJECTS + [(5, b"<< /Filter /Standard /V 1 /R 2 >>")]
    data = _classic_pdf(objects, b"<< /Size 6 /Root 1 0 R /Encrypt 5 0 R >>")
    with pytest.raises(UnsupportedFeatureError):
        load(data)


def test_cyclic_page_tree_is_malformed() -> None:
    objects = [
        (1, b"<< /Type /Catalog /Pages 2 0 R >>"),
        (2, b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>"),
        (3, b"<< /Type /Pages /Kids [2 0 R] /Count 1 >>"),
    ]
    document = load(_classic_pdf(objects, b"<< /Size 4 /Root 1 0 R >>"))
    with pytest.raises(MalformedPdfError):
        document.page_refs


def test_loader_reads_nested_tree_written_by_serializer(pdf_file_factory: Callable[..., Path]) -> None:
    path = pdf_file_factory("nested.pdf", 5, nested=True)
    document = DocumentLoader(path.read_bytes()).load()
    assert document.page_count == 5
    assert document.resolve(document.catalog["Pages"])["Type"] == Name("Pages")


def test_deeply_nested_object_is_a_typed_error() -> None:
    bomb = b"[" * 100_000
    damaged = _classic_pdf(_BASIC_OBJECTS + [(5, bomb)], b"<< /Size 6 /Root 1 0 R >>")

    document = load(damaged)
    assert Reference(5) not in document.objects
    assert document.page_count == 1

    with pytest.raises(MalformedPdfError):
        load(damaged, strict=True)
    with pytest.raises(MalformedPdfError):
        load(_classic_pdf([(1, bomb)], b"<< /Size 2 /Root 1 0 R >>"))
