from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest
from pypdf import PdfWriter
from pypdf.generic import DecodedStreamObject, NameObject

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from pdf_manager.core.document import Document  # noqa: E402
from pdf_manager.core.objects import Name, PdfString, Reference, Stream  # noqa: E402
from pdf_manager.core.serializer import write  # noqa: E402


def page_text(label: str) -> bytes:
    return f"BT /F1 12 Tf 20 100 Td ({label}) Tj ET".encode("ascii")


def build_document(
    page_count: int = 3,
    *,
    nested: bool = False,
    info: Optional[Dict[str, str]] = None,
    version: str = "1.7",
    label: str = "page",
) -> Document:
    """Build a document whose page ``n`` draws ``"<label> n"``.

    Resources and MediaBox live on the root page tree node so pages inherit
    them. With ``nested=True`` pages are grouped in pairs under intermediate
    nodes; the first group carries ``/Rotate 90`` and its own MediaBox.
    """

    document = Document(version=version)
    font = document.add({"Type": Name("Font"), "Subtype": Name("Type1"), "BaseFont": Name("Helvetica")})
    resources = document.add({"Font": {"F1": font}})
    root = document.add({})

    def make_page(number: int, parent: Reference) -> Reference:
        content = document.add(Stream({}, page_text(f"{label} {number}")))
        return document.add({"Type": Name("Page"), "Parent": parent, "Contents": content})

    numbers = list(range(1, page_count + 1))
    if nested:
        kids: List[Reference] = []
        for index in range(0, page_count, 2):
            group = document.add({})
            group_pages = [make_page(number, group) for number in numbers[index : index + 2]]
            node = {"Type": Name("Pages"), "Parent": root, "Kids": group_pages, "Count": len(group_pages)}
            if index == 0:
                node["Rotate"] = 90
                node["MediaBox"] = [0, 0, 300, 300]
            document.set(group, node)
            kids.append(group)
    else:
        kids = [make_page(number, root) for number in numbers]

    document.set(
        root,
        {
            "Type": Name("Pages"),
            "Kids": kids,
            "Count": page_count,
            "MediaBox": [0, 0, 200, 200],
            "Resources": resources,
        },
    )
    catalog = document.add({"Type": Name("Catalog"), "Pages": root})
    document.trailer["Root"] = catalog
    if info is not None:
        document.trailer["Info"] = document.add(
            {key: PdfString(value.encode("latin-1")) for key, value in info.items()}
        )
    return document


def write_pypdf_file(path: Path, pages: int, metadata: Optional[Dict[str, str]] = None) -> Path:
    writer = PdfWriter()
    for number in range(1, pages + 1):
        page = writer.add_blank_page(width=200, height=200)
        stream = DecodedStreamObject()
        stream.set_data(page_text(f"{path.stem} {number}"))
        page[NameObject("/Contents")] = writer._add_object(stream)
    if metadata:
        writer.add_metadata(metadata)
    with path.open("wb") as handle:
        writer.write(handle)
    return path


@pytest.fixture()
def document_factory() -> Callable[..., Document]:
    return build_document


@pytest.fixture()
def pdf_file_factory(tmp_path: Path) -> Callable[..., Path]:
    """Write a :func:`build_document` document to disk with our serializer."""

    def _create(filename: str, page_count: int = 3, **options) -> Path:
        xref_format = options.pop("xref_format", "table")
        path = tmp_path / filename
        path.write_bytes(write(build_document(page_count, **options), xref_format=xref_format))
        return path

    return _create


@pytest.fixture()
def sample_pdf(tmp_path: Path) -> Path:
    return write_pypdf_file(
        tmp_path / "sample.pdf", 5, {"/Producer": "pdf-manager-tests", "/Title": "Sample"}
    )


@pytest.fixture()
def empty_pdf(tmp_path: Path) -> Path:
    pdf_path = tmp_path / "empty.pdf"
    writer = PdfWriter()
    with pdf_path.open("wb") as stream:
        writer.write(stream)
    return pdf_path


@pytest.fixture()
def pdf_factory(tmp_path: Path) -> Callable[..., Path]:
    def _create(filename: str, pages: int = 1, title: str | None = None) -> Path:
        metadata = {"/Title": title} if title is not None else None
        return write_pypdf_file(tmp_path / filename, pages, metadata)

    return _create


@pytest.fixture()
def sample_pdfs(pdf_factory: Callable[..., Path]) -> list[Path]:
    pdf1 = pdf_factory("one.pdf", pages=2, title="Document One")
    pdf2 = pdf_factory("two.pdf", pages=3)
    return [pdf1, pdf2]
