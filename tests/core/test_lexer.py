from __future__ import annotations

import pytest

from pdf_manager.core.lexer import MAX_NESTING_DEPTH, Lexer, parse_value
from pdf_manager.core.objects import Name, PdfString, Reference, Stream
from pdf_manager.exceptions import MalformedPdfError, PdfSyntaxError


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        (b"null", None),
        (b"true", True),
        (b"false", False),
        (b"42", 42),
        (b"-17", -17),
        (b"+5", 5),
        (b"3.25", 3.25),
        (b".5", 0.5),
        (b"-3.", -3.0),
        (b"/Type", Name("Type")),
        (b"/A#20B", Name("A B")),
        (b"12 0 R", Reference(12, 0)),
    ],
)
def test_parse_scalars(source: bytes, expected: object) -> None:
    assert parse_value(source) == expected


def test_parse_literal_string_escapes() -> None:
    value = parse_value(rb"(a\(b\)c\\d\n\101\0531 (nested) tail\
joined)")
    assert isinstance(value, PdfString)
    assert value.value == b"a(b)c\\d\nA+1 (nested) tailjoined"
    assert value.hex is False


def test_literal_string_normalises_carriage_returns() -> None:
    assert parse_value(b"(one\r\ntwo\rthree)").value == b"one\ntwo\nthree"


def test_parse_hex_string_pads_odd_digits() -> None:
    value = parse_value(b"<48 65 6C6C 6F7>")
    assert value == PdfString(b"Hello\x70", hex=True)


def test_parse_array_and_dictionary() -> None:
    value = parse_value(b"<< /Kids [1 0 R 2 0 R] /Count 2 /MediaBox [0 0 612.5 792] /Sub << /X null >> >>")
    assert value == {
        "Kids": [Reference(1), Reference(2)],
        "Count": 2,
        "MediaBox": [0, 0, 612.5, 792],
        "Sub": {"X": None},
    }


def test_integers_not_followed_by_r_stay_integers() -> None:
    assert parse_value(b"[1 2 3 R 4 5]") == [1, Reference(2, 3), 4, 5]


def test_comments_are_skipped() -> None:
    assert parse_value(b"% leading comment\n[1 % inline\n 2]") == [1, 2]


@pytest.mark.parametrize("source", [b"(unterminated", b"<4G>", b"[1 2", b"<< /A 1", b")", b"<< 1 2 >>"])
def test_syntax_errors(source: bytes) -> None:
    with pytest.raises(PdfSyntaxError):
        parse_value(source)


def test_syntax_error_reports_offset() -> None:
    with pytest.raises(PdfSyntaxError) as excinfo:
        parse_value(b"[1 2 }")
    assert excinfo.value.offset == 5
    assert "byte offset 5" in str(excinfo.value)


def test_parse_indirect_stream_with_direct_length() -> None:
    data = b"7 0 obj\n<< /Length 5 >>\nstream\nhello\nendstream\nendobj\n"
    ref, value = Lexer(data).parse_indirect_object()
    assert ref == Reference(7, 0)
    assert isinstance(value, Stream)
    assert value.data == b"hello"


def test_parse_indirect_stream_with_indirect_length() -> None:
    data = b"7 0 obj\n<< /Length 8 0 R >>\nstream\r\nabc\nendstream\nendobj\n"
    lengths = {Reference(8): 3}
    _, value = Lexer(data).parse_indirect_object(lengths.get)
    assert value.data == b"abc"


def test_wrong_length_falls_back_to_endstream() -> None:
    data = b"1 0 obj\n<< /Length 99 >>\nstream\nshort\nendstream\nendobj\n"
    _, value = Lexer(data).parse_indirect_object()
    assert value.data == b"short"


def test_wrong_length_is_fatal_in_strict_mode() -> None:
    data = b"1 0 obj\n<< /Length 2 >>\nstream\nshort\nendstream\nendobj\n"
    with pytest.raises(MalformedPdfError):
        Lexer(data, strict=True).parse_indirect_object()


def test_stream_without_endstream_is_malformed() -> None:
    data = b"1 0 obj\n<< /Length 5 >>\nstream\nhello and more"
    with pytest.raises(MalformedPdfError):
        Lexer(data).parse_indirect_object()


def test_nesting_depth_is_limited() -> None:
    allowed = b"[" * MAX_NESTING_DEPTH + b"]" * MAX_NESTING_DEPTH
    value = parse_value(allowed)
    for _ in range(MAX_NESTING_DEPTH - 1):
        value = value[0]
    assert value == []

    with pytest.raises(PdfSyntaxError):
        parse_value(b"[" * 100_000)
    with pytest.raises(PdfSyntaxError):
        parse_value(b"<< /A " * (MAX_NESTING_DEPTH + 1))


def test_nesting_depth_resets_between_values() -> None:
    nested = b"[" * MAX_NESTING_DEPTH + b"]" * MAX_NESTING_DEPTH
    lexer = Lexer(nested + b" " + nested)

    lexer.parse_value()
    assert isinstance(lexer.parse_value(), list)
