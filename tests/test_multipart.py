from datetime import datetime

import pytest

from webserv.multipart import (
    MultipartError,
    MultipartParser,
    extract_boundary,
    parse_content_disposition,
    parse_content_type,
    timestamp_filename,
)

FIXED = datetime(2024, 1, 2, 3, 4, 5)

SIMPLE = (
    b"--XyZ\r\n"
    b'Content-Disposition: form-data; name="f"; filename="a.txt"\r\n'
    b"Content-Type: text/plain\r\n"
    b"\r\n"
    b"hello\r\n"
    b"--XyZ--\r\n"
)


def _clock():
    return FIXED


def test_timestamp_filename_format():
    assert timestamp_filename(FIXED) == "20240102_030405.txt"


def test_extract_boundary_plain():
    boundary, media = extract_boundary("multipart/form-data; boundary=XyZ")
    assert boundary == b"--XyZ"
    assert media == "multipart/form-data"


def test_extract_boundary_quoted_with_more_params():
    boundary, media = extract_boundary('multipart/form-data; boundary="a b"; charset=x')
    assert boundary == b"--a b"
    assert media == "multipart/form-data"


def test_extract_boundary_unquoted_stops_at_semicolon():
    boundary, _ = extract_boundary("multipart/form-data; boundary=abc;x=1")
    assert boundary == b"--abc"


@pytest.mark.parametrize(
    "value",
    [
        "multipart/form-data",
        "multipart/form-data; charset=utf-8",
        "multipart/form-data; boundary=",
        'multipart/form-data; boundary=""',
        'multipart/form-data; boundary="abc',
    ],
)
def test_extract_boundary_rejects(value):
    with pytest.raises(MultipartError):
        extract_boundary(value)


def test_content_disposition_with_filename():
    header = 'Content-Disposition: form-data; name="upload"; filename="pic.png"'
    assert parse_content_disposition(header, FIXED) == ("upload", "pic.png")


def test_content_disposition_without_filename_uses_timestamp():
    name, filename = parse_content_disposition('Content-Disposition: form-data; name="x"', FIXED)
    assert name == "x"
    assert filename == timestamp_filename(FIXED)


@pytest.mark.parametrize(
    "header",
    [
        "Content-Disposition: form-data",
        'Content-Disposition: form-data; name=""',
        'Content-Disposition: form-data; name="x',
        'Content-Disposition: form-data; name="x"; filename="../a"',
        'Content-Disposition: form-data; name="x"; filename="a\\b"',
        'Content-Disposition: form-data; name="x"; filename="a',
    ],
)
def test_content_disposition_rejects(header):
    with pytest.raises(MultipartError):
        parse_content_disposition(header, FIXED)


def test_parse_content_type():
    assert parse_content_type("Content-Type: image/png\r\nX: y") == "image/png"


@pytest.mark.parametrize("header", ["Content-Type:image/png\r\n", "Content-Type: image/png"])
def test_parse_content_type_rejects(header):
    with pytest.raises(MultipartError):
        parse_content_type(header)


def test_parser_single_part():
    parser = MultipartParser(b"--XyZ", _clock)
    assert parser.feed(SIMPLE) is True
    assert parser.done
    assert bytes(parser.body) == b"hello\r\n"
    assert parser.name == "f"
    assert parser.filename == "a.txt"


def test_parser_byte_by_byte_matches_whole():
    whole = MultipartParser(b"--XyZ", _clock)
    whole.feed(SIMPLE)
    split = MultipartParser(b"--XyZ", _clock)
    results = [split.feed(SIMPLE[i:i + 1]) for i in range(len(SIMPLE))]
    assert results[-1] is True
    assert not any(results[:-1])
    assert split.body == whole.body
    assert split.filename == whole.filename


def test_parser_waits_for_more_data():
    parser = MultipartParser(b"--XyZ", _clock)
    assert parser.feed(SIMPLE[:40]) is False
    assert not parser.done
    assert parser.feed(SIMPLE[40:]) is True


def test_parser_collects_all_parts():
    data = (
        b"--XyZ\r\n"
        b'Content-Disposition: form-data; name="a"; filename="one.txt"\r\n'
        b"Content-Type: text/plain\r\n\r\n"
        b"first\r\n"
        b"--XyZ\r\n"
        b'Content-Disposition: form-data; name="b"; filename="two.txt"\r\n'
        b"Content-Type: text/plain\r\n\r\n"
        b"second\r\n"
        b"--XyZ--\r\n"
    )
    parser = MultipartParser(b"--XyZ", _clock)
    assert parser.feed(data)
    assert bytes(parser.body) == b"first\r\nsecond\r\n"
    assert parser.name == "b"
    assert parser.filename == "two.txt"


def test_parser_bad_boundary_line():
    parser = MultipartParser(b"--XyZ", _clock)
    with pytest.raises(MultipartError):
        parser.feed(b"--Other\r\n")


def test_parser_part_without_content_type_is_rejected():
    data = b'--XyZ\r\nContent-Disposition: form-data; name="f"\r\n\r\nx\r\n--XyZ--\r\n'
    parser = MultipartParser(b"--XyZ", _clock)
    with pytest.raises(MultipartError):
        parser.feed(data)


def test_parser_part_without_disposition_is_rejected():
    data = b"--XyZ\r\nContent-Type: text/plain\r\n\r\nx\r\n--XyZ--\r\n"
    parser = MultipartParser(b"--XyZ", _clock)
    with pytest.raises(MultipartError) as info:
        parser.feed(data)
    assert info.value.status == 400


def test_parser_ignores_input_after_completion():
    parser = MultipartParser(b"--XyZ", _clock)
    parser.feed(SIMPLE)
    assert parser.feed(b"garbage") is True
    assert bytes(parser.body) == b"hello\r\n"