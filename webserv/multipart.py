"""Incremental parsing of multipart/form-data request bodies."""

from __future__ import annotations

import enum
from collections.abc import Callable
from datetime import datetime

_CRLF = b"\r\n"
_HEADERS_END = b"\r\n\r\n"


class MultipartError(ValueError):
    """Raised when a multipart body or its headers are malformed."""

    status = 400


def timestamp_filename(now: datetime | None = None) -> str:
    """Return a ``YYYYMMDD_HHMMSS.txt`` name for the given local time."""
    moment = now if now is not None else datetime.now()
    return moment.strftime("%Y%m%d_%H%M%S") + ".txt"


def extract_boundary(value: str) -> tuple[bytes, str]:
    """Split a multipart Content-Type value into its delimiter and media type.

    Returns the delimiter (the boundary prefixed with ``--``) and the value
    cut at its first ``;``. Raises MultipartError if no usable boundary is found.
    """
    semicolon = value.find(";")
    if semicolon == -1:
        raise MultipartError("multipart content type has no parameters")
    trimmed = value[:semicolon]

    pos = value.find("boundary=")
    if pos == -1:
        raise MultipartError("multipart content type has no boundary")
    pos += len("boundary=")
    if pos >= len(value):
        raise MultipartError("empty boundary")

    if value[pos] == '"':
        pos += 1
        end = value.find('"', pos)
        if end == -1:
            raise MultipartError("unterminated quoted boundary")
    else:
        end = value.find(";", pos)
        if end == -1:
            end = len(value)

    boundary = "--" + value[pos:end]
    if len(boundary) <= 2:
        raise MultipartError("empty boundary")
    return boundary.encode("latin-1"), trimmed


def parse_content_disposition(header: str, now: datetime | None = None) -> tuple[str, str]:
    """Extract the field name and file name from a part's headers.

    A part without a file name gets a timestamp name. Raises MultipartError
    for a missing or empty name or a file name holding a path separator.
    """
    name_pos = header.find('name="')
    if name_pos == -1:
        raise MultipartError("part has no name")
    name_pos += len('name="')
    end = header.find('"', name_pos)
    if end == -1 or end == name_pos:
        raise MultipartError("part name is empty or unterminated")
    name = header[name_pos:end]

    filename_pos = header.find('filename="')
    if filename_pos == -1:
        return name, timestamp_filename(now)
    filename_pos += len('filename="')
    end = header.find('"', filename_pos)
    if end == -1:
        raise MultipartError("unterminated file name")
    filename = header[filename_pos:end]
    if "/" in filename or "\\" in filename:
        raise MultipartError("file name contains a path separator")
    return name, filename


def parse_content_type(header: str) -> str:
    """Return the text between the first ``": "`` and the CRLF after it."""
    pos = header.find(": ")
    if pos == -1:
        raise MultipartError("no header value found")
    end = header.find("\r\n", pos)
    if end == -1:
        raise MultipartError("header value is not terminated")
    return header[pos + 2:end]


class _Stage(enum.Enum):
    BOUNDARY = enum.auto()
    HEADERS = enum.auto()
    BODY = enum.auto()
    DONE = enum.auto()


class MultipartParser:
    """Feed-driven parser that collects the data of every part into ``body``.

    ``now`` is a clock used to name parts that carry no file name.
    """

    def __init__(self, boundary: bytes, now: Callable[[], datetime] = datetime.now) -> None:
        self.boundary = bytes(boundary)
        self._final = self.boundary + b"--"
        self._now = now
        self._buffer = bytearray()
        self._stage = _Stage.BOUNDARY
        self.body = bytearray()
        self.name = ""
        self.filename = ""
        self.content_type = ""

    @property
    def done(self) -> bool:
        """True once the closing delimiter has been read."""
        return self._stage is _Stage.DONE

    def feed(self, data: bytes) -> bool:
        """Consume more body bytes; return True when the body is complete."""
        if self.done:
            return True
        self._buffer += data
        if not self._buffer:
            return False
        steps = {
            _Stage.BOUNDARY: self._read_boundary,
            _Stage.HEADERS: self._read_headers,
            _Stage.BODY: self._read_part,
        }
        while not self.done and steps[self._stage]():
            pass
        return self.done

    def _read_boundary(self) -> bool:
        end = self._buffer.find(_CRLF)
        if end == -1:
            return False
        line = bytes(self._buffer[:end])
        del self._buffer[:end + 2]
        if line == self.boundary:
            self._stage = _Stage.HEADERS
        elif line == self._final:
            self._stage = _Stage.DONE
        else:
            raise MultipartError("unexpected boundary line")
        return True

    def _read_headers(self) -> bool:
        end = self._buffer.find(_HEADERS_END)
        if end == -1:
            return False
        headers = self._buffer[:end].decode("latin-1")
        del self._buffer[:end + 4]
        if "Content-Disposition:" not in headers:
            raise MultipartError("part has no Content-Disposition header")
        self.name, self.filename = parse_content_disposition(headers, self._now())
        if "Content-Type:" not in headers:
            self.content_type = parse_content_type(headers)
        self._stage = _Stage.BODY
        return True

    def _read_part(self) -> bool:
        nxt = self._buffer.find(self.boundary)
        if nxt == -1:
            return False
        self.body += self._buffer[:nxt]
        del self._buffer[:nxt]
        self._stage = _Stage.BOUNDARY
        return True