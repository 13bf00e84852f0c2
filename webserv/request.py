"""Incremental parser for HTTP/1.1 requests arriving in pieces."""

from __future__ import annotations

import enum
import re
import time

from webserv.grammar import (
    extract_uri,
    is_field_vchar,
    is_path_reserved,
    is_query_reserved,
    is_repeatable_header,
    is_sub_delimiter,
    is_tchar,
    is_unreserved,
    parse_decimal,
)
from webserv.multipart import MultipartError, MultipartParser, extract_boundary

DEFAULT_MAX_BODY_SIZE = 10 * 1024 * 1024
DEFAULT_MAX_URI_LENGTH = 2048
DEFAULT_TIMEOUT = 60

SUPPORTED_METHODS = frozenset({"GET", "POST", "DELETE"})
UNSUPPORTED_VERSIONS = frozenset(
    {"HTTP/0.9", "HTTP/1.0", "HTTP/2", "HTTP/2.0", "HTTP/3", "HTTP/3.0"}
)

_METHOD = re.compile(r"[A-Z][A-Z0-9\-._~]*")
_OTHER_WHITESPACE = frozenset("\t\n\v\f\r")
# Optional whitespace and sign, an optional 0x prefix, then hex digits;
# anything after the digits is ignored.
_HEX = re.compile(r"[ \t\n\v\f\r]*([+-]?)(?:0[xX]([0-9a-fA-F]+)|([0-9a-fA-F]+))")
_ULLONG_MAX = 2**64 - 1


class RequestState(enum.Enum):
    """Stages a request passes through while it is being read."""

    NO_REQUEST = enum.auto()
    REQUEST_LINE = enum.auto()
    HEADERS = enum.auto()
    BODY = enum.auto()
    CHUNK_SIZE = enum.auto()
    CHUNK_DATA = enum.auto()
    MULTIPART = enum.auto()
    DONE = enum.auto()
    SPECIAL_ERROR = enum.auto()


_IN_CHUNKS = (RequestState.CHUNK_SIZE, RequestState.CHUNK_DATA)


class _Reject(Exception):
    """Stops parsing and completes the request with an error status."""

    def __init__(self, status: int) -> None:
        super().__init__(status)
        self.status = status


def _parse_hex(text: str) -> int:
    match = _HEX.match(text)
    if match is None:
        raise _Reject(400)
    sign, prefixed, plain = match.groups()
    value = int(prefixed or plain, 16)
    if value > _ULLONG_MAX:
        raise _Reject(400)
    return (-value) & _ULLONG_MAX if sign == "-" else value


def _valid_request_line_format(line: str) -> bool:
    if any(c in _OTHER_WHITESPACE for c in line):
        return False
    if "  " in line:
        return False
    return line.count(" ") == 2


class Request:
    """One HTTP request on a connection, built up from the bytes fed to ``parse``.

    When parsing ends, ``state`` is ``RequestState.DONE`` and ``status_code``
    holds 200 or the error status that the response should carry.
    """

    def __init__(
        self,
        client_max_body_size: int = DEFAULT_MAX_BODY_SIZE,
        max_uri_length: int = DEFAULT_MAX_URI_LENGTH,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.client_max_body_size = client_max_body_size
        self.max_uri_length = max_uri_length
        self.timeout = timeout
        self._clear()
        self.start_time: float | None = time.time()
        self.first_request = True

    def _clear(self) -> None:
        self.state = RequestState.NO_REQUEST
        self.status_code: int | None = None
        self.method = ""
        self.uri = ""
        self.path = ""
        self.query = ""
        self.version = ""
        self.headers: dict[str, str] = {}
        self.host = ""
        self.port = -1
        self.content_length: int | None = None
        self.chunked = False
        self.keep_alive = True
        self.body = bytearray()
        self.requires_cgi = False
        self.name = ""
        self.filename = ""
        self.content_type = ""
        self.timeout_detected = False
        self._head = bytearray()
        self._chunks = bytearray()
        self._chunk_pos = 0
        self._chunk_size = 0
        self._chunk_read = 0
        self._boundary: bytes | None = None
        self._multipart: MultipartParser | None = None

    @property
    def done(self) -> bool:
        """True once the request has been read completely or rejected."""
        return self.state is RequestState.DONE

    def reset(self) -> None:
        """Prepare for the next request on a kept-alive connection."""
        self._clear()
        self.start_time = None
        self.first_request = False

    def reset_timer(self, now: float | None = None) -> None:
        """Restart the read timeout from ``now`` (the current time by default)."""
        self.start_time = time.time() if now is None else now

    def has_timed_out(self, now: float | None = None) -> bool:
        """True if a request in progress has taken longer than the timeout."""
        waiting = self.state not in (RequestState.NO_REQUEST, RequestState.DONE) or (
            self.state is RequestState.NO_REQUEST and self.first_request
        )
        if not waiting or self.start_time is None:
            return False
        current = time.time() if now is None else now
        return current - self.start_time > self.timeout

    def port_text(self) -> str:
        """The port as decimal text."""
        return str(self.port)

    def parse(self, data: bytes) -> bool:
        """Consume more bytes of the request; return True when it is complete."""
        if self.state is RequestState.NO_REQUEST:
            self.state = RequestState.REQUEST_LINE
            self.reset_timer()
        try:
            if self.state is RequestState.REQUEST_LINE:
                self._head += data
                data = b""
                self._parse_request_line()
            if self.state is RequestState.HEADERS:
                self._head += data
                data = b""
                self._parse_headers()
            if self.state is RequestState.BODY:
                self.body += data
                data = b""
                self._parse_body()
            if self.state in _IN_CHUNKS:
                self._chunks += data
                data = b""
                self._parse_chunks()
            if self.state is RequestState.MULTIPART:
                self._feed_multipart(data)
        except _Reject as reject:
            self._finish(reject.status)
        return self.done

    def _finish(self, status: int) -> None:
        self.state = RequestState.DONE
        self.status_code = status

    # Request line

    def _parse_request_line(self) -> None:
        end = self._head.find(b"\r\n")
        if end == -1:
            return
        line = self._head[:end].decode("latin-1")
        if not line or not _valid_request_line_format(line):
            raise _Reject(400)
        method, uri, version = line.split(" ")
        if not (method and uri and version):
            raise _Reject(400)
        self.method, self.uri, self.version = method, uri, version
        self._check_method()
        self._check_uri()
        self._check_version()
        self.state = RequestState.HEADERS

    def _check_method(self) -> None:
        if not _METHOD.fullmatch(self.method):
            raise _Reject(400)
        if self.method not in SUPPORTED_METHODS:
            raise _Reject(501)

    def _check_uri(self) -> None:
        try:
            self.uri = extract_uri(self.uri)
        except ValueError:
            raise _Reject(400) from None
        if len(self.uri) > self.max_uri_length:
            raise _Reject(414)
        if "../" in self.uri or "..\\" in self.uri:
            raise _Reject(403)
        path, _, query = self.uri.partition("?")
        if self.uri.endswith("/") and path and not path.endswith("/"):
            path += "/"
        if not all(
            is_unreserved(c) or is_sub_delimiter(c) or is_path_reserved(c) for c in path
        ):
            raise _Reject(400)
        if not all(
            is_unreserved(c) or is_sub_delimiter(c) or is_query_reserved(c) for c in query
        ):
            raise _Reject(400)
        self.path, self.query = path, query
        if "/cgi-bin/" in path:
            self.requires_cgi = True

    def _check_version(self) -> None:
        if self.version == "HTTP/1.1":
            return
        if self.version in UNSUPPORTED_VERSIONS:
            raise _Reject(505)
        raise _Reject(400)

    # Headers

    def _parse_headers(self) -> None:
        end = self._head.find(b"\r\n\r\n")
        if end == -1:
            return
        head = bytes(self._head[:end + 2])
        leftover = bytes(self._head[end + 4:])
        self._head.clear()
        line_end = head.find(b"\r\n")
        self._populate_headers(head[line_end + 2:].decode("latin-1"))
        self._check_headers()
        self._extract_header_values()

        self.body = bytearray()
        if self.method != "POST":
            self._finish(200)
        elif self.chunked:
            self.state = RequestState.CHUNK_SIZE
            self._chunks = bytearray(leftover)
        elif self._boundary is not None:
            self.state = RequestState.MULTIPART
            self._multipart = MultipartParser(self._boundary)
            self.body = self._multipart.body
            self._feed_multipart(leftover)
        else:
            self.state = RequestState.BODY
            self.body = bytearray(leftover)

    def _populate_headers(self, text: str) -> None:
        for line in text.split("\r\n")[:-1]:
            name, colon, value = line.partition(":")
            if not colon or not name or not all(is_tchar(c) for c in name):
                raise _Reject(400)
            name = name.lower()
            if not value:
                raise _Reject(400)
            value = value.strip(" \t")
            if not all(is_field_vchar(c) or c in " \t" for c in value):
                raise _Reject(400)
            if name in self.headers and not is_repeatable_header(name):
                raise _Reject(400)
            self.headers[name] = value

    def _check_headers(self) -> None:
        if "host" not in self.headers:
            raise _Reject(400)
        if self.method == "POST":
            has_length = "content-length" in self.headers
            has_transfer = "transfer-encoding" in self.headers
            if has_length == has_transfer:
                raise _Reject(400 if has_length else 411)

    def _extract_header_values(self) -> None:
        host, colon, port = self.headers["host"].partition(":")
        self.host = host
        if colon:
            try:
                number = parse_decimal(port)
            except ValueError:
                raise _Reject(400) from None
            if not 0 < number <= 65535:
                raise _Reject(400)
            self.port = number
        else:
            self.port = 80

        length = self.headers.get("content-length")
        if length is not None:
            try:
                number = parse_decimal(length)
            except ValueError:
                raise _Reject(400) from None
            if number > self.client_max_body_size:
                raise _Reject(413)
            self.content_length = number

        encoding = self.headers.get("transfer-encoding")
        if encoding is not None:
            self.chunked = encoding == "chunked"
        connection = self.headers.get("connection")
        if connection is not None:
            self.keep_alive = connection == "keep-alive"

        content_type = self.headers.get("content-type")
        if content_type is not None and "multipart/form-data" in content_type:
            try:
                self._boundary, trimmed = extract_boundary(content_type)
            except MultipartError:
                raise _Reject(400) from None
            self.headers["content-type"] = trimmed

    # Bodies

    def _parse_body(self) -> None:
        if self.content_length is None:
            return
        if len(self.body) > self.content_length:
            raise _Reject(400)
        if len(self.body) == self.content_length:
            self._finish(200)

    def _parse_chunks(self) -> None:
        while self.state in _IN_CHUNKS and self._chunk_pos < len(self._chunks):
            if self.state is RequestState.CHUNK_SIZE:
                progressed = self._read_chunk_size()
            else:
                progressed = self._read_chunk_data()
            if not progressed:
                return

    def _read_chunk_size(self) -> bool:
        end = self._chunks.find(b"\r\n", self._chunk_pos)
        if end == -1:
            return False
        line = self._chunks[self._chunk_pos:end].decode("latin-1")
        size = _parse_hex(line.partition(";")[0])
        if len(self.body) + size > self.client_max_body_size:
            raise _Reject(413)
        if size == 0:
            self._finish(200)
            return True
        self._chunk_pos = end + 2
        self._chunk_size = size
        self._chunk_read = 0
        self.state = RequestState.CHUNK_DATA
        return True

    def _read_chunk_data(self) -> bool:
        available = min(
            self._chunk_size - self._chunk_read, len(self._chunks) - self._chunk_pos
        )
        self.body += self._chunks[self._chunk_pos:self._chunk_pos + available]
        self._chunk_pos += available
        self._chunk_read += available
        if self._chunk_read != self._chunk_size:
            return False
        if len(self._chunks) - self._chunk_pos < 2:
            return False
        if self._chunks[self._chunk_pos:self._chunk_pos + 2] != b"\r\n":
            raise _Reject(400)
        self._chunk_pos += 2
        self._chunk_size = self._chunk_read = 0
        self.state = RequestState.CHUNK_SIZE
        return True

    def _feed_multipart(self, data: bytes) -> None:
        parser = self._multipart
        if parser is None:
            raise _Reject(400)
        try:
            complete = parser.feed(data)
        except MultipartError:
            raise _Reject(400) from None
        finally:
            self.name = parser.name
            self.filename = parser.filename
            self.content_type = parser.content_type
        if complete:
            self._finish(200)