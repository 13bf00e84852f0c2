"""Building HTTP responses for parsed requests."""

from __future__ import annotations

import enum
import os
import time
from collections.abc import Iterable, Mapping

from webserv.files import generate_filename, http_date
from webserv.request import Request
from webserv.routing import (
    DEFAULT_ENDPOINTS,
    EndpointError,
    Location,
    ServerConfig,
    allow_header,
    match_endpoint,
    match_location,
    normalise_segments,
)
from webserv.status import error_page, status_text

WRITE_TIMEOUT = 10
SERVER_NAME = "webserv/1.0"
_WRITE_CHUNK = 1024 * 1024
_CGI_DIR = "/cgi-bin/"
_POST_SUCCESS = b"<html><body>Success: File posted</body></html>"


class ResponseState(enum.Enum):
    """Stages a response passes through while it is being built."""

    NO_RESPONSE = enum.auto()
    PROCESSING = enum.auto()
    CGI_RUNNING = enum.auto()
    DONE = enum.auto()


class ResponseError(Exception):
    """Raised when building a response stops with an error or redirect status."""

    def __init__(self, status: int) -> None:
        super().__init__(status)
        self.status = status


class Response:
    """The response to one request, built against a server configuration."""

    def __init__(
        self,
        request: Request,
        config: ServerConfig,
        endpoints: Mapping[str, Iterable[str]] = DEFAULT_ENDPOINTS,
    ) -> None:
        self.request = request
        self.config = config
        self.endpoints = {path: tuple(methods) for path, methods in endpoints.items()}
        self._clear()

    def _clear(self) -> None:
        self.state = ResponseState.NO_RESPONSE
        self.status_code = 200
        self.uri = ""
        self.url = ""
        self.method = ""
        self.location: Location | None = None
        self.body = b""
        self.headers: dict[str, str] = {}
        self.response = b""
        self.bytes_sent = 0
        self.script_name = ""
        self.script_file_name = ""
        self.path_info = ""
        self.path_translated = ""

    def reset(self) -> None:
        """Forget everything about the previous response."""
        self._clear()

    def _fail(self, status: int) -> None:
        self.status_code = status
        raise ResponseError(status)

    def match_location(self) -> Location | None:
        """Start processing the request and find the location that serves it."""
        self.status_code = (
            self.request.status_code if self.request.status_code is not None else 200
        )
        self.uri = self.request.uri
        self.method = self.request.method
        self.state = ResponseState.PROCESSING
        self.location = match_location(self.config, self.uri)
        return self.location

    def resolve_url(self) -> str:
        """Map the request URI to a file system path and check the endpoint.

        Raises ResponseError on a failed request, a missing root (500), an
        unknown endpoint (404), a forbidden method (405, with an ``Allow``
        header) or a directory asked for without a trailing slash (301, with
        a ``Location`` header).
        """
        if self.status_code != 200:
            raise ResponseError(self.status_code)
        loc = self.location
        if loc is not None and loc.alias:
            remaining = self.uri[len(loc.path):]
            if remaining.startswith("/"):
                remaining = remaining[1:]
            separator = "" if loc.alias.endswith("/") else "/"
            self.url = loc.alias + separator + remaining

        if not self.url:
            if loc is not None and loc.root:
                self.url = loc.root + self.uri
            elif self.config.root:
                self.url = self.config.root + self.uri
            else:
                self._fail(500)

        self.url = normalise_segments(self.url)

        try:
            match_endpoint(self.uri, self.method, self.endpoints)
        except EndpointError as error:
            if error.status == 405:
                self.headers["Allow"] = allow_header(error.allowed)
            self._fail(error.status)

        if os.path.isdir(self.url) and not self.url.endswith("/"):
            self.url += "/"
            self.uri += "/"
            self.headers["Location"] = self.uri
            self._fail(301)
        return self.url

    def handle_post(self) -> str:
        """Store the request body under the resolved directory.

        Returns the path written. Raises ResponseError with 415 when the
        request has no content type and 500 when the file cannot be written.
        """
        content_type = self.request.headers.get("content-type")
        if content_type is None:
            self._fail(415)
        name = self.request.filename or generate_filename(content_type)
        if self.url and not self.url.endswith("/"):
            self.url += "/"
        self.url += name
        self.status_code = 200 if os.path.exists(self.url) else 201

        data = bytes(self.request.body)
        start = time.monotonic()
        try:
            with open(self.url, "wb") as handle:
                for offset in range(0, len(data), _WRITE_CHUNK):
                    if time.monotonic() - start > WRITE_TIMEOUT:
                        raise TimeoutError("Write operation timed out")
                    handle.write(data[offset:offset + _WRITE_CHUNK])
        except OSError:
            self._fail(500)

        self.body = _POST_SUCCESS
        self.headers["Content-Type"] = "text/html"
        self.headers["Content-Length"] = str(len(self.body))
        if self.status_code == 201:
            separator = "/" if self.uri and not self.uri.endswith("/") else ""
            self.headers["Location"] = self.uri + separator + self.request.filename
        return self.url

    def handle_delete(self) -> None:
        """Remove the resolved file.

        Raises ResponseError with 404 for a missing file, 403 for a directory
        or a parent without write and search permission, and 500 if removal fails.
        """
        if not os.path.exists(self.url):
            self._fail(404)
        if os.path.isdir(self.url):
            self._fail(403)
        parent = self.url.rpartition("/")[0] if "/" in self.url else self.url
        if not parent:
            parent = "."
        if not (os.access(parent, os.W_OK) and os.access(parent, os.X_OK)):
            self._fail(403)
        try:
            os.remove(self.url)
        except OSError:
            self._fail(500)
        self.status_code = 200
        self.body = error_page(200).encode("latin-1")
        self.headers["Content-Type"] = "text/html"
        self.headers["Content-Length"] = str(len(self.body))

    def _set_required_headers(self) -> None:
        self.headers["Connection"] = "keep-alive" if self.request.keep_alive else "close"
        self.headers["Server"] = SERVER_NAME
        self.headers["Date"] = http_date()

    def standard_response(self, cgi_headers: str = "") -> bytes:
        """Append the status line, headers and body to ``response`` and return it."""
        self._set_required_headers()
        lines = [f"HTTP/1.1 {self.status_code} {status_text(self.status_code)}\r\n"]
        lines.extend(f"{name}: {value}\r\n" for name, value in sorted(self.headers.items()))
        lines.append(cgi_headers)
        lines.append("\r\n")
        self.response += "".join(lines).encode("latin-1") + self.body
        return self.response

    def parse_cgi_paths(self) -> None:
        """Split the resolved URL into the script and the extra path after it.

        Raises ValueError if the URL has no ``/cgi-bin/`` directory.
        """
        path = self.url.partition("?")[0]
        cgi_pos = path.find(_CGI_DIR)
        if cgi_pos == -1:
            raise ValueError(f"no {_CGI_DIR} in {path!r}")
        next_slash = path.find("/", cgi_pos + len(_CGI_DIR))
        if next_slash == -1:
            self.script_name = path[cgi_pos:]
            self.script_file_name = path
            self.path_info = ""
            self.path_translated = ""
        else:
            self.script_name = path[cgi_pos:next_slash]
            self.script_file_name = path[:next_slash]
            self.path_info = path[next_slash:]
            self.path_translated = path[:cgi_pos] + self.path_info