"""Server configuration types, location matching and endpoint checks."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from webserv.request import DEFAULT_MAX_BODY_SIZE

DEFAULT_ENDPOINTS: dict[str, tuple[str, ...]] = {
    "/": ("GET",),
    "/login": ("GET",),
    "/uploads": ("POST", "DELETE", "GET"),
    "/cgi-bin": ("GET", "POST"),
    "/error_pages": ("GET",),
}


@dataclass
class Location:
    """A location block: the URI prefix it serves and where its files live."""

    path: str
    root: str = ""
    alias: str = ""


@dataclass
class ServerConfig:
    """Settings of one virtual server."""

    root: str = ""
    domains: list[str] = field(default_factory=list)
    ip_port: dict[str, list[int]] = field(default_factory=dict)
    client_max_body_size: int = DEFAULT_MAX_BODY_SIZE
    exact_loc: dict[str, Location] = field(default_factory=dict)
    prefer_loc: dict[str, Location] = field(default_factory=dict)
    prefix_loc: dict[str, Location] = field(default_factory=dict)


class EndpointError(Exception):
    """Raised when a URI has no endpoint (404) or the method is not allowed (405)."""

    def __init__(self, status: int, allowed: Sequence[str] = ()) -> None:
        super().__init__(status)
        self.status = status
        self.allowed = tuple(allowed)


def _longest_prefix(table: Mapping[str, Location], uri: str) -> Location | None:
    candidates = [
        (len(prefix), location)
        for prefix, location in table.items()
        if prefix and uri.startswith(prefix)
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda item: item[0])[1]


def match_location(config: ServerConfig, uri: str) -> Location | None:
    """Find the location serving ``uri``.

    An exact match wins, then the longest preferred prefix, then the longest
    plain prefix. Returns None when nothing matches.
    """
    exact = config.exact_loc.get(uri)
    if exact is not None:
        return exact
    for table in (config.prefer_loc, config.prefix_loc):
        found = _longest_prefix(table, uri)
        if found is not None:
            return found
    return None


def normalise_segments(url: str) -> str:
    """Collapse empty, ``.`` and ``..`` segments of a slash-separated path.

    The result is absolute and keeps a trailing slash if the input had one.
    """
    stack: list[str] = []
    for segment in url.split("/"):
        if not segment or segment == ".":
            continue
        if segment == "..":
            if stack:
                stack.pop()
            continue
        stack.append(segment)
    result = "".join("/" + segment for segment in stack) if stack else "/"
    if url.endswith("/"):
        result += "/"
    return result


def _covers(endpoint: str, uri: str) -> bool:
    if not endpoint or not uri.startswith(endpoint):
        return False
    return endpoint == "/" or len(uri) == len(endpoint) or uri[len(endpoint)] == "/"


def match_endpoint(
    uri: str,
    method: str,
    endpoints: Mapping[str, Iterable[str]] = DEFAULT_ENDPOINTS,
) -> str:
    """Return the longest endpoint covering ``uri`` that allows ``method``.

    Raises EndpointError with status 404 if no endpoint covers the URI and
    405, carrying the allowed methods, if the method is not among them.
    """
    covering = [endpoint for endpoint in endpoints if _covers(endpoint, uri)]
    if not covering:
        raise EndpointError(404)
    best = max(covering, key=len)
    allowed = tuple(endpoints[best])
    if method not in allowed:
        raise EndpointError(405, allowed)
    return best


def allow_header(methods: Iterable[str]) -> str:
    """Format methods as the value of an ``Allow`` header."""
    return ", ".join(methods)