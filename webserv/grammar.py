"""Character classes and small parsers for HTTP request lines and headers."""

from __future__ import annotations

import re

_SUB_DELIMITERS = frozenset("!$&'()*+,;=")
_PATH_RESERVED = frozenset(":/@;=+,$")
_QUERY_RESERVED = frozenset("/?:@&=+,$;")
_TCHAR_EXTRA = frozenset("!#$%&'*+-.^_`|~")
_UNRESERVED_EXTRA = frozenset("-._~")

_REPEATABLE_HEADERS = frozenset(
    {
        "accept",
        "accept-charset",
        "accept-encoding",
        "accept-language",
        "www-authenticate",
        "proxy-authenticate",
        "via",
        "transfer-encoding",
        "content-encoding",
        "content-language",
        "cache-control",
        "if-match",
        "if-none-match",
        "vary",
        "connection",
        "upgrade",
        "link",
        "prefer",
        "set-cookie",
        "cookie",
    }
)

# Leading C whitespace, an optional sign, then decimal digits and nothing else.
_DECIMAL = re.compile(r"[ \t\n\v\f\r]*([+-]?)([0-9]+)")
_ULLONG_MAX = 2**64 - 1


def _is_ascii_alnum(c: str) -> bool:
    return c.isascii() and c.isalnum()


def is_unreserved(c: str) -> bool:
    """True for URI unreserved characters: ASCII letters, digits and ``-._~``."""
    return _is_ascii_alnum(c) or c in _UNRESERVED_EXTRA


def is_sub_delimiter(c: str) -> bool:
    """True for URI sub-delimiters."""
    return c in _SUB_DELIMITERS


def is_path_reserved(c: str) -> bool:
    """True for reserved characters allowed in a URI path."""
    return c in _PATH_RESERVED


def is_query_reserved(c: str) -> bool:
    """True for reserved characters allowed in a URI query."""
    return c in _QUERY_RESERVED


def is_tchar(c: str) -> bool:
    """True for characters allowed in a header field name (token)."""
    return _is_ascii_alnum(c) or c in _TCHAR_EXTRA


def is_field_vchar(c: str) -> bool:
    """True for visible header value characters, including obs-text."""
    code = ord(c)
    return 0x20 <= code <= 0x7E or code >= 128


def is_repeatable_header(name: str) -> bool:
    """True if the lower-cased header may appear more than once."""
    return name in _REPEATABLE_HEADERS


def parse_decimal(text: str) -> int:
    """Parse an unsigned decimal number as used for ports and lengths.

    Empty strings and numbers with a leading zero are rejected. A leading
    minus wraps around the 64-bit range and values too large saturate, as
    the conversion of the C library does.
    """
    if not text or (text[0] == "0" and len(text) > 1):
        raise ValueError(f"invalid number: {text!r}")
    match = _DECIMAL.fullmatch(text)
    if match is None:
        raise ValueError(f"invalid number: {text!r}")
    sign, digits = match.groups()
    value = int(digits)
    if value > _ULLONG_MAX:
        return _ULLONG_MAX
    if sign == "-":
        return (-value) & _ULLONG_MAX
    return value


def extract_uri(uri: str) -> str:
    """Reduce an absolute ``http(s)://`` URI to its path part.

    Raises ValueError for a bare scheme with no authority.
    """
    if uri in ("http://", "https://"):
        raise ValueError(f"incomplete absolute URI: {uri!r}")
    if uri.startswith("http://") or uri.startswith("https://"):
        authority_start = uri.find("://") + 3
        path_start = uri.find("/", authority_start)
        return "/" if path_start == -1 else uri[path_start:]
    return uri