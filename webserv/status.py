"""Reason phrases and default pages for HTTP status codes."""

from __future__ import annotations

_REASONS = {
    100: "Continue",
    200: "OK",
    201: "Created",
    202: "Accepted",
    204: "No Content",
    300: "Multiple Choices",
    301: "Moved Permanently",
    302: "Found",
    303: "See Other",
    304: "Not Modified",
    307: "Temporary Redirect",
    308: "Permanent Redirect",
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    406: "Not Acceptable",
    407: "Proxy Authentication Required",
    408: "Request Timeout",
    409: "Conflict",
    410: "Gone",
    411: "Length Required",
    412: "Precondition Failed",
    413: "Content Too Large",
    414: "URI Too Long",
    415: "Unsupported Media Type",
    416: "Range Not Satisfiable",
    417: "Expectation Failed",
    422: "Unprocessable Content",
    425: "Too Early",
    426: "Upgrade Required",
    428: "Precondition Required",
    429: "Too Many Requests",
    431: "Request Header Fields Too Large",
    451: "Unavailable For Legal Reasons",
    500: "Internal Server Error",
    501: "Not Implemented",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
    505: "HTTP Version Not Supported",
    506: "Variant Also Negotiates",
    507: "Insufficient Storage",
    508: "Loop Detected",
    510: "Not Extended",
    511: "Network Authentication Required",
}

_PAGE_CODES = (
    200, 201, 204, 301, 302, 303, 400, 403, 404, 405, 408,
    411, 413, 414, 415, 500, 501, 502, 504, 505,
)

_ERROR_PAGES = {
    code: f"<html><body><h1>{code} {_REASONS[code]}</h1></body></html>"
    for code in _PAGE_CODES
}

UNKNOWN_STATUS = "Unknown Status Code"


def status_text(code: int) -> str:
    """Return the reason phrase for a status code."""
    return _REASONS.get(code, UNKNOWN_STATUS)


def error_page(code: int) -> str:
    """Return the built-in HTML page for a status code, or "" if there is none."""
    return _ERROR_PAGES.get(code, "")