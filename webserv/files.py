"""File system helpers for building responses."""

from __future__ import annotations

import os
import time
from datetime import datetime
from email.utils import formatdate
from functools import partial

from webserv.request import DEFAULT_MAX_BODY_SIZE

READ_TIMEOUT = 10
_BLOCK_SIZE = 1024

_MIME_TYPES = {
    "html": "text/html",
    "htm": "text/html",
    "css": "text/css",
    "js": "application/javascript",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
}

_EXTENSIONS = {
    "text/html": ".html",
    "text/css": ".css",
    "application/javascript": ".js",
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "application/pdf": ".pdf",
    "application/xml": ".xml",
    "application/json": ".json",
}


def mime_type(path: str) -> str:
    """Guess a content type from the text after the last dot in ``path``."""
    base, dot, ext = path.rpartition(".")
    if not dot:
        return "text/plain"
    return _MIME_TYPES.get(ext, "text/plain")


def extension_for(content_type: str) -> str:
    """Return the file extension, dot included, for a content type."""
    return _EXTENSIONS.get(content_type, ".txt")


def generate_filename(content_type: str, now: datetime | None = None) -> str:
    """Return a ``YYYYMMDD_HHMMSS`` name with an extension for the content type."""
    moment = now if now is not None else datetime.now()
    return moment.strftime("%Y%m%d_%H%M%S") + extension_for(content_type)


def read_file(path: str | os.PathLike[str], timeout: float = READ_TIMEOUT) -> bytes:
    """Read a whole file in blocks; raise TimeoutError if it takes too long."""
    start = time.monotonic()
    blocks = []
    with open(path, "rb") as handle:
        for block in iter(partial(handle.read, _BLOCK_SIZE), b""):
            if time.monotonic() - start > timeout:
                raise TimeoutError("Read timeout")
            blocks.append(block)
    return b"".join(blocks)


def list_directory(path: str | os.PathLike[str]) -> str:
    """Return an HTML list linking every entry of a directory.

    A directory that cannot be opened gives an empty list.
    """
    try:
        names = os.listdir(path)
    except OSError:
        names = []
    items = "".join(
        f'<li><a href="{name}">{name}</a></li>'
        for name in names
        if name not in (".", "..")
    )
    return f"<html><body><ul>{items}</ul></body></html>"


def http_date(now: float | None = None) -> str:
    """Format a timestamp (the current time by default) as an HTTP date."""
    return formatdate(time.time() if now is None else now, usegmt=True)


def check_file_size(
    path: str | os.PathLike[str], limit: int = DEFAULT_MAX_BODY_SIZE
) -> int:
    """Return the size of a file.

    Raises ValueError if it is larger than ``limit`` and OSError if the file
    cannot be examined.
    """
    size = os.stat(path).st_size
    if size > limit:
        raise ValueError(f"file of {size} bytes exceeds the limit of {limit}")
    return size