"""Creation of non-blocking listening sockets."""

from __future__ import annotations

import socket

DEFAULT_BACKLOG = 128
BUFFER_SIZE = 262144


def set_socket_options(sock: socket.socket) -> None:
    """Enable address reuse, no-delay, keep-alive and large buffers.

    Raises OSError naming the option that could not be set.
    """
    options = (
        (socket.SOL_SOCKET, socket.SO_REUSEADDR, 1, "SO_REUSEADDR"),
        (socket.IPPROTO_TCP, socket.TCP_NODELAY, 1, "TCP_NODELAY"),
        (socket.SOL_SOCKET, socket.SO_RCVBUF, BUFFER_SIZE, "SO_RCVBUF"),
        (socket.SOL_SOCKET, socket.SO_SNDBUF, BUFFER_SIZE, "SO_SNDBUF"),
        (socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1, "SO_KEEPALIVE"),
    )
    for level, option, value, label in options:
        try:
            sock.setsockopt(level, option, value)
        except OSError as error:
            raise OSError(f"Failed to set {label} option") from error


def _bind_first(addresses: list[tuple]) -> socket.socket:
    for family, kind, proto, _, address in addresses:
        try:
            sock = socket.socket(family, kind, proto)
        except OSError:
            continue
        try:
            sock.setblocking(False)
            set_socket_options(sock)
            sock.bind(address)
        except OSError:
            sock.close()
            continue
        return sock
    raise OSError("Failed to create socket")


def init_listening_socket(
    host: str | None, port: int | str, backlog: int = DEFAULT_BACKLOG
) -> socket.socket:
    """Resolve ``host`` and ``port``, bind the first usable address and listen.

    An empty host binds the wildcard address. Raises OSError when the address
    cannot be resolved, bound or listened on.
    """
    flags = 0 if host else socket.AI_PASSIVE
    try:
        addresses = socket.getaddrinfo(
            host or None, str(port), socket.AF_UNSPEC, socket.SOCK_STREAM, 0, flags
        )
    except socket.gaierror as error:
        raise OSError("getaddrinfo failed") from error
    sock = _bind_first(addresses)
    try:
        sock.listen(backlog)
    except OSError as error:
        sock.close()
        raise OSError("Failed to listen on socket") from error
    return sock