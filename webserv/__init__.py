"""Building blocks for a small HTTP/1.1 server: request parsing, routing, responses and sockets."""

__version__ = "1.0.0"