# webserv

Pieces of a small HTTP/1.1 server, written with the standard library only.

## Modules

- `webserv.request`: `Request`, an incremental request parser that takes
  bytes as they arrive through `Request.parse(data)`. It reads the request
  line, the headers, `Content-Length` bodies, chunked transfer encoding and
  `multipart/form-data` bodies. Its progress is in `Request.state`, a
  `RequestState`. A malformed or refused request does not raise. Parsing
  stops with `state` set to `RequestState.DONE`, and `status_code` then holds
  the error status (400, 403, 411, 413, 414, 501, 505). A request that was
  read completely carries 200. `reset()` prepares the object for the next
  request on a kept-alive connection. `has_timed_out(now)` and
  `reset_timer(now)` track the read timeout.
- `webserv.multipart`: `MultipartParser`, plus the helpers
  `extract_boundary`, `parse_content_disposition`, `parse_content_type` and
  `timestamp_filename`. Malformed input raises `MultipartError`.
- `webserv.grammar`: character classes for URIs and header fields
  (`is_unreserved`, `is_sub_delimiter`, `is_path_reserved`,
  `is_query_reserved`, `is_tchar`, `is_field_vchar`), `is_repeatable_header`,
  `parse_decimal` and `extract_uri`.
- `webserv.routing`: the `ServerConfig` and `Location` dataclasses,
  `match_location`, `normalise_segments`, `match_endpoint`, which raises
  `EndpointError` with status 404 or 405, and `allow_header`.
- `webserv.files`: `mime_type`, `extension_for`, `generate_filename`,
  `read_file`, `list_directory`, `http_date` and `check_file_size`.
- `webserv.response`: `Response`, which works out a parsed request against a
  `ServerConfig`:
  - `match_location()` finds the location block for the request.
  - `resolve_url()` maps the URI to a file system path and checks the
    endpoint table.
  - `handle_post()` stores the request body as a file.
  - `handle_delete()` removes a file.
  - `parse_cgi_paths()` splits a `/cgi-bin/` URL into script name and path
    info.
  - `standard_response(cgi_headers)` serialises the status line, headers and
    body.

  Failures raise `ResponseError`, which carries the status.
- `webserv.status`: `status_text(code)` returns the reason phrase and
  `error_page(code)` returns the built-in HTML body.
- `webserv.sockets`: `init_listening_socket(host, port, backlog)` and
  `set_socket_options(sock)` for non-blocking listening TCP sockets.

## Installing

The package has no dependencies outside the standard library. Install it
into your environment with your usual tool. The `test` extra adds pytest.

## Examples

Feeding a request to the parser, in as many pieces as the network delivers:

```python
from webserv.request import Request

request = Request(1_048_576, 2048, 30)
request.parse(b"GET /uploads/ HTTP/1.1\r\n")
done = request.parse(b"Host: localhost:8080\r\n\r\n")
print(done, request.status_code, request.port_text())   # True 200 8080
```

Building a response to a DELETE request:

```python
from webserv.request import Request
from webserv.response import Response, ResponseError
from webserv.routing import ServerConfig
from webserv.status import error_page

request = Request()
request.parse(b"DELETE /uploads/a.txt HTTP/1.1\r\nHost: localhost\r\n\r\n")

response = Response(request, ServerConfig(root="/srv/www"))
response.match_location()
try:
    response.resolve_url()
    response.handle_delete()
except ResponseError as error:
    response.body = error_page(error.status).encode("latin-1")
raw = response.standard_response()   # bytes ready to send
```

Small helpers:

```python
from webserv.status import status_text
from webserv.routing import normalise_segments, allow_header
from webserv.files import mime_type

status_text(404)                       # "Not Found"
normalise_segments("/a/./b/../c/")     # "/a/c/"
allow_header(["GET", "POST"])          # "GET, POST"
mime_type("index.html")                # "text/html"
```

Opening a listening socket:

```python
from webserv.sockets import init_listening_socket

sock = init_listening_socket("127.0.0.1", "8080", 128)
```

## What the package does not do

The package is a set of building blocks. It is not a server you can run:

- There is no command and no event loop that accepts connections, reads
  requests into `Request` and writes out responses.
- There is no reader for configuration files. A `ServerConfig` has to be
  built in code.
- CGI scripts are not run. `Response.parse_cgi_paths` only works out the
  script and path names.
- `Response` has no GET handler. To serve files and directory listings,
  combine `webserv.files.read_file`, `list_directory` and `mime_type`
  yourself.