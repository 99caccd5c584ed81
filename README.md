# webpserve

A small multi-threaded HTTP server built directly on sockets. Each connection
is handled in its own thread, and every step is logged with a timestamp to a
log file.

- A request for `/luffy` is answered with the image
  `luffy.webp` from the media directory (`Content-Type: image/webp`).
- Any other path is answered with a short HTML page listing the server's
  features.

Every response is sent with `Connection: close`.

## Installation

```
pip install .
```

To run the tests as well:

```
pip install .[test]
pytest
```

## Running the server

```
webpserve
```

By default the server listens on port 3490 on all local addresses, serves the
image from `responses/media/luffy.webp` relative to the directory it is started
from, and appends its log to `server.log` in the current directory. The
options are:

- `--port PORT` – the port to listen on (default 3490)
- `--host HOST` – the address to bind to (default: all local addresses)
- `--media-root DIR` – the directory holding `luffy.webp`
- `--log-file FILE` – the log file to append to

Open `http://localhost:3490/` for the HTML page, or
`http://localhost:3490/luffy` for the image. Stop the server with Ctrl-C.

## Showing the passive addresses and serving one image

```
webpserve-showip
```

This prints the addresses that a passive socket on the port would use, each
labelled IPv4 or IPv6. It then listens on the first of them, accepts a single
connection, prints the request it receives, and answers it with the image,
whatever was asked for. The options are `--port PORT` (default 3490) and
`--image FILE` (default `luffy.webp` in the current directory).

## Using it from Python

```python
from webpserve.server import Server, build_response, html_page

response = build_response(b"GET / HTTP/1.1\r\n\r\n", "responses/media")

server = Server(3490, None, "responses/media", "server.log")
server.bind()
try:
    server.serve_forever()
finally:
    server.close()
```

`Server` can also be used as a context manager, which closes it on exit.
`webpserve.server` further provides `log_message(message, log_path)`,
`parse_request_path(request)` and `handle_client(conn, address, media_root,
log_path)`.

`webpserve.showip` provides `passive_addresses(port)`,
`image_response(image_path)` and `serve_once(port, image_path)`.

## What it does not do

The server is deliberately minimal. It reads a single chunk of up to 2047
bytes from each connection and looks only at the path in the request line; the
method and headers are ignored, so every request is answered as if it were a
GET. There is no routing beyond `/luffy`, no error statuses: if the image
cannot be read, the connection is closed without a response. It does not
serve arbitrary files, support keep-alive or speak HTTPS.