"""Multi-threaded HTTP server that serves an HTML page and a WebP image."""

from __future__ import annotations

import argparse
import socket
import sys
import threading
import time
from pathlib import Path

PORT = 3490
BACKLOG = 10
LOG_FILE = "server.log"
MEDIA_ROOT = "responses/media"
IMAGE_ROUTE = "/luffy"
IMAGE_NAME = "luffy.webp"
RECV_SIZE = 2047

FEATURES = (
    "<h1>Simple Server</h1>"
    "<ul>"
    "<li>Multi-threaded request handling using pthreads</li>"
    "<li>Logging with timestamps</li>"
    "<li>Serves plain text and images</li>"
    "<li>Error handling with logs</li>"
    "</ul>"
)
PAGE_TEMPLATE = "<html><head><title>Simple Server</title></head><body>{}</body></html>"

_POLL_INTERVAL = 0.2
_log_lock = threading.Lock()


def log_message(message, log_path=LOG_FILE):
    """Append a timestamped line to the log file."""
    stamp = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime())
    try:
        with _log_lock, open(log_path, "a", encoding="utf-8") as log_file:
            log_file.write(f"[{stamp}] {message}\n")
    except OSError as exc:
        print(f"Error opening log file: {exc}", file=sys.stderr)


def parse_request_path(request):
    """Return the path of an HTTP request line, or None if there is none."""
    if isinstance(request, (bytes, bytearray)):
        request = bytes(request).decode("latin-1")
    tokens = request.split()
    if len(tokens) < 2:
        return None
    return tokens[1]


def html_page():
    """Return the HTML page served for every path but the image route."""
    return PAGE_TEMPLATE.format(FEATURES)


def _header(content_type, length):
    return (
        "HTTP/1.1 200 OK\r\n"
        f"Content-Type: {content_type}\r\n"
        f"Content-Length: {length}\r\n"
        "Connection: close\r\n"
        "\r\n"
    )


def _html_parts():
    body = html_page().encode("utf-8")
    return _header("text/html", len(body)), body


def build_response(request, media_root=MEDIA_ROOT):
    """Build the full response bytes for a request.

    Raises OSError if the image route is requested and the image cannot be read.
    """
    if parse_request_path(request) == IMAGE_ROUTE:
        image = (Path(media_root) / IMAGE_NAME).read_bytes()
        return _header("image/webp", len(image)).encode("ascii") + image
    header, body = _html_parts()
    return header.encode("ascii") + body


def handle_client(conn, address, media_root=MEDIA_ROOT, log_path=LOG_FILE):
    """Read one request from a connection, answer it and close the connection."""
    host = address[0] if isinstance(address, tuple) and address else str(address)
    with conn:
        log_message(f"Handling client in thread from {host}", log_path)
        try:
            request = conn.recv(RECV_SIZE)
        except OSError as exc:
            print(f"recv: {exc}", file=sys.stderr)
            request = b""
        if not request:
            log_message("recv failed in thread", log_path)
            return

        print(f"Thread received from client:\n{request.decode('latin-1')}\n")

        if parse_request_path(request) == IMAGE_ROUTE:
            try:
                response = build_response(request, media_root)
            except OSError as exc:
                print(f"image open failed: {exc}", file=sys.stderr)
                return
        else:
            header, body = _html_parts()
            log_message(body.decode("utf-8"), log_path)
            log_message(header, log_path)
            response = header.encode("ascii") + body

        try:
            conn.sendall(response)
        except OSError as exc:
            print(f"send: {exc}", file=sys.stderr)


class Server:
    """A listening TCP server that handles each client on its own thread."""

    def __init__(self, port=PORT, host=None, media_root=MEDIA_ROOT, log_path=LOG_FILE):
        self.port = port
        self.host = host
        self.media_root = media_root
        self.log_path = log_path
        self.address = None
        self._sock = None
        self._closing = threading.Event()

    def _log(self, message):
        log_message(message, self.log_path)

    def bind(self):
        """Bind to the first usable passive address and start listening."""
        try:
            infos = socket.getaddrinfo(
                self.host,
                str(self.port),
                socket.AF_UNSPEC,
                socket.SOCK_STREAM,
                0,
                socket.AI_PASSIVE,
            )
        except socket.gaierror as exc:
            self._log(f"getaddrinfo: {exc}")
            raise
        self._log("getaddrinfo successful.")

        sock = None
        for family, socktype, proto, _, sockaddr in infos:
            try:
                candidate = socket.socket(family, socktype, proto)
            except OSError as exc:
                print(f"server : socket: {exc}", file=sys.stderr)
                self._log("socket: failed")
                continue
            self._log("Socket created successfully.")

            try:
                candidate.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            except OSError:
                candidate.close()
                self._log("setsockopt: failed")
                raise
            self._log("Setsockopt SO_REUSEADDR successful.")

            try:
                candidate.bind(sockaddr)
            except OSError as exc:
                candidate.close()
                print(f"server : bind: {exc}", file=sys.stderr)
                self._log("bind: failed")
                continue
            self._log("Bind successful.")
            sock = candidate
            break

        if sock is None:
            self._log("Server failed to bind.")
            raise OSError("failed to bind")

        try:
            sock.listen(BACKLOG)
        except OSError:
            sock.close()
            self._log("listen: failed")
            raise
        self._log("Listening on socket.")

        self._closing.clear()
        self._sock = sock
        self.address = sock.getsockname()
        return self.address

    def serve_forever(self):
        """Accept connections until close() is called."""
        if self._sock is None:
            self.bind()
        sock = self._sock
        sock.settimeout(_POLL_INTERVAL)
        self._log("Waiting for connections...")
        while not self._closing.is_set():
            try:
                conn, addr = sock.accept()
            except socket.timeout:
                continue
            except OSError as exc:
                if self._closing.is_set():
                    break
                print(f"accept: {exc}", file=sys.stderr)
                self._log("accept: failed")
                continue
            conn.settimeout(None)
            self._log("Accepted a new connection.")
            worker = threading.Thread(
                target=handle_client,
                args=(conn, addr, self.media_root, self.log_path),
                daemon=True,
            )
            try:
                worker.start()
            except RuntimeError as exc:
                print(f"thread start: {exc}", file=sys.stderr)
                conn.close()

    def close(self):
        """Stop serving and release the listening socket."""
        self._closing.set()
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


def main(argv=None):
    parser = argparse.ArgumentParser(description="Serve an HTML page and a WebP image.")
    parser.add_argument("--port", type=int, default=PORT)
    parser.add_argument("--host", default=None)
    parser.add_argument("--media-root", default=MEDIA_ROOT)
    parser.add_argument("--log-file", default=LOG_FILE)
    args = parser.parse_args(argv)

    log_message("Server started.", args.log_file)
    server = Server(args.port, args.host, args.media_root, args.log_file)
    try:
        server.bind()
    except socket.gaierror as exc:
        print(f"get addrinfo : {exc}", file=sys.stderr)
        return 1
    except OSError:
        print("Server : failed to bind", file=sys.stderr)
        return 1

    print("server : waiting for connections... ")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())