"""List the passive listening addresses and serve one image to one client."""

from __future__ import annotations

import argparse
import socket
import sys
from pathlib import Path

MYPORT = "3490"
BACKLOG = 10
IMAGE_FILE = "luffy.webp"
RECV_SIZE = 2047


def _passive_infos(port):
    return socket.getaddrinfo(
        None,
        str(port),
        socket.AF_UNSPEC,
        socket.SOCK_STREAM,
        0,
        socket.AI_PASSIVE,
    )


def passive_addresses(port=MYPORT):
    """Return (IP version, address) pairs this host would listen on for port."""
    return [
        ("IPv4" if family == socket.AF_INET else "IPv6", sockaddr[0])
        for family, _, _, _, sockaddr in _passive_infos(port)
    ]


def image_response(image_path=IMAGE_FILE):
    """Return a complete HTTP response carrying the WebP image at image_path."""
    data = Path(image_path).read_bytes()
    header = (
        "HTTP/1.1 200 OK\r\n"
        "Content-Type: image/webp\r\n"
        f"Content-Length: {len(data)}\r\n"
        "Connection: close\r\n"
        "\r\n"
    )
    return header.encode("ascii") + data


def serve_once(port=MYPORT, image_path=IMAGE_FILE):
    """Listen on port, answer a single client with the image and return its request."""
    response = image_response(image_path)
    infos = _passive_infos(port)

    print("IP Addresses for local host : \n")
    for family, _, _, _, sockaddr in infos:
        ipver = "IPv4" if family == socket.AF_INET else "IPv6"
        print(f"{ipver} : {sockaddr[0]} ")
        print(f"Listening on {ipver} : {sockaddr[0]} ")

    family, socktype, proto, _, sockaddr = infos[0]
    with socket.socket(family, socktype, proto) as sock:
        sock.bind(sockaddr)
        sock.listen(BACKLOG)
        conn, _ = sock.accept()
        with conn:
            print("Client connected ")
            try:
                request = conn.recv(RECV_SIZE)
            except OSError as exc:
                print(f"recv: {exc}", file=sys.stderr)
                request = b""
            else:
                print(f"Request from client : \n {request.decode('latin-1')} ")
            conn.sendall(response)
    return request


def main(argv=None):
    parser = argparse.ArgumentParser(description="Serve one WebP image to one client.")
    parser.add_argument("--port", default=MYPORT)
    parser.add_argument("--image", default=IMAGE_FILE)
    args = parser.parse_args(argv)
    try:
        serve_once(args.port, args.image)
    except socket.gaierror as exc:
        print(f"getaddrinfo: {exc}", file=sys.stderr)
        return 2
    except OSError as exc:
        print(f"Image open failed: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())