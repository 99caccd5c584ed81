import re
import socket
import threading
import time

import pytest

from webpserve.server import (
    Server,
    build_response,
    handle_client,
    html_page,
    log_message,
    parse_request_path,
)


def _split(response):
    head, _, body = response.partition(b"\r\n\r\n")
    lines = head.decode("ascii").split("\r\n")
    headers = dict(line.split(": ", 1) for line in lines[1:])
    return lines[0], headers, body


def _read_all(sock):
    chunks = []
    while True:
        chunk = sock.recv(4096)
        if not chunk:
            return b"".join(chunks)
        chunks.append(chunk)


def test_parse_request_path_text_and_bytes():
    assert parse_request_path("GET /luffy HTTP/1.1\r\n\r\n") == "/luffy"
    assert parse_request_path(b"GET /index.html HTTP/1.1\r\n") == "/index.html"


def test_parse_request_path_missing():
    assert parse_request_path("") is None
    assert parse_request_path(b"GET") is None


def test_html_page_contents():
    page = html_page()
    assert page.startswith("<html><head><title>Simple Server</title></head><body><h1>Simple Server</h1>")
    assert page.endswith("</ul></body></html>")
    assert "<li>Logging with timestamps</li>" in page


def test_build_response_html(tmp_path):
    status, headers, body = _split(build_response(b"GET / HTTP/1.1\r\n\r\n", tmp_path))
    assert status == "HTTP/1.1 200 OK"
    assert headers["Content-Type"] == "text/html"
    assert headers["Connection"] == "close"
    assert int(headers["Content-Length"]) == len(body)
    assert body.decode("utf-8") == html_page()


def test_build_response_image(tmp_path):
    data = b"RIFF\x00\x01\x02WEBPdata"
    (tmp_path / "luffy.webp").write_bytes(data)
    status, headers, body = _split(build_response("GET /luffy HTTP/1.1\r\n\r\n", tmp_path))
    assert status == "HTTP/1.1 200 OK"
    assert headers["Content-Type"] == "image/webp"
    assert int(headers["Content-Length"]) == len(data)
    assert body == data


def test_build_response_image_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        build_response("GET /luffy HTTP/1.1\r\n\r\n", tmp_path)


def test_log_message_appends_timestamped_lines(tmp_path):
    log_path = tmp_path / "server.log"
    log_message("first", log_path)
    log_message("second", log_path)
    lines = log_path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert re.fullmatch(r"\[\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\] first", lines[0])
    assert lines[1].endswith("] second")


def test_handle_client_serves_html(tmp_path):
    log_path = tmp_path / "server.log"
    client, conn = socket.socketpair()
    with client:
        client.sendall(b"GET / HTTP/1.1\r\n\r\n")
        handle_client(conn, ("127.0.0.1", 5555), tmp_path, log_path)
        response = _read_all(client)
    assert response == build_response(b"GET / HTTP/1.1\r\n\r\n", tmp_path)
    log_text = log_path.read_text(encoding="utf-8")
    assert "Handling client in thread from 127.0.0.1" in log_text
    assert html_page() in log_text


def test_handle_client_serves_image(tmp_path):
    data = b"\x00\x01image-bytes\xff"
    (tmp_path / "luffy.webp").write_bytes(data)
    log_path = tmp_path / "server.log"
    client, conn = socket.socketpair()
    with client:
        client.sendall(b"GET /luffy HTTP/1.1\r\n\r\n")
        handle_client(conn, ("127.0.0.1", 5555), tmp_path, log_path)
        response = _read_all(client)
    assert response == build_response(b"GET /luffy HTTP/1.1\r\n\r\n", tmp_path)
    _, headers, body = _split(response)
    assert headers["Content-Type"] == "image/webp"
    assert body == data
    assert "Handling client in thread from 127.0.0.1" in log_path.read_text(encoding="utf-8")


def test_handle_client_missing_image_sends_nothing(tmp_path):
    log_path = tmp_path / "server.log"
    client, conn = socket.socketpair()
    with client:
        client.sendall(b"GET /luffy HTTP/1.1\r\n\r\n")
        handle_client(conn, ("127.0.0.1", 5555), tmp_path, log_path)
        response = _read_all(client)
    assert response == b""
    assert "Handling client in thread from 127.0.0.1" in log_path.read_text(encoding="utf-8")
    with pytest.raises(FileNotFoundError):
        build_response(b"GET /luffy HTTP/1.1\r\n\r\n", tmp_path)


def test_handle_client_empty_request_logs_failure(tmp_path):
    log_path = tmp_path / "server.log"
    client, conn = socket.socketpair()
    with client:
        client.shutdown(socket.SHUT_WR)
        handle_client(conn, ("127.0.0.1", 5555), tmp_path, log_path)
        assert _read_all(client) == b""
    assert "recv failed in thread" in log_path.read_text(encoding="utf-8")


def test_server_end_to_end(tmp_path):
    log_path = tmp_path / "server.log"
    server = Server(port=0, host="127.0.0.1", media_root=tmp_path, log_path=log_path)
    host, port = server.bind()[:2]
    worker = threading.Thread(target=server.serve_forever, daemon=True)
    worker.start()
    try:
        with socket.create_connection((host, port), timeout=5) as client:
            client.sendall(b"GET /anything HTTP/1.1\r\n\r\n")
            response = _read_all(client)
    finally:
        server.close()
        worker.join(timeout=5)
    assert not worker.is_alive()
    assert response == build_response(b"GET / HTTP/1.1\r\n\r\n", tmp_path)
    deadline = time.monotonic() + 5
    while "Accepted a new connection." not in log_path.read_text(encoding="utf-8"):
        assert time.monotonic() < deadline
        time.sleep(0.05)
    assert "Listening on socket." in log_path.read_text(encoding="utf-8")