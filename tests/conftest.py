"""Shared fixtures: a local HTTP server with a configurable route table."""

import socket
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest


class RouteHandler(BaseHTTPRequestHandler):
    def do_GET(self):
        self.server.requests.append(self.path)
        status, headers, body = self.server.routes.get(
            self.path,
            (404, {"Content-Type": "text/html"}, b"<p>not found</p>"),
        )
        self.send_response(status)
        for name, value in headers.items():
            self.send_header(name, value)
        if "Transfer-Encoding" not in headers:
            self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


class RouteServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self):
        super().__init__(("127.0.0.1", 0), RouteHandler)
        self.routes = {}
        self.requests = []

    def url(self, path):
        return f"http://127.0.0.1:{self.server_address[1]}{path}"

    def add(self, path, status, headers, body=b""):
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.routes[path] = (status, headers, body)

    def html(self, path, body, charset="utf-8"):
        self.add(path, 200, {"Content-Type": f"text/html; charset={charset}"}, body.encode(charset))

    def redirect(self, path, location, status=302):
        self.add(path, status, {"Location": location, "Content-Type": "text/html"}, b"moved")


@pytest.fixture
def http_server():
    server = RouteServer()
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield server
    finally:
        server.shutdown()
        server.server_close()


@pytest.fixture
def closed_port():
    """A local port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]
