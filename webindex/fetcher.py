"""
Minimal HTTP/1.1 client on raw sockets that only downloads HTML.

For every response the status line and headers are read first. The body is
read only when the status is 200 and the content type is text/html. A 3xx
response with a Location header is followed (the connection is closed and a
new request is made) until the redirect budget runs out. Anything else stops
without touching the body.

Headers are returned as a dict of lowercase names to lists of values, with
the status line stored under the None key.
"""

from __future__ import annotations

import logging
import re
import socket
import ssl
from contextlib import closing
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO
from urllib.parse import urljoin, urlsplit

from bs4 import UnicodeDammit

logger = logging.getLogger(__name__)

DEFAULT_REDIRECTS = 3
DEFAULT_TIMEOUT = 10.0
MAX_LINE = 65536
_LINE_BREAK = re.compile(r"\r\n|\r|\n")

Headers = dict[str | None, list[str]]


class FetchFailure(Enum):
    INVALID_SCHEME = "invalid-scheme"
    NON_HTML = "non-html"
    STATUS_REJECTED = "status-rejected"
    REDIRECT_EXHAUSTED = "redirect-exhausted"
    NETWORK_ERROR = "network-error"


@dataclass
class FetchResult:
    """
    Outcome of one logical fetch.
    - uri: the URI originally requested (results are keyed by it)
    - final_uri: the URI of the last request made, after redirects
    - html: the markup, only set on success
    - failure: why no markup was returned
    """

    uri: str
    html: str | None = None
    failure: FetchFailure | None = None
    status: int = -1
    final_uri: str | None = None
    redirects: int = 0

    @property
    def ok(self) -> bool:
        return self.html is not None


def is_valid_url(uri: str) -> bool:
    """True if uri uses http or https and names a host."""
    try:
        parts = urlsplit(uri)
    except ValueError:
        return False
    return parts.scheme.lower() in ("http", "https") and bool(parts.hostname)


def is_html(headers: Headers) -> bool:
    """True if the first content-type value starts with text/html (any case)."""
    content_type = headers.get("content-type")
    return bool(content_type) and content_type[0].lower().startswith("text/html")


def get_status_code(headers: Headers) -> int:
    """Status code from the status line, or -1 if it cannot be parsed."""
    status_line = headers.get(None)
    if not status_line:
        return -1
    parts = status_line[0].split()
    if len(parts) < 2 or not parts[0].upper().startswith("HTTP/"):
        return -1
    try:
        return int(parts[1])
    except ValueError:
        return -1


def get_redirect(headers: Headers) -> str | None:
    """First Location value of a 3xx response, otherwise None."""
    if 300 <= get_status_code(headers) <= 399:
        locations = headers.get("location")
        if locations:
            return locations[0]
    return None


def get_charset(headers: Headers) -> str | None:
    content_type = headers.get("content-type")
    if not content_type:
        return None
    for param in content_type[0].split(";")[1:]:
        name, _, value = param.partition("=")
        if name.strip().lower() == "charset" and value.strip():
            return value.strip().strip("\"'")
    return None


def open_connection(uri: str, timeout: float = DEFAULT_TIMEOUT) -> socket.socket:
    """Connect to the host of uri, wrapping the socket in TLS for https."""
    parts = urlsplit(uri)
    secure = parts.scheme.lower() == "https"
    port = parts.port or (443 if secure else 80)
    sock = socket.create_connection((parts.hostname, port), timeout=timeout)
    if not secure:
        return sock
    try:
        return ssl.create_default_context().wrap_socket(sock, server_hostname=parts.hostname)
    except (OSError, ValueError):
        sock.close()
        raise


def build_get_request(uri: str) -> bytes:
    """A GET request for uri with just the Host and Connection headers."""
    parts = urlsplit(uri)
    target = parts.path or "/"
    if parts.query:
        target += "?" + parts.query
    host = parts.netloc.rpartition("@")[2]
    request = (
        f"GET {target} HTTP/1.1\r\n"
        f"Host: {host}\r\n"
        "Connection: close\r\n"
        "\r\n"
    )
    return request.encode("utf-8")


def read_headers(reader: BinaryIO) -> Headers:
    """Read the status line and headers, stopping at the first empty line."""
    headers: Headers = {}
    status_line = reader.readline(MAX_LINE)
    if not status_line:
        return headers
    headers[None] = [status_line.decode("iso-8859-1").strip()]
    while True:
        line = reader.readline(MAX_LINE)
        if not line:
            break
        text = line.decode("iso-8859-1").rstrip("\r\n")
        if not text:
            break
        name, sep, value = text.partition(":")
        if not sep:
            continue
        headers.setdefault(name.strip().lower(), []).append(value.strip())
    return headers


def _read_chunked(reader: BinaryIO) -> bytes:
    chunks = []
    while True:
        size_line = reader.readline(MAX_LINE)
        if not size_line:
            break
        size = int(size_line.split(b";", 1)[0].strip(), 16)
        if size == 0:
            break
        chunks.append(reader.read(size))
        reader.readline(MAX_LINE)  # CRLF after the chunk
    return b"".join(chunks)


def read_body(reader: BinaryIO, headers: Headers) -> bytes:
    """Read the remaining body according to the framing headers."""
    encodings = ",".join(headers.get("transfer-encoding", [])).lower()
    if "chunked" in encodings:
        return _read_chunked(reader)
    lengths = headers.get("content-length")
    if lengths:
        try:
            return reader.read(int(lengths[0]))
        except ValueError:
            pass
    return reader.read()


def decode_body(body: bytes, headers: Headers) -> str:
    """Decode body bytes and join its lines with newlines."""
    charset = get_charset(headers)
    dammit = UnicodeDammit(body, known_definite_encodings=[charset] if charset else [], is_html=True)
    text = dammit.unicode_markup
    if text is None:
        text = body.decode("utf-8", errors="replace")
    lines = _LINE_BREAK.split(text)
    if lines[-1] == "":
        lines.pop()
    return "\n".join(lines)


def fetch(
    uri: str,
    max_redirects: int = DEFAULT_REDIRECTS,
    timeout: float = DEFAULT_TIMEOUT,
) -> FetchResult:
    """
    Fetch the HTML at uri, following at most max_redirects redirects.

    Failing to get HTML is a normal outcome reported through
    FetchResult.failure; this function does not raise for network errors.
    """
    if not is_valid_url(uri):
        logger.info("Skipping %s: not an http(s) URL", uri)
        return FetchResult(uri, failure=FetchFailure.INVALID_SCHEME)

    current = uri
    remaining = max_redirects
    redirects = 0
    try:
        while True:
            with closing(open_connection(current, timeout)) as sock, sock.makefile("rb") as reader:
                sock.sendall(build_get_request(current))
                headers = read_headers(reader)
                status = get_status_code(headers)
                logger.debug("GET %s -> %d", current, status)

                if status == 200 and is_html(headers):
                    html = decode_body(read_body(reader, headers), headers)
                    return FetchResult(uri, html=html, status=status, final_uri=current, redirects=redirects)

                location = get_redirect(headers)
                if location is None:
                    failure = FetchFailure.NON_HTML if status == 200 else FetchFailure.STATUS_REJECTED
                    logger.info("No HTML from %s (status %d, %s)", current, status, failure.value)
                    return FetchResult(uri, failure=failure, status=status, final_uri=current, redirects=redirects)

                if remaining <= 0:
                    logger.info("Redirect limit reached for %s at %s", uri, current)
                    return FetchResult(
                        uri,
                        failure=FetchFailure.REDIRECT_EXHAUSTED,
                        status=status,
                        final_uri=current,
                        redirects=redirects,
                    )

                target = urljoin(current, location)
                if not is_valid_url(target):
                    logger.info("Redirect from %s to unsupported URL %s", current, target)
                    return FetchResult(
                        uri,
                        failure=FetchFailure.INVALID_SCHEME,
                        status=status,
                        final_uri=current,
                        redirects=redirects,
                    )
                logger.debug("Redirecting %s -> %s", current, target)
                current = target
                remaining -= 1
                redirects += 1
    except (OSError, ValueError) as exc:
        logger.warning("Error fetching %s: %s", current, exc)
        return FetchResult(uri, failure=FetchFailure.NETWORK_ERROR, final_uri=current, redirects=redirects)
