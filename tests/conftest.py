"""
pytest configuration and fixtures.
"""

import socket
import threading
from datetime import datetime, timezone
from typing import Generator, Tuple
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from staticweb import WebServer, ServerConfig
from staticweb.core import Connection
from staticweb.handlers import PathResolver, RequestHandler
from staticweb.http import MimeClassifier, ResponseWriter


SERVER_NAME = "staticweb-test/0.1"
FIXED_NOW = datetime(2026, 1, 15, 12, 30, 45, tzinfo=timezone.utc)

# Smallest valid PNG: signature + IHDR + IDAT + IEND, with a few bytes
# that would be mangled by any text decoding or newline translation.
PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n"
    b"\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06\x00\x00\x00\x1f\x15\xc4\x89"
    b"\x00\x00\x00\rIDATx\x9cc\xf8\x0f\x00\x00\x01\x01\x00\x05\x18\xd8N"
    b"\x00\x00\x00\x00IEND\xaeB`\x82"
)

INDEX_HTML = b"<h1>Welcome</h1>\n<p>Plain page.</p>\n"
NOTES_TXT = b"first line\r\nsecond line\n\xc3\xa9t\xc3\xa9\n"
TEMPLATE_HTML = (
    b"<h1>Status</h1>\n"
    b"<p><cs371date></p>\n"
    b"<p><cs371server></p>\n"
    b"<p>end</p>\n"
)


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample browser-style GET request."""
    return (
        b"GET /index.html HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: text/html\r\n"
        b"Connection: keep-alive\r\n"
        b"\r\n"
    )


@pytest.fixture
def docroot(tmp_path: Path) -> Path:
    """A document root with one file per body mode."""
    (tmp_path / "index.html").write_bytes(INDEX_HTML)
    (tmp_path / "template.html").write_bytes(TEMPLATE_HTML)
    (tmp_path / "notes.txt").write_bytes(NOTES_TXT)
    (tmp_path / "logo.png").write_bytes(PNG_BYTES)
    (tmp_path / "favicon.ico").write_bytes(b"\x00\x00\x01\x00icon\xff\xfe")
    (tmp_path / "data.bin").write_bytes(bytes(range(256)) * 4)

    sub = tmp_path / "docs" / "guides"
    sub.mkdir(parents=True)
    (sub / "intro.txt").write_bytes(b"nested file\n")

    return tmp_path


@pytest.fixture
def clock():
    """A clock frozen at FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def writer(clock) -> ResponseWriter:
    return ResponseWriter(server_name=SERVER_NAME, buffer_size=1024, clock=clock)


@pytest.fixture
def resolver(docroot: Path) -> PathResolver:
    return PathResolver(root_dir=docroot, classifier=MimeClassifier())


@pytest.fixture
def handler(resolver: PathResolver, writer: ResponseWriter) -> RequestHandler:
    return RequestHandler(resolver=resolver, writer=writer)


def parse_response(raw: bytes) -> Tuple[str, dict, bytes]:
    """Split a raw response into (status line, headers, body)."""
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("utf-8").split("\r\n")
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name.strip()] = value.strip()
    return lines[0], headers, body


def recv_all(sock: socket.socket) -> bytes:
    """Read from sock until the peer closes."""
    chunks = []
    while True:
        chunk = sock.recv(65536)
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


@pytest.fixture
def exchange(handler: RequestHandler):
    """
    Run the handler over a socketpair.

    Returns a function: raw request bytes in, raw response bytes out.
    """
    def run(raw_request: bytes, request_handler: RequestHandler = None) -> bytes:
        server_sock, client_sock = socket.socketpair()
        with client_sock:
            client_sock.settimeout(5.0)
            client_sock.sendall(raw_request)
            # EOF after the request, so unterminated requests don't stall
            client_sock.shutdown(socket.SHUT_WR)
            conn =Connection(socket=server_sock, address=("127.0.0.1", 50000),
                              timeout=5.0, drain_timeout=0.0)
            (request_handler or handler).handle(conn)
            return recv_all(client_sock)
    return run


class ServerHarness:
    """Runs a WebServer in a background thread."""

    def __init__(self, server: WebServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"setup_logging": False},
            daemon=True,
        )
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def request(self, raw: bytes) -> bytes:
        """Send raw bytes over a fresh TCP connection, return everything received."""
        with socket.create_connection(("127.0.0.1", self.port), timeout=5.0) as sock:
            sock.sendall(raw)
            return recv_all(sock)

    def get(self, target: str) -> bytes:
        return self.request(
            f"GET {target} HTTP/1.1\r\nHost: localhost\r\nConnection: close\r\n\r\n".encode()
        )


@pytest.fixture
def live_server(docroot: Path) -> Generator[ServerHarness, None, None]:
    """A running server on a free port, serving docroot."""
    server = WebServer(ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        timeout=5.0,
        document_root=str(docroot),
        server_name=SERVER_NAME,
        log_level="WARNING",
    ))

    harness = ServerHarness(server)
    harness.start()

    yield harness

    harness.stop()
