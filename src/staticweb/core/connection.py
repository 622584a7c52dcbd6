"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket as a pair of buffered binary streams and
tracks where the connection is in its one-request lifecycle.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

TCP delivers bytes in order, in whatever chunks the network produces:

    Client sends:
        GET /index.html HTTP/1.1\r\n
        Host: localhost\r\n
        \r\n

    Server might receive:
        First recv():  "GET /ind"
        Second recv(): "ex.html HTTP/1.1\r\nHost: local"
        Third recv():  "host\r\n\r\n"

socket.makefile("rb") gives us a buffered reader on top of recv(), so the
request reader can simply call readline() and let the buffer reassemble
lines. readline() blocks until a full line (or the socket timeout, or
EOF); there is no busy polling for "data ready".

=============================================================================
LIFECYCLE
=============================================================================

    IDLE ──► READING_REQUEST ──► RESOLVING ──► WRITING_HEADER ──► WRITING_BODY
      │             │                │               │                  │
      └─────────────┴────────────────┴───────────────┴──────────────────┴──► CLOSED

Transitions only move forward. Any failure jumps straight to CLOSED, and
CLOSED is reached exactly once: close() is idempotent.

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import BinaryIO, Optional
import uuid


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """
    Connection lifecycle states.

    These track what the worker is doing with the connection, for logging
    and for making sure the socket is released exactly once.
    """
    IDLE = "idle"                        # Accepted, nothing read yet
    READING_REQUEST = "reading_request"  # Consuming the header block
    RESOLVING = "resolving"              # Looking up the file
    WRITING_HEADER = "writing_header"    # Sending status line + headers
    WRITING_BODY = "writing_body"        # Sending the body
    CLOSED = "closed"                    # Socket released


_ORDER = [
    ConnectionState.IDLE,
    ConnectionState.READING_REQUEST,
    ConnectionState.RESOLVING,
    ConnectionState.WRITING_HEADER,
    ConnectionState.WRITING_BODY,
    ConnectionState.CLOSED,
]


@dataclass
class Connection:
    """
    Represents a client connection.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    Connection Responsibilities                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  1. STREAMS                                                          │
    │     └── rfile: buffered reader for the request lines                 │
    │     └── wfile: buffered writer for the response                      │
    │                                                                      │
    │  2. TIMEOUT                                                          │
    │     └── A stalled client raises socket.timeout in readline()         │
    │     └── None disables it (blocks forever)                            │
    │                                                                      │
    │  3. STATE TRACKING                                                   │
    │     └── Forward-only transitions, see ConnectionState                │
    │                                                                      │
    │  4. GRACEFUL CLOSE                                                   │
    │     └── Flush, send FIN, drain unread input, release the fd          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short connection identifier for log lines.
        state: Current connection state.
        created_at: Timestamp when the connection was accepted.
    """

    socket: socket.socket
    address: tuple = ("-", 0)

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.IDLE
    created_at: float = field(default_factory=time.time)

    timeout: Optional[float] = 30.0   # Per-read timeout, None = block forever
    drain_timeout: float = 0.5        # Total time close() spends draining input
    drain_limit: int = 64 * 1024      # Most bytes close() will drain

    rfile: BinaryIO = field(init=False, repr=False)
    wfile: BinaryIO = field(init=False, repr=False)

    def __post_init__(self):
        """Configure the socket and open the buffered streams."""
        self.socket.settimeout(self.timeout)
        self.rfile = self.socket.makefile("rb")
        self.wfile = self.socket.makefile("wb")

    @property
    def client_ip(self) -> str:
        """Get the client IP address."""
        return self.address[0] if self.address else "-"

    @property
    def age(self) -> float:
        """Get connection age in seconds."""
        return time.time() - self.created_at

    @property
    def is_closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    def transition(self, state: ConnectionState) -> None:
        """
        Move to the next lifecycle state.

        Raises:
            RuntimeError: On a backwards move or after the connection closed.
        """
        if _ORDER.index(state) <= _ORDER.index(self.state):
            raise RuntimeError(
                f"[{self.id}] Illegal transition {self.state.value} -> {state.value}"
            )
        logger.debug(f"[{self.id}] {self.state.value} -> {state.value}")
        self.state = state

    def close(self):
        """
        Close the connection gracefully.

        1. Flush anything still buffered in wfile
        2. shutdown(SHUT_WR): tell the client the response is complete
        3. Drain whatever the client sent that we never read, so the kernel
           does not answer our close() with a RST that could discard the
           tail of the response on the client side. At most drain_limit
           bytes, for at most drain_timeout seconds in total
        4. Close the streams and release the socket file descriptor

        Safe to call more than once.
        """
        if self.state == ConnectionState.CLOSED:
            return  # Already closed

        try:
            self.wfile.flush()
        except OSError as e:
            logger.debug(f"[{self.id}] Flush on close failed: {e}")

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Client already gone

        try:
            self._drain()
        except OSError:
            pass  # Timeout or reset, we're closing anyway

        for stream in (self.rfile, self.wfile):
            try:
                stream.close()
            except OSError:
                pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age * 1000:.1f}ms")

    def _drain(self):
        """
        Read and discard pending input until EOF, the byte limit, or the
        deadline, whichever comes first.

        Never blocks for longer than drain_timeout in total.
        """
        deadline = time.monotonic() + self.drain_timeout
        drained = 0

        self.socket.settimeout(self.drain_timeout)
        while drained < self.drain_limit:
            chunk = self.socket.recv(4096)
            if not chunk:
                return
            drained += len(chunk)

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            self.socket.settimeout(remaining)

        logger.debug(f"[{self.id}] Stopped draining after {drained} bytes")

    def __enter__(self):
        """
        Context manager entry.

            with conn:
                request = reader.read(conn.rfile)
                writer.write(conn.wfile, context, resource)
        """
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - ensure connection is closed."""
        self.close()
        return False  # Don't suppress exceptions
