"""
=============================================================================
HTTP REQUEST READING
=============================================================================

Reads the request header block from a client stream and extracts the one
piece of information the file server needs: the request target.

=============================================================================
WHAT WE READ
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  GET /images/logo.png HTTP/1.1\r\n     ← request line (parsed)      │
    │  Host: localhost:8080\r\n              ← header (read, ignored)     │
    │  User-Agent: curl/8.0\r\n              ← header (read, ignored)     │
    │  \r\n                                  ← empty line: stop reading   │
    └─────────────────────────────────────────────────────────────────────┘

The first line that starts with "GET" is parsed. Scanning begins at index
4 (just after "GET ") and collects characters up to the next whitespace:

    GET /images/logo.png HTTP/1.1
        ^               ^
        index 4         whitespace stops the scan

    raw_target = "." + "/images/logo.png" = "./images/logo.png"

The leading "." marks the target as relative to the document root.

Every later line, including further GET lines, is read and discarded
until the empty line that ends the header block. Headers are never
interpreted: no Host handling, no Content-Length, no body.

=============================================================================
MALFORMED REQUESTS
=============================================================================

    "GET"                       too short, nothing after the method
    "GET /index.html"           target runs into end-of-line
    <line longer than limit>    refuses to buffer unbounded input

These raise RequestMalformed, but only after the rest of the header block
has been consumed, so the caller can still write a response to a client
that is waiting for one.

=============================================================================
"""

import logging
from dataclasses import dataclass, field
from typing import BinaryIO, List, Optional


logger = logging.getLogger(__name__)


# Index of the first target character: len("GET ")
TARGET_START = 4


class RequestMalformed(Exception):
    """
    Raised when the request line cannot be parsed.

    The handler answers these with a 404 rather than dropping the
    connection, so the client always sees a well-formed response.
    """

    def __init__(self, message: str, line: Optional[str] = None):
        super().__init__(message)
        self.line = line  # Offending line, if there is one


@dataclass
class Request:
    """
    The parsed request.

    Attributes:
        raw_target: "." + the request target, or None when no GET line
                    was seen before the end of the header block.
        lines: Every line consumed from the stream, in order, without
               line terminators.
    """

    raw_target: Optional[str] = None
    lines: List[str] = field(default_factory=list)

    @property
    def request_line(self) -> str:
        """The first line read, or an empty string."""
        return self.lines[0] if self.lines else ""

    @property
    def has_target(self) -> bool:
        return self.raw_target is not None


def parse_target(line: str) -> str:
    """
    Extract the request target from a line starting with "GET".

    Args:
        line: A request line without its line terminator.

    Returns:
        The target prefixed with "." (e.g. "./index.html").

    Raises:
        RequestMalformed: If the line is too short or the target is not
                          followed by whitespace.

    Examples:
        >>> parse_target("GET /index.html HTTP/1.1")
        './index.html'
    """
    if len(line) <= TARGET_START:
        raise RequestMalformed(f"Request line too short: {line!r}", line)

    chars = []
    for char in line[TARGET_START:]:
        if char.isspace():
            return "." + "".join(chars)
        chars.append(char)

    raise RequestMalformed(f"Request target not terminated: {line!r}", line)


class RequestReader:
    """
    Reads one request header block from a binary stream.

    =========================================================================
    USAGE
    =========================================================================

        reader = RequestReader(max_line_size=8192)

        with sock.makefile("rb") as rfile:
            request = reader.read(rfile)

        request.raw_target     # './index.html' or None

    =========================================================================
    """

    def __init__(self, max_line_size: int = 8192, connection_id: str = "-"):
        self.max_line_size = max_line_size
        self.connection_id = connection_id

    def read(self, rfile: BinaryIO) -> Request:
        """
        Consume lines until an empty line (or end of stream) and return the
        parsed request.

        Raises:
            RequestMalformed: The first GET line could not be parsed, or a
                              line exceeded max_line_size.
            OSError: The underlying stream failed (including socket.timeout).
        """
        request = Request()
        fault: Optional[RequestMalformed] = None
        seen_get = False

        while True:
            raw = rfile.readline(self.max_line_size + 1)
            if not raw:
                # Client closed its side before sending the blank line
                logger.debug(f"[{self.connection_id}] End of stream while reading request")
                break

            if len(raw) > self.max_line_size:
                # The rest of this line is still unread, so stop here
                fault = RequestMalformed(
                    f"Request line exceeds {self.max_line_size} bytes"
                )
                break

            line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            request.lines.append(line)
            logger.debug(f"[{self.connection_id}] Request line: ({line})")

            if not line:
                break

            if not seen_get and line.startswith("GET"):
                seen_get = True
                try:
                    request.raw_target = parse_target(line)
                    logger.debug(f"[{self.connection_id}] Target: {request.raw_target}")
                except RequestMalformed as e:
                    fault = e

        if fault is not None:
            raise fault

        return request
