"""
=============================================================================
HTTP RESPONSE WRITING
=============================================================================

Streams an HTTP/1.1 response for one resolved resource straight onto the
client stream.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  HTTP/1.1 200 OK\r\n                       ← status line            │
    │  Date: Mon, 19 Oct 2026 12:00:00 GMT\r\n   ← always UTC             │
    │  Server: staticweb/1.0\r\n                 ← configured identity    │
    │  Connection: close\r\n                     ← one request only       │
    │  Content-Type: text/html\r\n               ← from the classifier    │
    │  \r\n                                      ← end of headers         │
    │  <html><head></head><body>...              ← body, until close      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

There is no Content-Length. The body ends when the server closes the
connection, which "Connection: close" announces up front. This lets the
body be streamed while it is being generated (template substitution
changes the length) without buffering the whole file first.

=============================================================================
BODY MODES
=============================================================================

    BINARY      image/*      Raw bytes, copied in chunks.
    PLAIN_TEXT  text/plain   "Text file name: <name>" line, a blank line,
                             then the raw bytes.
    HTML        text/html    <html><head></head><body> + lines + </body></html>
                             with template markers annotated (see below).
    OTHER       anything     Raw bytes, same as BINARY.

=============================================================================
TEMPLATE MARKERS
=============================================================================

HTML files are read line by line. Before a line is written:

    line contains <cs371date>    → write "Date & time: <timestamp>"
    line contains <cs371server>  → write "Server: <identity>\n"

Both checks run on every line. The line itself is always written
afterwards, unchanged, so the annotation precedes the marker and browsers
render the unknown tag as nothing.

=============================================================================
ORDERING AND FAILURE
=============================================================================

    1. Open the file                  OSError here → degrade to 404
    2. Write status line + headers    nothing of the body is written yet
    3. Write body                     OSError here → propagate, caller closes
    4. Close the file                 on every path

Opening before the header goes out is what makes step 1 recoverable: a
file that vanished or is unreadable still gets an honest 404.

=============================================================================
"""

import html
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, BinaryIO, Callable, Optional

from .mime_types import is_html_type, is_image_type, is_plain_text_type
from .status_codes import HTTPStatus

if TYPE_CHECKING:
    from ..handlers.static import ResolvedResource


logger = logging.getLogger(__name__)


HTTP_VERSION = "HTTP/1.1"
CRLF = b"\r\n"

DATE_MARKER = b"<cs371date>"
SERVER_MARKER = b"<cs371server>"

HTML_OPEN = b"<html><head></head><body>"
HTML_CLOSE = b"</body></html>"

# Content type of the error document, whatever was requested
ERROR_CONTENT_TYPE = "text/html"


class BodyMode(Enum):
    """How the body bytes are produced from the resource."""

    BINARY = "binary"
    PLAIN_TEXT = "plain_text"
    HTML = "html"
    OTHER = "other"


def select_body_mode(content_type: str) -> BodyMode:
    """
    Pick a body mode from a content type.

    Examples:
        >>> select_body_mode("image/png")
        <BodyMode.BINARY: 'binary'>
        >>> select_body_mode("text/plain")
        <BodyMode.PLAIN_TEXT: 'plain_text'>
        >>> select_body_mode("application/pdf")
        <BodyMode.OTHER: 'other'>
    """
    if is_image_type(content_type):
        return BodyMode.BINARY
    if is_plain_text_type(content_type):
        return BodyMode.PLAIN_TEXT
    if is_html_type(content_type):
        return BodyMode.HTML
    return BodyMode.OTHER


@dataclass(frozen=True)
class ResponseContext:
    """
    Everything the writer needs to know before the first byte goes out.

    Attributes:
        status: 200 when the resource exists, otherwise 404.
        content_type: Value of the Content-Type header.
        body_mode: Body serialization strategy (ignored for 404).
    """

    status: HTTPStatus
    content_type: str
    body_mode: BodyMode

    @classmethod
    def for_resource(cls, resource: "ResolvedResource") -> "ResponseContext":
        """
        Derive the context from a ResolvedResource.

        A missing resource always gets the HTML error document, so its
        content type is text/html regardless of what was requested.
        """
        if not resource.exists:
            return cls.not_found()
        return cls(
            status=HTTPStatus.OK,
            content_type=resource.content_type,
            body_mode=select_body_mode(resource.content_type),
        )

    @classmethod
    def not_found(cls) -> "ResponseContext":
        return cls(
            status=HTTPStatus.NOT_FOUND,
            content_type=ERROR_CONTENT_TYPE,
            body_mode=BodyMode.HTML,
        )

    @property
    def status_line(self) -> str:
        """
        The HTTP status line.

        Example: "HTTP/1.1 404 Not Found"
        """
        return f"{HTTP_VERSION} {int(self.status)} {self.status.phrase}"


# =============================================================================
# FORMATTING HELPERS
# =============================================================================

def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Wed, 01 Jan 2026 12:00:00 GMT

    HTTP dates are always GMT. Aware datetimes are converted to UTC first,
    naive ones are assumed to already be UTC.
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)

    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


def format_template_timestamp(dt: datetime) -> str:
    """
    Human-readable local timestamp used for the <cs371date> marker.

    Example: 2026-Oct-19 at 14:03:59 CEST
    """
    local = dt.astimezone()
    return local.strftime("%Y-%b-%d at %H:%M:%S %Z").rstrip()


def render_not_found(display_name: str) -> bytes:
    """
    Build the 404 error document.

    The display name is HTML-escaped so a crafted target cannot inject
    markup into the page. With no name (no usable target) the sentence
    drops the name clause.
    """
    if display_name:
        name = html.escape(display_name, quote=False)
        message = f"The file {name} could not be found!"
    else:
        message = "The file could not be found!"

    return (
        b"<html><head></head><body>\n"
        b'<h3><font color="red">404 Error</font> - '
        + message.encode("utf-8")
        + b"</h3>\n"
        b"</body></html>\n"
    )


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# WRITER
# =============================================================================

class ResponseWriter:
    """
    Serializes one response onto a writable binary stream.

    The writer holds only read-only settings (identity string, chunk size,
    clock), so one instance is shared by all connection workers.

    =========================================================================
    USAGE
    =========================================================================

        writer = ResponseWriter(server_name="staticweb/1.0")

        context = ResponseContext.for_resource(resource)
        sent = writer.write(wfile, context, resource)
        sent.status              # HTTPStatus.OK or HTTPStatus.NOT_FOUND

    =========================================================================
    """

    def __init__(
        self,
        server_name: str,
        buffer_size: int = 8192,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            server_name: Identity for the Server header and <cs371server>.
            buffer_size: Chunk size for raw byte copies.
            clock: Returns the current time as an aware datetime.
                   Injected by tests; defaults to the system clock in UTC.
        """
        self.server_name = server_name
        self.buffer_size = buffer_size
        self.clock = clock or _utc_now

    def write(
        self,
        wfile: BinaryIO,
        context: ResponseContext,
        resource: "ResolvedResource",
        on_header_written: Optional[Callable[[], None]] = None,
    ) -> ResponseContext:
        """
        Write the full response: header, then body.

        Args:
            wfile: Client stream.
            context: Status, content type and body mode.
            resource: The ResolvedResource being served.
            on_header_written: Called once the header block is out, before
                               any body byte.

        Returns:
            The context that was actually sent. This is the 404 context
            instead of the one passed in when the file could not be opened.

        Raises:
            OSError: Reading the file or writing to the client failed
                     after the header was sent.
        """
        source = self.open_resource(context, resource)
        if source is None and context.status == HTTPStatus.OK:
            context = ResponseContext.not_found()

        try:
            self.write_header(wfile, context)
            if on_header_written is not None:
                on_header_written()
            self.write_body(wfile, context, resource, source)
            wfile.flush()
        finally:
            if source is not None:
                source.close()

        return context

    def open_resource(
        self, context: ResponseContext, resource: "ResolvedResource"
    ) -> Optional[BinaryIO]:
        """
        Open the resource for reading, or return None.

        Returns None for 404 contexts and when the open fails: the file
        was removed after the existence check, is a directory, or is not
        readable by this process.
        """
        if context.status != HTTPStatus.OK:
            return None
        try:
            return open(resource.fs_path, "rb")
        except OSError as e:
            logger.warning(f"Cannot open {resource.local_path}: {e}")
            return None

    def write_header(self, wfile: BinaryIO, context: ResponseContext) -> None:
        """Write the status line and header block, terminated by an empty line."""
        lines = [
            context.status_line,
            f"Date: {format_http_date(self.clock())}",
            f"Server: {self.server_name}",
            "Connection: close",
            f"Content-Type: {context.content_type}",
        ]
        wfile.write(CRLF.join(line.encode("utf-8") for line in lines) + CRLF + CRLF)

    def write_body(
        self,
        wfile: BinaryIO,
        context: ResponseContext,
        resource: "ResolvedResource",
        source: Optional[BinaryIO],
    ) -> None:
        """Write the body selected by context.body_mode."""
        if context.status != HTTPStatus.OK or source is None:
            wfile.write(render_not_found(resource.display_name))
        elif context.body_mode is BodyMode.PLAIN_TEXT:
            self._write_plain_text(wfile, resource, source)
        elif context.body_mode is BodyMode.HTML:
            self._write_html(wfile, source)
        else:
            # BINARY and OTHER are both opaque byte streams
            self._copy(wfile, source)

    # -------------------------------------------------------------------------
    # Body strategies
    # -------------------------------------------------------------------------

    def _copy(self, wfile: BinaryIO, source: BinaryIO) -> None:
        for chunk in iter(lambda: source.read(self.buffer_size), b""):
            wfile.write(chunk)

    def _write_plain_text(
        self, wfile: BinaryIO, resource: "ResolvedResource", source: BinaryIO
    ) -> None:
        wfile.write(f"Text file name: {resource.display_name}\n\n".encode("utf-8"))
        self._copy(wfile, source)

    def _write_html(self, wfile: BinaryIO, source: BinaryIO) -> None:
        wfile.write(HTML_OPEN)
        for line in source:
            if DATE_MARKER in line:
                stamp = format_template_timestamp(self.clock())
                wfile.write(f"Date & time: {stamp}".encode("utf-8"))
            if SERVER_MARKER in line:
                wfile.write(f"Server: {self.server_name}\n".encode("utf-8"))
            wfile.write(line)
        wfile.write(HTML_CLOSE)
