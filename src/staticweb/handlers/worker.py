"""
=============================================================================
REQUEST HANDLER
=============================================================================

Runs the whole request/response cycle for one connection:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   READING_REQUEST   RequestReader.read(conn.rfile)                   │
    │         │             └── RequestMalformed → no target (404)         │
    │         ▼                                                            │
    │   RESOLVING         PathResolver.resolve(raw_target)                 │
    │         │             └── MimeClassifier.classify(path)              │
    │         ▼                                                            │
    │   WRITING_HEADER    ResponseWriter.write(conn.wfile, ...)            │
    │         │             └── file opened first, 404 if it fails         │
    │         ▼                                                            │
    │   WRITING_BODY        └── raw / plain text / templated HTML          │
    │         │                                                            │
    │         ▼                                                            │
    │   CLOSED            `with conn:` closes on every path, exactly once  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Failures never leave this module. A timeout or a broken pipe is logged
and the connection is closed; other connections are unaffected.

=============================================================================
"""

import socket
import logging
from typing import Optional

from ..config import ServerConfig
from ..core.connection import Connection, ConnectionState
from ..http.mime_types import MimeClassifier
from ..http.request import RequestReader, RequestMalformed
from ..http.response import ResponseContext, ResponseWriter
from ..access_log import AccessLog
from .static import PathResolver


logger = logging.getLogger(__name__)


class RequestHandler:
    """
    Handles one connection from first byte to close.

    Holds only read-only collaborators, so a single instance serves every
    worker thread.

    Usage:
        handler = RequestHandler.from_config(config)
        handler.handle(conn)   # returns after conn is closed
    """

    def __init__(
        self,
        resolver: PathResolver,
        writer: ResponseWriter,
        max_line_size: int = 8192,
        access_log: Optional[AccessLog] = None,
    ):
        self.resolver = resolver
        self.writer = writer
        self.max_line_size = max_line_size
        self.access_log = access_log or AccessLog()

    @classmethod
    def from_config(cls, config: ServerConfig) -> "RequestHandler":
        """Wire the handler's collaborators from a ServerConfig."""
        classifier = MimeClassifier(config.mime_strategy)
        return cls(
            resolver=PathResolver(
                root_dir=config.root_path,
                classifier=classifier,
                enforce_root=config.enforce_root,
            ),
            writer=ResponseWriter(
                server_name=config.server_name,
                buffer_size=config.buffer_size,
            ),
            max_line_size=config.max_line_size,
            access_log=AccessLog(log_format=config.log_format),
        )

    def handle(self, conn: Connection) -> None:
        """
        Process the connection and close it.

        Never raises for I/O problems; they are logged instead.
        """
        logger.debug(f"[{conn.id}] Handling connection from {conn.client_ip}")

        request_line = ""
        target = ""
        sent = None

        with conn:
            try:
                conn.transition(ConnectionState.READING_REQUEST)
                reader = RequestReader(self.max_line_size, connection_id=conn.id)
                raw_target = None
                try:
                    request = reader.read(conn.rfile)
                    raw_target = request.raw_target
                    request_line = request.request_line
                except RequestMalformed as e:
                    logger.info(f"[{conn.id}] Malformed request: {e}")
                    request_line = e.line or ""

                conn.transition(ConnectionState.RESOLVING)
                resource = self.resolver.resolve(raw_target)
                target = resource.local_path
                context = ResponseContext.for_resource(resource)
                logger.debug(
                    f"[{conn.id}] Resolved {target or '<none>'}: exists={resource.exists} "
                    f"type={resource.content_type} mode={context.body_mode.value}"
                )

                conn.transition(ConnectionState.WRITING_HEADER)
                sent = self.writer.write(
                    conn.wfile,
                    context,
                    resource,
                    on_header_written=lambda: conn.transition(ConnectionState.WRITING_BODY),
                )

            except socket.timeout:
                logger.warning(f"[{conn.id}] Timed out in state {conn.state.value}")
            except OSError as e:
                logger.warning(f"[{conn.id}] I/O error in state {conn.state.value}: {e}")
            except Exception:
                logger.exception(f"[{conn.id}] Unexpected error in state {conn.state.value}")

        self.access_log.record(
            connection_id=conn.id,
            client_ip=conn.client_ip,
            request_line=request_line,
            target=target,
            status_code=int(sent.status) if sent is not None else None,
            content_type=sent.content_type if sent is not None else "",
            duration_ms=conn.age * 1000,
        )
