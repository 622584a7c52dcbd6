"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the file server.

Everything a connection worker needs to know (where the document root is,
which identity string goes in the Server header, how long to wait for a
slow client) lives in one immutable-by-convention dataclass that is built
once at startup and handed to every component.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m staticweb 3000 --root ./public                  │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── STATICWEB_PORT=3000 python -m staticweb                   │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


MIME_STRATEGIES = ("table", "system")
LOG_FORMATS = ("text", "json")

_TRUTHY = {"1", "true", "yes", "on"}


def _parse_timeout(value: str) -> Optional[float]:
    """Read timeout from text; "none" (any case) means block forever."""
    if value.strip().lower() == "none":
        return None
    return float(value)


@dataclass
class ServerConfig:
    """
    Configuration for the file server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, timeout

    REQUEST SETTINGS
    - max_line_size

    FILES
    - document_root, enforce_root, mime_strategy

    LOGGING
    - log_level, log_format

    IDENTITY
    - server_name

    =========================================================================
    """

    host: str = "127.0.0.1"
    """
    The IP address to bind to.

    - "127.0.0.1" - Localhost only (development)
    - "0.0.0.0" - All network interfaces
    """

    port: int = 8080
    """
    The port number to listen on. 0 lets the OS pick a free port.
    """

    backlog: int = 128
    """
    Maximum number of queued connections waiting for accept().
    """

    buffer_size: int = 8192
    """
    Chunk size in bytes used when copying file contents to the client.
    """

    timeout: Optional[float] = 30.0
    """
    Per-connection read timeout in seconds.

    None = blocking (a stalled client holds its worker forever)
    """

    max_line_size: int = 8192
    """
    Longest request line or header line accepted, in bytes.
    """

    document_root: str = "."
    """
    Directory that request targets are resolved against.
    "." means the process working directory.
    """

    enforce_root: bool = True
    """
    Refuse targets that resolve outside document_root (reported as 404).
    """

    mime_strategy: str = "table"
    """
    Content-type classification strategy.

    - "table"  - Built-in extension table
    - "system" - Platform mimetypes database, falling back to the table
    """

    log_level: str = "INFO"
    """
    Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    DEBUG logs every request line read from the client.
    """

    log_format: str = "text"
    """
    Access log format: 'text' or 'json'.
    """

    server_name: str = "staticweb/1.0"
    """
    Identity string sent in the Server header and substituted for the
    <cs371server> template marker.
    """

    @property
    def root_path(self) -> Path:
        """The document root as a Path."""
        return Path(self.document_root)

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        STATICWEB_HOST          Server host (default: 127.0.0.1)
        STATICWEB_PORT          Server port (default: 8080)
        STATICWEB_TIMEOUT       Read timeout in seconds, or "none" (default: 30)
        STATICWEB_ROOT          Document root (default: .)
        STATICWEB_ENFORCE_ROOT  Confine targets to the root (default: true)
        STATICWEB_MIME_STRATEGY table or system (default: table)
        STATICWEB_LOG_LEVEL     Logging level (default: INFO)
        STATICWEB_LOG_FORMAT    text or json (default: text)

        =====================================================================
        """
        return cls(
            host=os.getenv("STATICWEB_HOST", "127.0.0.1"),
            port=int(os.getenv("STATICWEB_PORT", "8080")),
            timeout=_parse_timeout(os.getenv("STATICWEB_TIMEOUT", "30")),
            document_root=os.getenv("STATICWEB_ROOT", "."),
            enforce_root=os.getenv("STATICWEB_ENFORCE_ROOT", "true").lower() in _TRUTHY,
            mime_strategy=os.getenv("STATICWEB_MIME_STRATEGY", "table"),
            log_level=os.getenv("STATICWEB_LOG_LEVEL", "INFO"),
            log_format=os.getenv("STATICWEB_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called once at startup so a bad value fails before the first
        connection is accepted.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.max_line_size < 16:
            raise ValueError("max_line_size must be >= 16")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.mime_strategy not in MIME_STRATEGIES:
            raise ValueError(
                f"Unknown mime_strategy: {self.mime_strategy!r}. "
                f"Expected one of {', '.join(MIME_STRATEGIES)}."
            )

        if self.log_format not in LOG_FORMATS:
            raise ValueError(
                f"Unknown log_format: {self.log_format!r}. "
                f"Expected one of {', '.join(LOG_FORMATS)}."
            )

        if not self.root_path.is_dir():
            raise ValueError(f"document_root is not a directory: {self.document_root}")
