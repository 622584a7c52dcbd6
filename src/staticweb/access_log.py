"""
=============================================================================
ACCESS LOGGING
=============================================================================

One log record per connection, written on the "staticweb.access" logger
after the connection has been closed.

=============================================================================
FORMATS
=============================================================================

    text (Apache-like, readable by GoAccess and regex-based tools):

        127.0.0.1 - - [19/Oct/2026:12:00:00 +0000] "GET /index.html" 200 0.84ms

    json (for log aggregators):

        {"connection_id": "1f3a9c2e", "client_ip": "127.0.0.1",
         "target": "./index.html", "status_code": 200, ...}

A connection that never produced a response (client timed out, reset
the connection, ...) is logged with status "-".

=============================================================================
"""

import json
import logging
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Optional


access_logger = logging.getLogger("staticweb.access")


@dataclass
class AccessLogEntry:
    """
    Structured log entry for a connection.

    Fields:
        connection_id:  Short id shared with the per-connection debug lines
        client_ip:      Peer address
        request_line:   First line the client sent (may be empty)
        target:         Raw target ("./index.html"), empty if none
        status_code:    Status sent, None if no response was written
        content_type:   Content-Type sent, empty if none
        duration_ms:    Time from accept to close
        timestamp:      When the connection finished (UTC)
    """

    connection_id: str
    client_ip: str
    request_line: str
    target: str
    status_code: Optional[int]
    content_type: str
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        status = self.status_code if self.status_code is not None else "-"
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.request_line}" {status} {self.duration_ms:.2f}ms'
        )


def _log_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%d/%b/%Y:%H:%M:%S +0000")


class AccessLog:
    """
    Emits AccessLogEntry records in the configured format.

    Usage:
        access_log = AccessLog(log_format="json")
        access_log.record(connection_id="ab12cd34", client_ip="127.0.0.1", ...)
    """

    def __init__(self, log_format: str = "text", log_level: int = logging.INFO):
        self.log_format = log_format
        self.log_level = log_level

    def record(
        self,
        connection_id: str,
        client_ip: str,
        request_line: str = "",
        target: str = "",
        status_code: Optional[int] = None,
        content_type: str = "",
        duration_ms: float = 0.0,
    ) -> AccessLogEntry:
        entry = AccessLogEntry(
            connection_id=connection_id,
            client_ip=client_ip,
            request_line=request_line,
            target=target,
            status_code=status_code,
            content_type=content_type,
            duration_ms=duration_ms,
            timestamp=_log_timestamp(),
        )

        # Responses that never went out are worth a closer look
        level = self.log_level if status_code is not None else logging.WARNING

        if self.log_format == "json":
            access_logger.log(level, json.dumps(entry.to_dict()))
        else:
            access_logger.log(level, entry.to_text())

        return entry
