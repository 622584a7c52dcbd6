"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

The protocol pieces of the file server, leaves first:

    mime_types     path → content type
    request        client stream → Request (the GET target)
    response       ResponseContext + resource → bytes on the client stream
    status_codes   200 and 404

None of these modules touch sockets. They read from and write to plain
binary file objects, so they work the same on a socket.makefile() stream
and on io.BytesIO in tests.

=============================================================================
"""

from .request import Request, RequestReader, RequestMalformed, parse_target
from .response import (
    BodyMode,
    ResponseContext,
    ResponseWriter,
    format_http_date,
    render_not_found,
    select_body_mode,
)
from .status_codes import HTTPStatus
from .mime_types import MimeClassifier, get_mime_type, DEFAULT_MIME_TYPE

__all__ = [
    # Request reading
    "Request",
    "RequestReader",
    "RequestMalformed",
    "parse_target",

    # Response writing
    "BodyMode",
    "ResponseContext",
    "ResponseWriter",
    "format_http_date",
    "render_not_found",
    "select_body_mode",

    # Status codes
    "HTTPStatus",

    # MIME types
    "MimeClassifier",
    "get_mime_type",
    "DEFAULT_MIME_TYPE",
]
