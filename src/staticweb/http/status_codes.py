"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The file server answers with exactly two statuses:

    ┌────────┬───────────────────────────────────────────────────────────┐
    │  200   │ OK         - The resource exists and its bytes follow     │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  404   │ Not Found  - Missing, unreadable, malformed or escaping   │
    │        │              the document root                            │
    └────────┴───────────────────────────────────────────────────────────┘

Everything else a client might expect from a general-purpose server
(400, 405, 500, ...) is folded into 404 or a closed connection.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    Extends IntEnum, so statuses compare equal to their integer codes:

        >>> HTTPStatus.OK == 200
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    OK = 200
    NOT_FOUND = 404

    @property
    def phrase(self) -> str:
        """
        Get the reason phrase for this status code.

            HTTP/1.1 404 Not Found
                     ─── ─────────
                      │   │
                      │   └── Reason phrase
                      └────── Status code
        """
        return _STATUS_PHRASES.get(self, "Unknown")


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.NOT_FOUND: "Not Found",
}
