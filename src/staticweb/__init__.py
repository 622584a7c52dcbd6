"""
=============================================================================
STATICWEB - One-Request-Per-Connection HTTP/1.1 File Server
=============================================================================

Serves files from a document root over raw sockets. Each accepted
connection carries exactly one GET request, answered with the file's
bytes and then closed.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                       REQUEST FLOW                                  │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   SocketServer.accept()                                             │
    │        │                                                             │
    │        └──► Thread: RequestHandler.handle(conn)                     │
    │                 │                                                    │
    │                 ├──► RequestReader    "GET /a.txt ..." → "./a.txt"  │
    │                 ├──► PathResolver     exists? display name?         │
    │                 ├──► MimeClassifier   ".txt" → text/plain           │
    │                 ├──► ResponseWriter   header, then body             │
    │                 └──► conn.close()                                    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

HTML files get two template markers annotated on the way out:
<cs371date> (current date and time) and <cs371server> (server identity).

=============================================================================
"""

__version__ = "1.0.0"

from .server import WebServer
from .config import ServerConfig

__all__ = ["WebServer", "ServerConfig", "__version__"]
