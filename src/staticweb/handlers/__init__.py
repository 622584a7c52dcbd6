"""
=============================================================================
HANDLERS
=============================================================================

    static   PathResolver: request target → ResolvedResource
    worker   RequestHandler: one connection, read → resolve → write → close

=============================================================================
"""

from .static import PathResolver, ResolvedResource, display_name
from .worker import RequestHandler

__all__ = [
    "PathResolver",
    "ResolvedResource",
    "display_name",
    "RequestHandler",
]
