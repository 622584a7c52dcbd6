"""
=============================================================================
PATH RESOLUTION
=============================================================================

Turns a raw request target ("./images/logo.png") into a ResolvedResource:
where the file lives, whether it exists, what to call it, and what type
it is.

=============================================================================
DISPLAY NAME
=============================================================================

The display name is the bare file name shown in the plain-text preamble
and in the 404 page. It is computed by a simple stripping rule:

    while the first character is "." or the path contains "/":
        drop the first character

    "./a/b/c.txt"   → "/a/b/c.txt" → "a/b/c.txt" → ... → "c.txt"
    "./x.png"       → "x.png"
    "c.txt"         → "c.txt"

Every step removes one character, so the loop always terminates, and its
result has neither a leading "." nor a "/", so applying it twice gives
the same answer. It is NOT path normalization: ".." is not understood,
and a file name that starts with a dot loses it (".bashrc" → "bashrc").

=============================================================================
SECURITY: PATH TRAVERSAL
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  GET /../../../etc/passwd HTTP/1.1                                  │
    │                                                                      │
    │  raw_target = "./../../../etc/passwd"                               │
    │  root / raw_target → /etc/passwd  (outside the document root!)      │
    │                                                                      │
    │  With enforce_root (the default):                                   │
    │  1. Resolve the full path (follow .. and symlinks)                  │
    │  2. Check if it's still inside the document root                    │
    │  3. If not, report the resource as missing (404)                    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

With enforce_root disabled, any path the process can read is served.

=============================================================================
"""

import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..http.mime_types import MimeClassifier, DEFAULT_MIME_TYPE


logger = logging.getLogger(__name__)


PATH_SEPARATOR = "/"


@dataclass(frozen=True)
class ResolvedResource:
    """
    A request target resolved against the filesystem.

    Attributes:
        local_path: The raw target, relative to the document root
                    (e.g. "./index.html"). Empty if there was no target.
        exists: Result of the filesystem existence check (and the root
                containment check, when enabled).
        display_name: Final path component, for display only.
        content_type: Classified content type.
        fs_path: local_path joined onto the document root.
    """

    local_path: str
    exists: bool
    display_name: str
    content_type: str
    fs_path: Optional[Path] = None


def display_name(path: str) -> str:
    """
    Strip leading dots and every directory segment from path.

    Examples:
        >>> display_name("./a/b/c.txt")
        'c.txt'
        >>> display_name("./x.png")
        'x.png'
        >>> display_name("readme")
        'readme'
    """
    while path and (path[0] == "." or PATH_SEPARATOR in path):
        path = path[1:]
    return path


class PathResolver:
    """
    Resolves request targets against a document root.

    =========================================================================
    USAGE
    =========================================================================

        resolver = PathResolver(
            root_dir=".",                    # process working directory
            classifier=MimeClassifier(),
            enforce_root=True,
        )

        resource = resolver.resolve("./index.html")
        resource.exists          # True / False
        resource.display_name    # 'index.html'
        resource.content_type    # 'text/html'

    =========================================================================
    """

    def __init__(
        self,
        root_dir: str | Path = ".",
        classifier: Optional[MimeClassifier] = None,
        enforce_root: bool = True,
    ):
        self.root_dir = Path(root_dir)
        self.classifier = classifier or MimeClassifier()
        self.enforce_root = enforce_root

    def resolve(self, raw_target: Optional[str]) -> ResolvedResource:
        """
        Resolve a raw target ("./path") to a ResolvedResource.

        A missing target (no GET line, malformed request) resolves to a
        resource that does not exist and has an empty display name.
        """
        if raw_target is None:
            return ResolvedResource(
                local_path="",
                exists=False,
                display_name="",
                content_type=DEFAULT_MIME_TYPE,
            )

        fs_path = self.root_dir / raw_target
        exists = os.path.exists(fs_path)

        if exists and self.enforce_root and not self.is_within_root(fs_path):
            logger.warning(f"Path traversal attempt: {raw_target}")
            exists = False

        return ResolvedResource(
            local_path=raw_target,
            exists=exists,
            display_name=display_name(raw_target),
            content_type=self.classifier.classify(raw_target),
            fs_path=fs_path,
        )

    def is_within_root(self, path: Path) -> bool:
        """Check that path, with .. and symlinks resolved, is inside the root."""
        try:
            path.resolve().relative_to(self.root_dir.resolve())
        except (ValueError, OSError):
            return False
        return True
