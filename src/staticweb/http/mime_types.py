"""
=============================================================================
MIME TYPE DETECTION
=============================================================================

Maps a resource path to the content-type label sent in the Content-Type
header. The label also decides how the response body is serialized:

    ┌────────────────────────────────────────────────────────────────────┐
    │                    CONTENT TYPE → BODY MODE                        │
    ├────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │  image/*           → BINARY      raw bytes, untouched              │
    │  text/plain        → PLAIN_TEXT  file name preamble + raw bytes    │
    │  text/html         → HTML        document shell + template tags    │
    │  anything else     → OTHER       raw bytes, untouched              │
    │                                                                     │
    └────────────────────────────────────────────────────────────────────┘

Classification is driven by the path alone. File contents are never
inspected, and a label is produced even for paths that do not exist.

=============================================================================
TWO STRATEGIES
=============================================================================

    "table"   Look the lower-cased extension up in MIME_TYPES below.

    "system"  Ask the platform database (the mimetypes module, which reads
              /etc/mime.types and friends). When it has no answer, fall
              back to the table, then to the default.

Both satisfy the same contract for the extensions the server cares about
(.html, .txt, .png, .jpg, .jpeg, .gif, .ico).

=============================================================================
"""

import mimetypes
from pathlib import Path
from typing import Optional


# =============================================================================
# MIME TYPE DATABASE
# =============================================================================
#
# Maps file extensions (lowercase, with dot) to MIME types.
#
# =============================================================================

MIME_TYPES = {
    # -------------------------------------------------------------------------
    # TEXT TYPES
    # -------------------------------------------------------------------------
    ".html": "text/html",
    ".htm": "text/html",
    ".xhtml": "application/xhtml+xml",
    ".css": "text/css",
    ".js": "text/javascript",
    ".mjs": "text/javascript",
    ".json": "application/json",
    ".xml": "application/xml",
    ".txt": "text/plain",
    ".text": "text/plain",
    ".log": "text/plain",
    ".md": "text/markdown",
    ".csv": "text/csv",

    # -------------------------------------------------------------------------
    # IMAGE TYPES
    # -------------------------------------------------------------------------
    ".png": "image/png",
    ".apng": "image/apng",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",        # favicon.ico
    ".webp": "image/webp",
    ".avif": "image/avif",
    ".bmp": "image/bmp",

    # -------------------------------------------------------------------------
    # FONT TYPES
    # -------------------------------------------------------------------------
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",
    ".otf": "font/otf",

    # -------------------------------------------------------------------------
    # AUDIO / VIDEO TYPES
    # -------------------------------------------------------------------------
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".mp4": "video/mp4",
    ".webm": "video/webm",

    # -------------------------------------------------------------------------
    # DOCUMENT / ARCHIVE TYPES
    # -------------------------------------------------------------------------
    ".pdf": "application/pdf",
    ".zip": "application/zip",
    ".tar": "application/x-tar",
    ".gz": "application/gzip",
    ".wasm": "application/wasm",
}

# Default MIME type for unknown extensions
# application/octet-stream = "I don't know what this is, treat as binary"
DEFAULT_MIME_TYPE = "application/octet-stream"


# =============================================================================
# PUBLIC FUNCTIONS
# =============================================================================

def get_mime_type(path: str | Path, default: Optional[str] = None) -> str:
    """
    Get the MIME type for a file based on its extension.

    Args:
        path: File path or name with extension
        default: Default MIME type if extension not found
                 Uses application/octet-stream if not specified

    Returns:
        The MIME type string

    Examples:
        >>> get_mime_type("./images/logo.PNG")
        'image/png'

        >>> get_mime_type("./favicon.ico")
        'image/x-icon'

        >>> get_mime_type("unknown.xyz")
        'application/octet-stream'
    """
    if isinstance(path, str):
        path = Path(path)

    extension = path.suffix.lower()  # .PNG → .png
    return MIME_TYPES.get(extension, default or DEFAULT_MIME_TYPE)


def guess_system_type(path: str | Path) -> Optional[str]:
    """
    Ask the platform MIME database for a type, or None if it has no answer.
    """
    mime_type, _encoding = mimetypes.guess_type(str(path), strict=False)
    return mime_type


class MimeClassifier:
    """
    Path → content-type classifier.

    Holds only a strategy name, so a single instance is shared read-only
    by every connection worker.

    Usage:
        classifier = MimeClassifier()             # extension table
        classifier = MimeClassifier("system")     # platform database

        classifier.classify("./index.html")       # 'text/html'
        classifier.classify("./notes")            # 'application/octet-stream'
    """

    def __init__(self, strategy: str = "table"):
        if strategy not in ("table", "system"):
            raise ValueError(f"Unknown classification strategy: {strategy!r}")
        self.strategy = strategy

    def classify(self, path: str | Path) -> str:
        """Return a best-effort content type for path. Never raises for odd paths."""
        if self.strategy == "system":
            guessed = guess_system_type(path)
            if guessed:
                return guessed
        return get_mime_type(path)

    def __repr__(self) -> str:
        return f"MimeClassifier(strategy={self.strategy!r})"


def is_image_type(mime_type: str) -> bool:
    """Check if a MIME type is an image (served as raw bytes)."""
    return mime_type.startswith("image")


def is_plain_text_type(mime_type: str) -> bool:
    """Check if a MIME type is plain text (served with a file name preamble)."""
    return mime_type.startswith("text/plain")


def is_html_type(mime_type: str) -> bool:
    """
    Check if a MIME type is an HTML document (served through the template
    pass). Matches text/html and application/xhtml+xml.
    """
    return "html" in mime_type.split(";", 1)[0]
