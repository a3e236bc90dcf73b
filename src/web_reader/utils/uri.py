"""
URI resolution helpers.

Turns the relative references found in article markup into absolute
URIs against the page URI. Resolution is purely string based and never
raises: malformed input degrades to plain concatenation.
"""

import re
from urllib.parse import urlsplit

# Schemes that are absolute without an authority component
_OPAQUE_SCHEMES = {"mailto", "tel", "data", "javascript", "urn", "news", "sms", "magnet"}

_SCHEME_RE = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.\-]*):")

_SRCSET_URL_RE = re.compile(r"(\S+)(\s+[\d.]+[xw])?(\s*(?:,|$))")

_DEFAULT_PORTS = {80, 443}


def get_base(base_uri: str) -> str:
    """
    Get the origin of a URI: scheme, user info, host and non-default port.

    Args:
        base_uri: Page URI

    Returns:
        String like ``https://user@example.com:8080``
    """
    parts = urlsplit(base_uri)
    origin = f"{parts.scheme}://"

    if parts.username:
        user_info = parts.username
        if parts.password:
            user_info += f":{parts.password}"
        origin += f"{user_info}@"

    origin += parts.hostname or ""

    try:
        port = parts.port
    except ValueError:
        port = None
    if port is not None and port not in _DEFAULT_PORTS:
        origin += f":{port}"

    return origin


def get_path_base(base_uri: str) -> str:
    """
    Get the origin plus the path up to (and including) the last slash.

    Args:
        base_uri: Page URI

    Returns:
        String like ``https://example.com/blog/``
    """
    path = urlsplit(base_uri).path or "/"
    return get_base(base_uri) + path[: path.rfind("/") + 1]


def is_absolute(uri: str) -> bool:
    """Check whether a reference is already a well-formed absolute URI."""
    if not uri or any(ch.isspace() for ch in uri):
        return False

    match = _SCHEME_RE.match(uri)
    if not match:
        return False

    scheme = match.group(1).lower()
    if scheme in _OPAQUE_SCHEMES:
        return True

    return uri[match.end():].startswith("//") and bool(urlsplit(uri).netloc)


def to_absolute(base_uri: str, uri: str) -> str:
    """
    Convert a reference found in the page to an absolute URI.

    Args:
        base_uri: URI of the page the reference was found in
        uri: Reference to convert

    Returns:
        Absolute URI, or the reference unchanged for fragments and data URIs

    Example:
        >>> to_absolute("https://example.org/a/b.html", "c.png")
        'https://example.org/a/c.png'
    """
    path_base = get_path_base(base_uri)

    if not uri:
        return path_base

    if is_absolute(uri):
        return uri

    # Ignore hash URIs
    if uri.startswith("#"):
        return uri

    if uri.startswith("data:"):
        return uri

    # Scheme-rooted relative URI
    if uri.startswith("//"):
        return f"{urlsplit(base_uri).scheme}:{uri}"

    # Prepath-rooted relative URI
    if uri.startswith("/"):
        return get_base(base_uri) + uri

    # Dotslash relative URI
    if uri.startswith("./"):
        return path_base + uri[2:]

    # Standard relative URI; path_base already ends with "/"
    return path_base + uri


def absolutize_srcset(base_uri: str, srcset: str) -> str:
    """
    Convert every URL of a ``srcset`` attribute, keeping the descriptors.

    Args:
        base_uri: URI of the page
        srcset: Attribute value like ``a.png 1x, b.png 2x``

    Returns:
        The rewritten attribute value
    """

    def _replace(match: re.Match) -> str:
        return to_absolute(base_uri, match.group(1)) + (match.group(2) or "") + match.group(3)

    return _SRCSET_URL_RE.sub(_replace, srcset)
