"""URL canonicalization used as the identity key for icon candidates.

Two references canonicalize to the same string iff they denote the same
resource for deduplication purposes:
- relative, protocol-relative and fragment-only references are resolved
  against a base URL
- scheme and host are lower-cased, default ports are removed
- percent-encoding is normalized (unreserved characters decoded, hex digits
  upper-cased, unsafe characters encoded)
- dot segments and trailing slashes on the path are removed
- fragments are dropped, query strings are kept

``data:`` URLs are self-contained and canonicalize to themselves.
"""

import base64
import posixpath
import re
from typing import Optional, Tuple
from urllib.parse import quote, unquote_to_bytes, urljoin, urlsplit, urlunsplit

from repo_icons.domain.models import IconFormat

ALLOWED_SCHEMES = {"http", "https", "data"}
DEFAULT_PORTS = {"http": 80, "https": 443}

_PERCENT_ESCAPE = re.compile(r"%([0-9A-Fa-f]{2})")
_UNRESERVED = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-._~")
_PATH_SAFE = "%/:@!$&'()*+,;=-._~"
_QUERY_SAFE = "%/?:@!$&'()*+,;=-._~"


class InvalidUrlError(ValueError):
    """A reference could not be turned into a canonical URL."""

    def __init__(self, message: str, reference: Optional[str] = None) -> None:
        super().__init__(message)
        self.reference = reference


def canonicalize(base: Optional[str], raw_ref: str) -> str:
    """Resolve ``raw_ref`` against ``base`` and return its canonical form.

    Args:
        base: Absolute base URL, or None when ``raw_ref`` must be absolute
        raw_ref: Reference as found in the source (href, src, API field)

    Returns:
        Canonical absolute URL string

    Raises:
        InvalidUrlError: On unparsable input or a scheme other than
            http, https or data
    """
    if raw_ref is None or not str(raw_ref).strip():
        raise InvalidUrlError("Empty URL reference", reference=raw_ref)

    reference = str(raw_ref).strip()

    if reference[:5].lower() == "data:":
        return _canonicalize_data_url(reference)

    if base is not None:
        base = base.strip()
        base_scheme = urlsplit(base).scheme.lower()
        if base_scheme not in ("http", "https"):
            raise InvalidUrlError(f"Base URL must be http(s): {base!r}", reference=reference)
        try:
            absolute = urljoin(base, reference)
        except ValueError as e:
            raise InvalidUrlError(f"Cannot resolve {reference!r}: {e}", reference=reference) from e
    else:
        absolute = reference

    return _normalize_absolute(absolute, reference)


def _normalize_absolute(url: str, reference: str) -> str:
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError as e:
        raise InvalidUrlError(f"Unparsable URL {reference!r}: {e}", reference=reference) from e

    scheme = parts.scheme.lower()
    if not scheme:
        raise InvalidUrlError(f"Relative URL without a base: {reference!r}", reference=reference)
    if scheme not in ALLOWED_SCHEMES:
        raise InvalidUrlError(f"Disallowed URL scheme {scheme!r}", reference=reference)
    if scheme == "data":
        return _canonicalize_data_url(url)

    host = parts.hostname
    if not host:
        raise InvalidUrlError(f"URL has no host: {reference!r}", reference=reference)

    netloc = host
    if ":" in host:
        netloc = f"[{host}]"
    if port is not None and port != DEFAULT_PORTS.get(scheme):
        netloc = f"{netloc}:{port}"
    if parts.username is not None:
        userinfo = parts.username
        if parts.password is not None:
            userinfo = f"{userinfo}:{parts.password}"
        netloc = f"{userinfo}@{netloc}"

    path = _normalize_percent(parts.path, _PATH_SAFE)
    path = _remove_dot_segments(path)
    if len(path) > 1 and path.endswith("/"):
        path = path.rstrip("/") or "/"

    query = _normalize_percent(parts.query, _QUERY_SAFE)

    return urlunsplit((scheme, netloc, path, query, ""))


def _normalize_percent(component: str, safe: str) -> str:
    """Decode escaped unreserved characters, upper-case the rest, quote unsafe ones."""

    def _replace(match: "re.Match[str]") -> str:
        char = chr(int(match.group(1), 16))
        if char in _UNRESERVED:
            return char
        return "%" + match.group(1).upper()

    decoded = _PERCENT_ESCAPE.sub(_replace, component)
    return quote(decoded, safe=safe)


def _remove_dot_segments(path: str) -> str:
    """Remove ``.`` and ``..`` segments as in RFC 3986 section 5.2.4.

    Empty segments are kept, so ``/a//b`` and ``/a/b`` stay distinct.
    """
    if not path:
        return "/"

    output = []
    remaining = path
    while remaining:
        if remaining.startswith("../"):
            remaining = remaining[3:]
        elif remaining.startswith("./"):
            remaining = remaining[2:]
        elif remaining.startswith("/./"):
            remaining = remaining[2:]
        elif remaining == "/.":
            remaining = "/"
        elif remaining.startswith("/../"):
            remaining = remaining[3:]
            if output:
                output.pop()
        elif remaining == "/..":
            remaining = "/"
            if output:
                output.pop()
        elif remaining in (".", ".."):
            remaining = ""
        else:
            end = remaining.find("/", 1)
            if end == -1:
                end = len(remaining)
            output.append(remaining[:end])
            remaining = remaining[end:]

    normalized = "".join(output)
    if not normalized.startswith("/"):
        normalized = "/" + normalized
    return normalized


def _canonicalize_data_url(url: str) -> str:
    _, sep, _ = url.partition(",")
    if not sep:
        raise InvalidUrlError("Malformed data URL: missing ','", reference=url[:64])
    return "data:" + url[5:]


def parse_data_url(url: str) -> Tuple[Optional[str], bytes]:
    """Split a ``data:`` URL into its media type and decoded payload.

    Returns:
        Tuple of (media type or None, payload bytes)

    Raises:
        InvalidUrlError: If the URL is not a well-formed data URL
    """
    if url[:5].lower() != "data:":
        raise InvalidUrlError("Not a data URL", reference=url[:64])

    header, sep, data = url[5:].partition(",")
    if not sep:
        raise InvalidUrlError("Malformed data URL: missing ','", reference=url[:64])

    params = [p.strip() for p in header.split(";")]
    media_type = params[0].lower() if params and params[0] else None
    is_base64 = any(p.lower() == "base64" for p in params[1:])

    if is_base64:
        try:
            payload = base64.b64decode(unquote_to_bytes(data), validate=False)
        except (ValueError, TypeError) as e:
            raise InvalidUrlError(f"Invalid base64 payload in data URL: {e}", reference=url[:64]) from e
    else:
        payload = unquote_to_bytes(data)

    return media_type, payload


_EXTENSION_FORMATS = {
    ".svg": IconFormat.SVG,
    ".svgz": IconFormat.SVG,
    ".png": IconFormat.PNG,
    ".ico": IconFormat.ICO,
    ".jpg": IconFormat.JPEG,
    ".jpeg": IconFormat.JPEG,
    ".webp": IconFormat.WEBP,
}


def format_from_reference(reference: str) -> Optional[IconFormat]:
    """Guess an icon format from a data URL media type or a path extension."""
    if not reference:
        return None

    if reference[:5].lower() == "data:":
        media_type = reference[5:].split(",", 1)[0].split(";", 1)[0]
        return IconFormat.from_mime(media_type)

    try:
        path = urlsplit(reference).path
    except ValueError:
        return None
    _, extension = posixpath.splitext(path.lower())
    return _EXTENSION_FORMATS.get(extension)
