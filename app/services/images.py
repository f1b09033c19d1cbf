"""Image reference validation for product writes.

A product's images are URLs, root-relative paths to uploaded files, or
inline base64 data URIs. The whole list is checked before anything is
written; one bad entry rejects the write.
"""
import base64
import binascii
import re
from posixpath import splitext
from typing import Any, Iterable, List, Optional
from urllib.parse import urlparse

from app.core.config import settings
from app.core.errors import ImageIssue, InvalidImageError

_DATA_URI = re.compile(r'^data:image/(?P<fmt>[a-z0-9.+-]+);base64,(?P<payload>.*)$', re.IGNORECASE | re.DOTALL)
_PREVIEW_LENGTH = 80


def _preview(value: Any) -> str:
    text = value if isinstance(value, str) else repr(value)
    return text if len(text) <= _PREVIEW_LENGTH else text[:_PREVIEW_LENGTH] + "..."


def _extension_allowed(path: str, allowed: Iterable[str]) -> bool:
    ext = splitext(path)[1].lstrip(".").lower()
    return not ext or ext in allowed


def _check_data_uri(value: str, allowed: Iterable[str], max_bytes: int) -> Optional[str]:
    match = _DATA_URI.match(value)
    if not match:
        return "malformed data URI"
    fmt = match.group("fmt").lower()
    fmt = {"svg+xml": "svg"}.get(fmt, fmt)
    if fmt not in allowed:
        return f"unsupported image format '{fmt}'"
    try:
        decoded = base64.b64decode(match.group("payload"), validate=True)
    except (binascii.Error, ValueError):
        return "invalid base64 payload"
    if not decoded:
        return "empty image payload"
    if len(decoded) > max_bytes:
        return f"image exceeds {max_bytes} bytes"
    return None


def _check_reference(value: str, allowed: Iterable[str]) -> Optional[str]:
    if value.startswith("/"):
        if value.startswith("//"):
            return "protocol-relative URLs are not allowed"
        path = urlparse(value).path
    else:
        parsed = urlparse(value)
        if parsed.scheme.lower() not in ("http", "https"):
            return "must be an http(s) URL, a /path or a data URI"
        if not parsed.netloc:
            return "URL has no host"
        path = parsed.path
    if not _extension_allowed(path, allowed):
        return f"unsupported image extension '{splitext(path)[1]}'"
    return None


def handle_images(
    images: Optional[List[Any]],
    allowed_formats: Optional[Iterable[str]] = None,
    max_bytes: Optional[int] = None,
) -> List[str]:
    """Validate and normalize a product's image list.

    Entries may be strings or mappings with a ``url`` key; both come back as
    trimmed strings in their original order.

    Args:
        images: Submitted image list (None means no images)
        allowed_formats: Accepted extensions/formats (default from settings)
        max_bytes: Maximum decoded size of a data URI (default from settings)

    Returns:
        The normalized list of image references

    Raises:
        InvalidImageError: Listing every offending entry
    """
    if images is None:
        return []
    if not isinstance(images, (list, tuple)):
        raise InvalidImageError(
            [ImageIssue(index=None, value=_preview(images), reason="images must be a list")]
        )

    allowed = {fmt.lower().lstrip(".") for fmt in (allowed_formats or settings.image_allowed_formats)}
    limit = max_bytes if max_bytes is not None else settings.image_max_bytes

    normalized: List[str] = []
    issues: List[ImageIssue] = []
    for index, entry in enumerate(images):
        value = entry.get("url") if isinstance(entry, dict) else entry
        if not isinstance(value, str):
            issues.append(ImageIssue(index, _preview(entry), "image must be a string or {url}"))
            continue
        value = value.strip()
        if not value:
            issues.append(ImageIssue(index, value, "image reference is empty"))
            continue

        if value[:5].lower() == "data:":
            reason = _check_data_uri(value, allowed, limit)
        else:
            reason = _check_reference(value, allowed)

        if reason:
            issues.append(ImageIssue(index, _preview(value), reason))
        else:
            normalized.append(value)

    if issues:
        raise InvalidImageError(issues)
    return normalized
