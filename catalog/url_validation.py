"""URL validation for image URLs passed to the image proxy."""

import re
from typing import Iterable, Optional
from urllib.parse import urlparse

__all__ = [
    "validate_image_url",
    "sanitize_url",
    "is_allowed_host",
    "URLValidationError",
    "ALLOWED_IMAGE_HOSTS",
]


class URLValidationError(Exception):
    """Raised when URL validation fails."""
    pass


# Hosts the catalog serves images from. A host matches an entry exactly or
# as a subdomain of it.
ALLOWED_IMAGE_HOSTS = frozenset({
    "printify.com",
    "printify-upload.s3.amazonaws.com",
})

DANGEROUS_SCHEMES = {"javascript", "data", "vbscript", "file"}

SUSPICIOUS_PATTERNS = [
    r"\.\.\/",       # Path traversal
    r"%2e%2e",       # Encoded path traversal
    r"<script",
    r"javascript:",
]


def sanitize_url(url: str) -> str:
    """Strip whitespace, control characters and null bytes."""
    if not url:
        return ""
    url = url.strip()
    url = re.sub(r"[\x00-\x1f\x7f-\x9f]", "", url)
    return url.replace("%00", "")


def is_allowed_host(host: str, allowed_hosts: Iterable[str] = ALLOWED_IMAGE_HOSTS) -> bool:
    host = host.lower().rstrip(".")
    return any(host == allowed or host.endswith("." + allowed) for allowed in allowed_hosts)


def validate_image_url(url: str, allowed_hosts: Optional[Iterable[str]] = None) -> str:
    """Validate an image URL against the host allow-list.

    Args:
        url: URL to validate
        allowed_hosts: Allowed hosts (default: ALLOWED_IMAGE_HOSTS)

    Returns:
        Sanitized URL

    Raises:
        URLValidationError: If the URL is malformed, uses an unsafe scheme,
            or points at a host that is not allowed
    """
    url = sanitize_url(url)
    if not url:
        raise URLValidationError("URL is empty")

    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise URLValidationError(f"Failed to parse URL: {e}") from e

    scheme = parsed.scheme.lower()
    if scheme in DANGEROUS_SCHEMES or scheme not in ("http", "https"):
        raise URLValidationError(f"Invalid URL scheme: {scheme or '(none)'}")

    host = (parsed.hostname or "").lower()
    if not host:
        raise URLValidationError("URL has no host")
    if parsed.username or parsed.password:
        raise URLValidationError("URL must not carry credentials")

    hosts = ALLOWED_IMAGE_HOSTS if allowed_hosts is None else allowed_hosts
    if not is_allowed_host(host, hosts):
        raise URLValidationError(f"Host '{host}' is not an allowed image host")

    url_lower = url.lower()
    for pattern in SUSPICIOUS_PATTERNS:
        if re.search(pattern, url_lower):
            raise URLValidationError(f"URL contains suspicious pattern: {pattern}")

    return url
