"""Input and URL validation.

User input (queries, product codes, slugs) ends up in outbound URLs, so it
is checked here before any request is made.
"""

import re
from typing import Any, FrozenSet, Optional
from urllib.parse import urlparse

from grocery_scrape.config import DEFAULT_MAX_RESULTS, MAX_QUERY_LENGTH, MAX_RESULTS_LIMIT

__all__ = [
    "InvalidInputError",
    "URLValidationError",
    "ALLOWED_DOMAINS",
    "validate_query",
    "validate_product_code",
    "validate_slug",
    "clamp_max_results",
    "sanitize_url",
    "validate_url",
]


class InvalidInputError(ValueError):
    """Raised for a missing or malformed query, product code or slug."""
    pass


class URLValidationError(Exception):
    """Raised when URL validation fails."""
    pass


ALLOWED_DOMAINS: FrozenSet[str] = frozenset({
    "www.trolley.co.uk",
    "trolley.co.uk",
})

PRODUCT_CODE_PATTERN = re.compile(r"^[A-Z0-9]{3,}$")
SLUG_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,200}$")

DANGEROUS_SCHEMES = {"javascript", "data", "vbscript", "file"}


def validate_query(query: Optional[str]) -> str:
    """Return the stripped query, or raise if it is empty or too long."""
    query = (query or "").strip()
    if not query or len(query) > MAX_QUERY_LENGTH:
        raise InvalidInputError("Invalid query")
    return query


def validate_product_code(code: Optional[str]) -> str:
    """Product codes are upper-case alphanumerics, at least 3 characters."""
    code = (code or "").strip()
    if not PRODUCT_CODE_PATTERN.match(code):
        raise InvalidInputError("Invalid product code")
    return code


def validate_slug(slug: Optional[str]) -> str:
    """Slugs are optional; when given they must be a single safe path segment."""
    slug = (slug or "").strip()
    if slug and not SLUG_PATTERN.match(slug):
        raise InvalidInputError("Invalid slug")
    return slug


def clamp_max_results(value: Any, default: int = DEFAULT_MAX_RESULTS) -> int:
    """Parse a max-results value and clamp it to [1, MAX_RESULTS_LIMIT].

    Unparseable values fall back to the default.
    """
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        parsed = default
    return max(1, min(parsed, MAX_RESULTS_LIMIT))


def sanitize_url(url: str) -> str:
    """Strip whitespace and control characters from a URL."""
    if not url:
        return ""
    url = url.strip()
    url = re.sub(r"[\x00-\x1f\x7f-\x9f]", "", url)
    return url.replace("%00", "")


def validate_url(url: str, allowed_domains: Optional[FrozenSet[str]] = None) -> str:
    """Validate a URL before fetching it.

    Args:
        url: URL to validate
        allowed_domains: Hosts we are willing to contact (default: ALLOWED_DOMAINS)

    Returns:
        Sanitized URL

    Raises:
        URLValidationError: Empty, non-http(s), or untrusted host
    """
    if not url:
        raise URLValidationError("URL is empty")

    url = sanitize_url(url)
    parsed = urlparse(url)

    scheme = parsed.scheme.lower()
    if scheme in DANGEROUS_SCHEMES:
        raise URLValidationError(f"Dangerous URL scheme: {scheme}")
    if scheme not in ("http", "https"):
        raise URLValidationError(f"Invalid URL scheme: {scheme}")

    host = (parsed.hostname or "").lower()
    if not host:
        raise URLValidationError("URL has no domain")

    domains = allowed_domains if allowed_domains is not None else ALLOWED_DOMAINS
    if domains and host not in domains:
        raise URLValidationError(f"URL domain '{host}' not in allowed domains")

    if re.search(r"\.\./|%2e%2e", url.lower()):
        raise URLValidationError("URL contains path traversal")

    return url
