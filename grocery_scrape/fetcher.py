"""Page fetching.

One GET per call: no retries, no backoff. Callers decide whether another
URL is worth trying.
"""

import threading
from typing import Optional

import requests  # type: ignore[import-untyped]

from grocery_scrape.config import HEADERS, REQUEST_TIMEOUT
from grocery_scrape.logging_config import get_logger
from grocery_scrape.validation import URLValidationError, validate_url

__all__ = ["FetchError", "fetch_html", "create_session"]

logger = get_logger("fetcher")


class FetchError(Exception):
    """Raised when a page cannot be retrieved (HTTP error, timeout, network)."""

    def __init__(self, message: str, url: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


_session: Optional[requests.Session] = None
_session_lock = threading.Lock()


def create_session() -> requests.Session:
    """Create a requests Session carrying the browser-like headers.

    A shared session gives connection reuse across the detail fetches
    that compare mode issues in parallel.
    """
    session = requests.Session()
    session.headers.update(HEADERS)
    session.headers.setdefault("Accept-Encoding", "gzip, deflate")
    return session


def _get_session() -> requests.Session:
    global _session
    with _session_lock:
        if _session is None:
            _session = create_session()
        return _session


def fetch_html(
    url: str,
    timeout: float = REQUEST_TIMEOUT,
    session: Optional[requests.Session] = None,
) -> str:
    """Fetch a page and return its body.

    Args:
        url: Absolute http(s) URL
        timeout: Seconds before the request is abandoned
        session: Optional session (default: module-level shared session)

    Returns:
        Response text (may be empty)

    Raises:
        FetchError: Invalid URL, non-2xx status, timeout or connection failure
    """
    try:
        url = validate_url(url)
    except URLValidationError as e:
        raise FetchError(f"Invalid URL: {e}", url=url) from e

    sess = session or _get_session()
    logger.debug(f"GET {url} (timeout {timeout}s)")

    try:
        resp = sess.get(url, timeout=timeout, allow_redirects=True)
        resp.raise_for_status()
    except requests.exceptions.HTTPError as e:
        status_code = e.response.status_code if e.response is not None else None
        raise FetchError(f"HTTP {status_code} fetching {url}", url=url, status_code=status_code) from e
    except requests.exceptions.Timeout as e:
        raise FetchError(f"Timeout after {timeout}s fetching {url}", url=url) from e
    except requests.exceptions.RequestException as e:
        raise FetchError(f"Failed to fetch {url}: {e}", url=url) from e

    return str(resp.text)
