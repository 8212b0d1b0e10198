"""HTML parsing and extraction utilities shared by the listing and detail parsers."""

import re
from typing import Callable, Optional, Sequence, Tuple, TypeVar

from bs4 import BeautifulSoup, Comment, Tag

from grocery_scrape.config import BASE_URL, STORE_NAMES

__all__ = [
    "PRODUCT_HREF_RE",
    "parse_product_href",
    "is_product_url",
    "flatten_text",
    "page_text",
    "absolutize_url",
    "product_image_url",
    "detect_store",
    "first_successful",
    "slugify",
]

T = TypeVar("T")

# Product pages look like /product/<slug>/<CODE>
PRODUCT_HREF_RE = re.compile(r"/product/([^/?#]+)/([A-Z0-9]{3,})")

NON_TEXT_TAGS = {"script", "style", "noscript", "template"}


def parse_product_href(href: Optional[str]) -> Optional[Tuple[str, str]]:
    """Return (slug, code) for a product-page href, or None."""
    if not href:
        return None
    match = PRODUCT_HREF_RE.search(href)
    if not match:
        return None
    return match.group(1), match.group(2)


def is_product_url(href: str) -> bool:
    """Check if a URL looks like a product detail page."""
    return parse_product_href(href) is not None


def flatten_text(node: Tag) -> str:
    """Visible text of an element with whitespace collapsed to single spaces."""
    return re.sub(r"\s+", " ", node.get_text(" ")).strip()


def page_text(soup: BeautifulSoup) -> str:
    """Whole-page text, excluding script/style content and comments."""
    parts = []
    for string in soup.find_all(string=True):
        if isinstance(string, Comment):
            continue
        if string.parent is not None and string.parent.name in NON_TEXT_TAGS:
            continue
        parts.append(str(string))
    return re.sub(r"\s+", " ", " ".join(parts)).strip()


def absolutize_url(url: Optional[str]) -> Optional[str]:
    """Turn a site-relative or protocol-relative URL into an absolute one."""
    if not url:
        return None
    url = url.strip()
    if url.startswith("//"):
        return f"https:{url}"
    if url.startswith("/"):
        return f"{BASE_URL}{url}"
    return url


def product_image_url(anchor: Tag, code: str) -> str:
    """Image inside a product card, else the site's canonical image path."""
    img = anchor.find("img")
    src = img.get("src") if img is not None else None
    if src and isinstance(src, str):
        return absolutize_url(src) or ""
    return f"{BASE_URL}/img/product/{code}"


def detect_store(text: str, stores: Sequence[str] = STORE_NAMES, ignore_case: bool = True) -> str:
    """First known store name found anywhere in ``text``; empty string if none."""
    haystack = text.lower() if ignore_case else text
    for store in stores:
        needle = store.lower() if ignore_case else store
        if needle in haystack:
            return store
    return ""


def first_successful(strategies: Sequence[Callable[..., Optional[T]]], *args) -> Optional[T]:
    """Run extraction strategies in order and return the first non-empty result."""
    for strategy in strategies:
        result = strategy(*args)
        if result:
            return result
    return None


def slugify(query: str) -> str:
    """Lower-case, hyphen-separated slug as used in the site's explore URLs."""
    return re.sub(r"[^a-z0-9]+", "-", query.lower()).strip("-")
