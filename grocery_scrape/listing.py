"""Listing page parsing: explore/search results into product stubs."""

from typing import List, Optional, Set
from urllib.parse import quote_plus

from bs4 import BeautifulSoup, Tag

from grocery_scrape.config import LISTING_URL_TEMPLATES
from grocery_scrape.html_utils import (
    absolutize_url,
    detect_store,
    first_successful,
    flatten_text,
    parse_product_href,
    product_image_url,
    slugify,
)
from grocery_scrape.models import ProductStub
from grocery_scrape.prices import (
    extract_item_price,
    extract_price_per_unit,
    extract_weight,
    strip_weights,
)

__all__ = ["listing_urls", "parse_listing_page", "MIN_NAME_LENGTH"]

MIN_NAME_LENGTH = 3


def listing_urls(query: str) -> List[str]:
    """Candidate listing URLs for a query, in the order they should be tried.

    Explore variants need a non-empty slug; the search page always applies.
    """
    slug = slugify(query)
    urls: List[str] = []
    for template in LISTING_URL_TEMPLATES:
        if "{slug}" in template and not slug:
            continue
        urls.append(template.format(slug=slug, query=quote_plus(query)))
    return urls


# Name strategies, tried in order


def _name_from_title(anchor: Tag, text: str) -> Optional[str]:
    title = anchor.get("title")
    if isinstance(title, str) and title.strip():
        return title.strip()
    return None


def _name_from_inner_heading(anchor: Tag, text: str) -> Optional[str]:
    inner = anchor.find(["strong", "b", "h3", "h4", "p"])
    if inner is None:
        return None
    inner_text = flatten_text(inner)
    return inner_text if len(inner_text) > MIN_NAME_LENGTH else None


def _name_from_card_text(anchor: Tag, text: str) -> Optional[str]:
    return strip_weights(text.split("£")[0]) or None


NAME_STRATEGIES = (_name_from_title, _name_from_inner_heading, _name_from_card_text)


def _parse_card(anchor: Tag, slug: str, code: str, href: str) -> Optional[ProductStub]:
    text = flatten_text(anchor)
    name = first_successful(NAME_STRATEGIES, anchor, text) or ""
    if len(name) < MIN_NAME_LENGTH:
        return None

    unit_price = extract_price_per_unit(text)
    product_url = absolutize_url(href) or ""

    return ProductStub(
        name=name,
        code=code,
        slug=slug,
        store=detect_store(text),
        price=extract_item_price(text),
        weight=extract_weight(text),
        price_per_unit=unit_price.amount if unit_price else None,
        unit=unit_price.unit if unit_price else None,
        image_url=product_image_url(anchor, code),
        product_url=product_url,
    )


def parse_listing_page(html: str, max_results: int) -> List[ProductStub]:
    """Parse a multi-product page into at most ``max_results`` stubs.

    Every link to a product page is a candidate; the first link seen for a
    code claims it, so repeated links (image + title) yield one stub.
    Cards without a usable name are dropped. An empty list is a normal
    outcome, not an error.
    """
    soup = BeautifulSoup(html, "html.parser")
    products: List[ProductStub] = []
    seen: Set[str] = set()

    for anchor in soup.select('a[href*="/product/"]'):
        if len(products) >= max_results:
            break

        href = anchor.get("href")
        if not isinstance(href, str):
            continue
        parsed = parse_product_href(href)
        if parsed is None:
            continue
        slug, code = parsed
        if code in seen:
            continue
        seen.add(code)

        stub = _parse_card(anchor, slug, code, href)
        if stub is not None:
            products.append(stub)

    return products
