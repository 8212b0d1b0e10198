"""Product detail page parsing.

A detail page lists the product at every store that stocks it ("Where To
Buy"), including Clubcard/Nectar prices and multi-buy offers, plus links to
similar products at other stores ("Supermarket Alternatives").

Nothing here raises on missing data: an absent section gives an empty list.
"""

import re
from typing import List, Optional, Set, Tuple

from bs4 import BeautifulSoup, Tag

from grocery_scrape.config import (
    MAX_ALTERNATIVES,
    SECTION_END_MARKERS,
    SECTION_FALLBACK_CHARS,
    SOURCE_NAME,
    STORES,
    UNAVAILABLE_WINDOW,
    WHERE_TO_BUY_MARKER,
    StoreConfig,
    get_store_config,
)
from grocery_scrape.html_utils import (
    absolutize_url,
    detect_store,
    first_successful,
    flatten_text,
    page_text,
    parse_product_href,
    product_image_url,
)
from grocery_scrape.logging_config import get_logger
from grocery_scrape.models import PriceHistory, ProductDetail, ProductStub, StorePriceEntry
from grocery_scrape.prices import (
    UNIT_QUALIFIER_RE,
    extract_item_price,
    extract_price_per_unit,
    extract_weight,
)

__all__ = [
    "parse_product_page",
    "where_to_buy_section",
    "split_store_segments",
    "parse_store_segment",
    "parse_alternatives",
    "parse_price_history",
]

logger = get_logger("detail")

STORE_SPLIT_RE = re.compile(
    "(" + "|".join(re.escape(store.name) for store in STORES) + ")",
    re.IGNORECASE,
)
VISIT_RE = re.compile(r"VISIT", re.IGNORECASE)
PROMO_RE = re.compile(
    r"(\d+\s+FOR\s+£\d+(?:\.\d+)?|BUY\s+\d+.+?SAVE|ANY\s+\d+\s+FOR\s+£\d+(?:\.\d+)?)",
    re.IGNORECASE,
)
USUAL_PRICE_RE = re.compile(r"Usually\s+£(\d+(?:\.\d+)?)", re.IGNORECASE)
HIGHEST_PRICE_RE = re.compile(r"Highest\s+£(\d+(?:\.\d+)?)", re.IGNORECASE)
TITLE_SUFFIX_RE = re.compile(r"\s*\|\s*|\s+[-–]\s+")
STORE_LINK_SELECTOR = 'a[href*="redirect.trolley.co.uk"], a[href*="open_store"]'

MIN_NAME_LENGTH = 3


# =============================================================================
# Name
# =============================================================================


def _name_from_heading(soup: BeautifulSoup) -> Optional[str]:
    h1 = soup.find("h1")
    if h1 is None:
        return None
    name = flatten_text(h1)
    return name if len(name) >= MIN_NAME_LENGTH else None


def _name_from_page_title(soup: BeautifulSoup) -> Optional[str]:
    """Page title minus the "Buy " prefix and "| Trolley.co.uk" branding."""
    title = soup.find("title")
    if title is None:
        return None
    raw = title.get_text().strip()
    name = TITLE_SUFFIX_RE.split(raw, maxsplit=1)[0]
    name = re.sub(r"^Buy\s+", "", name, flags=re.IGNORECASE).strip()
    return name or None


# =============================================================================
# Where To Buy
# =============================================================================


def where_to_buy_section(text: str) -> str:
    """Slice the "Where To Buy" block out of the page text.

    The block runs to the next known section heading, or a fixed number of
    characters when no later heading exists.
    """
    start = text.find(WHERE_TO_BUY_MARKER)
    if start < 0:
        return ""
    search_from = start + len(WHERE_TO_BUY_MARKER)
    ends = [idx for idx in (text.find(m, search_from) for m in SECTION_END_MARKERS) if idx >= 0]
    end = min(ends) if ends else start + SECTION_FALLBACK_CHARS
    return text[start:end]


def split_store_segments(section: str) -> List[Tuple[StoreConfig, str]]:
    """Split section text on store names into (store, text-until-next-store) pairs."""
    parts = STORE_SPLIT_RE.split(section.replace("’", "'"))
    segments: List[Tuple[StoreConfig, str]] = []
    # parts alternates: [before, store, segment, store, segment, ...]
    for i in range(1, len(parts) - 1, 2):
        store = get_store_config(parts[i])
        if store is not None:
            segments.append((store, parts[i + 1]))
    return segments


def _extract_loyalty_price(store: StoreConfig, text: str, price: float) -> Optional[float]:
    """Loyalty price in either label order, accepted only when below ``price``.

    A label without a real discount (same or higher amount) is ignored, as
    is an amount qualified by "per ..." or "each" (the loyalty unit price).
    """
    for pattern in (store.loyalty_label_first, store.loyalty_price_first):
        if not pattern:
            continue
        for match in re.finditer(pattern, text, re.IGNORECASE):
            if UNIT_QUALIFIER_RE.match(text, match.end(1)):
                continue
            value = float(match.group(1))
            if value < price:
                return value
    return None


def parse_store_segment(store: StoreConfig, segment: str) -> Optional[StorePriceEntry]:
    """Parse one store's slice of the "Where To Buy" text.

    Returns None for unavailable stores and segments without an item price.
    """
    if "unavailable" in segment[:UNAVAILABLE_WINDOW].lower():
        return None

    text = VISIT_RE.split(segment, maxsplit=1)[0]
    price = extract_item_price(text)
    if not price:
        return None

    unit_price = extract_price_per_unit(text)
    loyalty_price = _extract_loyalty_price(store, text, price) if store.has_loyalty else None
    promo = PROMO_RE.search(text)

    return StorePriceEntry(
        store=store.name,
        price=price,
        loyalty_price=loyalty_price,
        loyalty_scheme=store.loyalty_scheme if loyalty_price is not None else None,
        price_per_unit=unit_price.amount if unit_price else None,
        unit=unit_price.unit if unit_price else None,
        promotion=promo.group(1).strip() if promo else None,
    )


def _dedupe_by_store(entries: List[StorePriceEntry]) -> List[StorePriceEntry]:
    seen: Set[str] = set()
    unique: List[StorePriceEntry] = []
    for entry in entries:
        if entry.store not in seen:
            seen.add(entry.store)
            unique.append(entry)
    return unique


def _store_prices_from_section(soup: BeautifulSoup, text: str) -> List[StorePriceEntry]:
    section = where_to_buy_section(text)
    if not section:
        return []
    entries = [parse_store_segment(store, segment) for store, segment in split_store_segments(section)]
    return [e for e in entries if e is not None]


def _store_prices_from_store_links(soup: BeautifulSoup, text: str) -> List[StorePriceEntry]:
    """Fallback: read each outbound "visit store" link's surrounding block."""
    entries: List[StorePriceEntry] = []
    for link in soup.select(STORE_LINK_SELECTOR):
        container = link.find_parent(["li", "div", "section", "article"]) or link.parent
        if container is None:
            continue
        segments = split_store_segments(flatten_text(container))
        if not segments:
            continue
        store, segment = segments[0]
        entry = parse_store_segment(store, segment)
        if entry is not None:
            entries.append(entry)
    return entries


STORE_PRICE_STRATEGIES = (_store_prices_from_section, _store_prices_from_store_links)


# =============================================================================
# Alternatives and price history
# =============================================================================


def parse_alternatives(soup: BeautifulSoup, code: str) -> List[ProductStub]:
    """Linked products at a recognizable store with a parseable price.

    The product itself is skipped, each code appears once, and the list is
    capped at MAX_ALTERNATIVES.
    """
    alternatives: List[ProductStub] = []
    seen: Set[str] = {code}

    for anchor in soup.select('a[href*="/product/"]'):
        if len(alternatives) >= MAX_ALTERNATIVES:
            break

        href = anchor.get("href")
        parsed = parse_product_href(href if isinstance(href, str) else None)
        if parsed is None:
            continue
        slug, alt_code = parsed
        if alt_code in seen:
            continue

        text = flatten_text(anchor)
        store = detect_store(text, ignore_case=False)
        if not store:
            continue
        price = extract_item_price(text)
        if not price:
            continue
        seen.add(alt_code)

        title = anchor.get("title")
        name = title.strip() if isinstance(title, str) and title.strip() else text.split("£")[0].strip()
        unit_price = extract_price_per_unit(text)

        alternatives.append(
            ProductStub(
                name=name,
                code=alt_code,
                slug=slug,
                store=store,
                price=price,
                price_per_unit=unit_price.amount if unit_price else None,
                unit=unit_price.unit if unit_price else None,
                image_url=product_image_url(anchor, alt_code),
                product_url=absolutize_url(href) or "",
            )
        )

    return alternatives


def parse_price_history(text: str) -> PriceHistory:
    usual = USUAL_PRICE_RE.search(text)
    highest = HIGHEST_PRICE_RE.search(text)
    return PriceHistory(
        usual=float(usual.group(1)) if usual else None,
        highest=float(highest.group(1)) if highest else None,
    )


# =============================================================================
# Page
# =============================================================================


def parse_product_page(html: str, code: str) -> ProductDetail:
    """Parse a product detail page into a ProductDetail."""
    soup = BeautifulSoup(html, "html.parser")
    text = page_text(soup)

    name = first_successful((_name_from_heading, _name_from_page_title), soup) or ""

    img = soup.select_one('img[src*="/img/product/"]')
    src = img.get("src") if img is not None else None
    image_url = absolutize_url(src) if isinstance(src, str) else None

    store_prices = first_successful(STORE_PRICE_STRATEGIES, soup, text) or []
    store_prices = _dedupe_by_store(store_prices)

    detail = ProductDetail(
        code=code,
        name=name,
        weight=extract_weight(text),
        image_url=image_url,
        store_prices=store_prices,
        alternatives=parse_alternatives(soup, code),
        price_history=parse_price_history(text),
        source=SOURCE_NAME,
    )
    logger.debug(
        f"Parsed {code}: {len(detail.store_prices)} store prices, "
        f"{len(detail.alternatives)} alternatives"
    )
    return detail
