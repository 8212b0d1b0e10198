"""Configuration and constants for the price scraper."""

import os
from dataclasses import dataclass
from typing import Optional, Tuple

__all__ = [
    "BASE_URL",
    "SOURCE_NAME",
    "HEADERS",
    "REQUEST_TIMEOUT",
    "DETAIL_TIMEOUT",
    "LISTING_URL_TEMPLATES",
    "MIN_PAGE_LENGTH",
    "DEFAULT_MAX_RESULTS",
    "MAX_RESULTS_LIMIT",
    "MAX_QUERY_LENGTH",
    "COMPARE_CANDIDATE_POOL",
    "MAX_SELECTED_CANDIDATES",
    "MAX_ALTERNATIVES",
    "MAX_DETAIL_WORKERS",
    "WHERE_TO_BUY_MARKER",
    "SECTION_END_MARKERS",
    "SECTION_FALLBACK_CHARS",
    "UNAVAILABLE_WINDOW",
    "PER100G_MIN_AMOUNT",
    "PER100G_MAX_AMOUNT",
    "PINT_ML",
    "SELECTOR_MODEL",
    "SELECTOR_TIMEOUT",
    "StoreConfig",
    "STORES",
    "STORE_NAMES",
    "get_store_config",
]

BASE_URL = "https://www.trolley.co.uk"
SOURCE_NAME = "trolley.co.uk"

# Browser-like headers; the comparison site blocks obvious bots
HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-GB,en;q=0.9",
}

# Request timeouts (seconds)
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "10"))
DETAIL_TIMEOUT = float(os.getenv("DETAIL_TIMEOUT", "8"))

# Listing URL variants, tried in order. The site mixes singular, plural
# and "-es" category slugs, so the plain search page comes last.
LISTING_URL_TEMPLATES: Tuple[str, ...] = (
    BASE_URL + "/explore/{slug}s",
    BASE_URL + "/explore/{slug}",
    BASE_URL + "/explore/{slug}es",
    BASE_URL + "/search/?q={query}",
)

# Bodies shorter than this are error stubs, not listings
MIN_PAGE_LENGTH = 200

# Result limits
DEFAULT_MAX_RESULTS = 60
MAX_RESULTS_LIMIT = 500
MAX_QUERY_LENGTH = 120
COMPARE_CANDIDATE_POOL = 30  # Listing stubs offered to the selector
MAX_SELECTED_CANDIDATES = 4  # Detail pages fetched per compare request
MAX_ALTERNATIVES = 8
MAX_DETAIL_WORKERS = int(os.getenv("MAX_DETAIL_WORKERS", "4"))

# Detail page section markers
WHERE_TO_BUY_MARKER = "Where To Buy"
SECTION_END_MARKERS: Tuple[str, ...] = ("Supermarket Alternatives", "Reviews")
SECTION_FALLBACK_CHARS = 2000
UNAVAILABLE_WINDOW = 60  # "Unavailable" must appear this close to the store name

# Per-100g sanity window (grams or millilitres)
PER100G_MIN_AMOUNT = 5
PER100G_MAX_AMOUNT = 50000
PINT_ML = 568

# LLM candidate selection (only used when OPENAI_API_KEY is set)
SELECTOR_MODEL = os.getenv("SELECTOR_MODEL", "gpt-5-nano")
# Seconds per selector call; no retries
SELECTOR_TIMEOUT = float(os.getenv("SELECTOR_TIMEOUT", "5"))


# =============================================================================
# Store Registry
# =============================================================================
# Each store may carry a loyalty scheme. The site prints loyalty prices in
# two orders ("Clubcard Price £2.00" and "£2.00 Clubcard Price"), so each
# scheme gets a label-first and a price-first pattern.


@dataclass(frozen=True)
class StoreConfig:
    """A known retailer and its loyalty-price patterns."""

    name: str
    loyalty_scheme: Optional[str] = None
    loyalty_label_first: Optional[str] = None
    loyalty_price_first: Optional[str] = None

    @property
    def has_loyalty(self) -> bool:
        return self.loyalty_scheme is not None


STORES: Tuple[StoreConfig, ...] = (
    StoreConfig(
        "Tesco",
        loyalty_scheme="Clubcard",
        loyalty_label_first=r"CLUBCARD\s*(?:PRICE)?\s*£(\d+(?:\.\d+)?)",
        loyalty_price_first=r"£(\d+(?:\.\d+)?)\s+Clubcard",
    ),
    StoreConfig(
        "Sainsbury's",
        loyalty_scheme="Nectar",
        loyalty_label_first=r"NECTAR\s*(?:PRICE)?\s*£(\d+(?:\.\d+)?)",
        loyalty_price_first=r"£(\d+(?:\.\d+)?)\s+Nectar",
    ),
    StoreConfig("Aldi"),
    StoreConfig("Asda"),
    StoreConfig("Morrisons"),
    StoreConfig("Waitrose"),
    StoreConfig("Ocado"),
    StoreConfig("Co-op"),
    StoreConfig("Iceland"),
    StoreConfig("M&S"),
    StoreConfig("Amazon"),
)

STORE_NAMES: Tuple[str, ...] = tuple(store.name for store in STORES)


def get_store_config(name: str) -> Optional[StoreConfig]:
    """Look up a store by name (case-insensitive)."""
    lowered = name.lower()
    for store in STORES:
        if store.name.lower() == lowered:
            return store
    return None
