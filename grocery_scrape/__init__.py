"""UK supermarket price comparison pipeline (trolley.co.uk scraper)."""

__version__ = "0.1.0"

# Re-export main components for convenient imports
from grocery_scrape.basket import compute_basket
from grocery_scrape.cache import ResultCache
from grocery_scrape.config import BASE_URL, STORE_NAMES, STORES
from grocery_scrape.detail import parse_product_page
from grocery_scrape.fetcher import FetchError, fetch_html
from grocery_scrape.listing import listing_urls, parse_listing_page
from grocery_scrape.merge import merge_store_prices, sort_comparison_rows
from grocery_scrape.models import (
    CompareResult,
    ComparisonRow,
    ListingResult,
    PriceHistory,
    ProductDetail,
    ProductStub,
    StorePriceEntry,
)
from grocery_scrape.pipeline import PricePipeline
from grocery_scrape.prices import (
    compute_per100g,
    extract_item_price,
    extract_price_per_unit,
    extract_weight,
)
from grocery_scrape.selector import (
    FirstCandidateSelector,
    LLMCandidateSelector,
    get_default_selector,
    select_candidates,
)
from grocery_scrape.validation import InvalidInputError

__all__ = [
    # Version
    "__version__",
    # Config
    "BASE_URL",
    "STORES",
    "STORE_NAMES",
    # Models
    "ProductStub",
    "StorePriceEntry",
    "ComparisonRow",
    "PriceHistory",
    "ProductDetail",
    "ListingResult",
    "CompareResult",
    # Errors
    "FetchError",
    "InvalidInputError",
    # Core functions
    "fetch_html",
    "extract_item_price",
    "extract_price_per_unit",
    "extract_weight",
    "compute_per100g",
    "listing_urls",
    "parse_listing_page",
    "parse_product_page",
    "merge_store_prices",
    "sort_comparison_rows",
    "compute_basket",
    "select_candidates",
    "get_default_selector",
    "FirstCandidateSelector",
    "LLMCandidateSelector",
    "ResultCache",
    "PricePipeline",
]
