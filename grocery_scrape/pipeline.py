"""Request orchestration: listing, compare and detail flows.

- search: try each listing URL variant in turn; the first one that yields
  stubs wins. Failed or empty variants are logged and skipped.
- compare: listing -> candidate selection -> parallel detail fetches ->
  merge. Failed detail fetches are dropped; if all fail the result is
  empty, not an error.
- product_detail: one code-addressed page. A fetch failure here is raised,
  since there is no other URL to try.

Results that depend on a failed fetch are never cached; a query whose pages
were fetched and held no products is.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Tuple

from grocery_scrape.cache import ResultCache, compare_key, product_key, search_key
from grocery_scrape.config import (
    BASE_URL,
    COMPARE_CANDIDATE_POOL,
    DEFAULT_MAX_RESULTS,
    DETAIL_TIMEOUT,
    MAX_DETAIL_WORKERS,
    MIN_PAGE_LENGTH,
    REQUEST_TIMEOUT,
    SOURCE_NAME,
)
from grocery_scrape.detail import parse_product_page
from grocery_scrape.fetcher import FetchError, fetch_html
from grocery_scrape.listing import listing_urls, parse_listing_page
from grocery_scrape.logging_config import get_logger, log_scrape_event
from grocery_scrape.merge import DetailResult, merge_store_prices
from grocery_scrape.models import CompareResult, ListingResult, ProductDetail, ProductStub
from grocery_scrape.selector import CandidateSelector, FirstCandidateSelector, select_candidates
from grocery_scrape.validation import (
    clamp_max_results,
    validate_product_code,
    validate_query,
    validate_slug,
)

__all__ = ["PricePipeline", "FetchFunc", "detail_url"]

logger = get_logger("pipeline")

FetchFunc = Callable[[str, float], str]


def detail_url(code: str, slug: str = "") -> str:
    """Product page URL; the site redirects a placeholder slug to the real one."""
    return f"{BASE_URL}/product/{slug or '_'}/{code}"


class PricePipeline:
    """Scrape-parse-merge pipeline behind the search API.

    Args:
        fetch: Callable(url, timeout) -> html, raising FetchError on failure
        selector: Candidate selector for compare mode (default: first stub)
        cache: Optional result cache shared across requests
        max_workers: Upper bound on concurrent detail fetches
    """

    def __init__(
        self,
        fetch: FetchFunc = fetch_html,
        selector: Optional[CandidateSelector] = None,
        cache: Optional[ResultCache] = None,
        max_workers: int = MAX_DETAIL_WORKERS,
    ):
        self.fetch = fetch
        self.selector = selector if selector is not None else FirstCandidateSelector()
        self.cache = cache
        self.max_workers = max(1, max_workers)

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def _find_listing(self, query: str, max_results: int, mode: str) -> Tuple[List[ProductStub], bool]:
        """Try listing URL variants in order; stop at the first with results.

        Returns the stubs and whether any variant was fetched at all. An empty
        result with nothing fetched is an upstream failure, not "no results".
        """
        fetched = False
        for url in listing_urls(query):
            logger.info(f"[{mode}] trying {url}")
            try:
                html = self.fetch(url, REQUEST_TIMEOUT)
            except FetchError as e:
                logger.info(f"[{mode}] {url} failed: {e}")
                log_scrape_event("listing_variant_failed", {
                    "mode": mode,
                    "url": url,
                    "error": str(e),
                    "status_code": e.status_code,
                })
                continue

            if not html or len(html) < MIN_PAGE_LENGTH:
                continue
            fetched = True

            products = parse_listing_page(html, max_results)
            if products:
                log_scrape_event("listing_found", {
                    "mode": mode,
                    "query": query,
                    "url": url,
                    "count": len(products),
                })
                return products, True

        logger.info(f"[{mode}] no products found for {query!r}")
        return [], fetched

    def search(self, query: str, max_results: int = DEFAULT_MAX_RESULTS) -> ListingResult:
        """Listing mode: product stubs for a free-text query."""
        query = validate_query(query)
        max_results = clamp_max_results(max_results)

        key = search_key(query, max_results)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        products, fetched = self._find_listing(query, max_results, "search")
        result = ListingResult(query=query, products=products, source=SOURCE_NAME)
        if self.cache is not None and fetched:
            self.cache.set(key, result)
        return result

    # ------------------------------------------------------------------
    # Compare
    # ------------------------------------------------------------------

    def _fetch_detail(self, stub: ProductStub) -> DetailResult:
        url = detail_url(stub.code, stub.slug)
        html = self.fetch(url, DETAIL_TIMEOUT)
        return DetailResult(stub=stub, detail=parse_product_page(html, stub.code), detail_url=url)

    def _fetch_details(self, stubs: List[ProductStub]) -> List[DetailResult]:
        """Fetch and parse detail pages concurrently, keeping whatever succeeds.

        Results keep the selection order so the merge tie-break is stable.
        """
        results: List[DetailResult] = []
        workers = min(self.max_workers, len(stubs))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(self._fetch_detail, stub) for stub in stubs]
            for stub, future in zip(stubs, futures):
                try:
                    results.append(future.result())
                except Exception as e:
                    logger.warning(f"[compare] detail fetch failed for {stub.code}: {e}")
                    log_scrape_event("detail_failed", {"code": stub.code, "error": str(e)})
        return results

    def compare(self, query: str) -> CompareResult:
        """Compare mode: one merged row per store for the query."""
        query = validate_query(query)

        key = compare_key(query)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        candidates, cacheable = self._find_listing(query, COMPARE_CANDIDATE_POOL, "compare")
        if not candidates:
            result = CompareResult(query=query)
        else:
            indices = select_candidates(self.selector, candidates, query)
            selected = [candidates[i] for i in indices]
            logger.info(
                f"[compare] {len(candidates)} candidates -> selected {len(selected)}: "
                + ", ".join(f'"{s.name}"' for s in selected)
            )
            details = self._fetch_details(selected)
            cacheable = len(details) == len(selected)
            result = CompareResult(query=query, store_prices=merge_store_prices(details))

        log_scrape_event("compare_complete", {
            "query": query,
            "stores": [row.store for row in result.store_prices],
            "loyalty": [
                f"{row.store} £{row.loyalty_price:.2f} ({row.loyalty_scheme})"
                for row in result.store_prices
                if row.loyalty_price is not None
            ],
        })
        if self.cache is not None and cacheable:
            self.cache.set(key, result)
        return result

    # ------------------------------------------------------------------
    # Detail
    # ------------------------------------------------------------------

    def product_detail(self, code: str, slug: str = "") -> Optional[ProductDetail]:
        """Detail mode: per-store prices for one product code.

        Returns None when the page comes back empty.

        Raises:
            InvalidInputError: Malformed code or slug
            FetchError: The product page could not be fetched
        """
        code = validate_product_code(code)
        slug = validate_slug(slug)

        key = product_key(code)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        url = detail_url(code, slug)
        logger.info(f"[product] fetching {url}")
        html = self.fetch(url, REQUEST_TIMEOUT)
        if not html or not html.strip():
            return None

        detail = parse_product_page(html, code)
        if self.cache is not None:
            self.cache.set(key, detail)
        return detail
