"""API endpoints for price search and comparison.

GET /api/search has three modes:
1. compare - ``?q=...&compare=1``: one row per store, merged across the
   best-matching products
2. detail - ``?product=CODE[&slug=...]``: per-store prices for one product
3. listing - ``?q=...[&max_results=N]``: product stubs from the listing page

POST /api/basket totals a multi-item basket from per-item compare rows.
"""

import logging
from typing import Any, Dict, List, Optional

from flask import Blueprint, Response, current_app, jsonify, request

from grocery_scrape.basket import compute_basket
from grocery_scrape.cache import ResultCache
from grocery_scrape.fetcher import FetchError
from grocery_scrape.merge import filter_rows_by_store
from grocery_scrape.models import CompareResult, ComparisonRow
from grocery_scrape.pipeline import PricePipeline
from grocery_scrape.selector import get_default_selector
from grocery_scrape.validation import InvalidInputError

from .config import CACHE_MAX_AGE, RESULT_CACHE_ENABLED
from .logging_utils import log_interaction

__all__ = ["api", "get_pipeline"]

logger = logging.getLogger(__name__)

api = Blueprint("api", __name__, url_prefix="/api")

FALSE_VALUES = {"", "0", "false", "no", "off"}


def get_pipeline() -> PricePipeline:
    """The app's pipeline, created on first use unless one was configured."""
    pipeline = current_app.config.get("PRICE_PIPELINE")
    if pipeline is None:
        cache = ResultCache() if RESULT_CACHE_ENABLED else None
        pipeline = PricePipeline(selector=get_default_selector(), cache=cache)
        current_app.config["PRICE_PIPELINE"] = pipeline
    return pipeline


def _json_response(body: Dict[str, Any], status: int = 200, cacheable: bool = True) -> Response:
    """JSON response; only successful GETs are marked cacheable."""
    resp = jsonify(body)
    resp.status_code = status
    if status == 200 and cacheable:
        resp.headers["Cache-Control"] = f"public, max-age={CACHE_MAX_AGE}"
    else:
        resp.headers["Cache-Control"] = "no-cache"
    return resp


def _error(message: str, status: int) -> Response:
    return _json_response({"error": message}, status)


def _is_truthy(value: Optional[str]) -> bool:
    return value is not None and value.strip().lower() not in FALSE_VALUES


def _parse_stores(value: Optional[str]) -> List[str]:
    return [s.strip() for s in (value or "").split(",") if s.strip()]


@api.route("/search", methods=["GET"])
def search() -> Response:
    """Listing, compare or detail lookup depending on the query parameters."""
    params = request.args
    query = params.get("q", "")
    product = params.get("product")
    pipeline = get_pipeline()

    try:
        if _is_truthy(params.get("compare")) and query.strip():
            log_interaction("compare_request", {"query": query})
            result = pipeline.compare(query)
            stores = _parse_stores(params.get("stores"))
            if stores:
                result = CompareResult(
                    query=result.query,
                    store_prices=filter_rows_by_store(result.store_prices, stores),
                )
            log_interaction("compare_result", {
                "query": result.query,
                "stores": [row.store for row in result.store_prices],
            })
            return _json_response(result.to_dict())

        if product:
            log_interaction("product_request", {"code": product, "slug": params.get("slug", "")})
            try:
                detail = pipeline.product_detail(product, params.get("slug", ""))
            except FetchError as e:
                logger.error(f"Product page fetch failed for {product}: {e}")
                log_interaction("upstream_error", {
                    "code": product,
                    "error": str(e),
                    "status_code": e.status_code,
                })
                return _error(str(e), 502)
            if detail is None:
                return _error("Product not found", 404)
            return _json_response(detail.to_dict())

        if query.strip():
            log_interaction("search_request", {
                "query": query,
                "max_results": params.get("max_results"),
            })
            listing = pipeline.search(query, params.get("max_results"))
            return _json_response(listing.to_dict())

    except InvalidInputError as e:
        return _error(str(e), 400)

    return _error("Provide ?q=search+term or ?product=CODE&slug=product-slug", 400)


@api.route("/basket", methods=["POST"])
def basket() -> Response:
    """Total a basket across stores.

    Body: ``{"items": {ingredient: [comparison rows]}, "stores": [store, ...]}``
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return _error("Request body must be a JSON object", 400)

    items = data.get("items")
    stores = data.get("stores")
    if not isinstance(items, dict) or not items:
        return _error("items must be a non-empty object of ingredient -> store prices", 400)
    if not isinstance(stores, list) or not stores or not all(isinstance(s, str) for s in stores):
        return _error("stores must be a non-empty list of store names", 400)

    try:
        rows = {
            str(ingredient): [ComparisonRow.from_dict(r) for r in (entries or [])]
            for ingredient, entries in items.items()
        }
    except (TypeError, ValueError, AttributeError) as e:
        return _error(f"Invalid store price entry: {e}", 400)

    summary = compute_basket(rows, stores)
    log_interaction("basket_result", {
        "ingredients": summary.ingredients,
        "stores": [s.store for s in summary.stores],
    })
    return _json_response(summary.to_dict(), cacheable=False)
