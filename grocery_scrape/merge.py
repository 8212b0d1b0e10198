"""Merging detail-page results into one row per store.

Two passes:

1. Primary: every "Where To Buy" entry across the selected products. Each
   store keeps the entry with the lowest effective (loyalty-aware) price;
   on a tie the first one seen stays.
2. Alternatives: stores still missing after pass 1 are filled from the
   "Supermarket Alternatives" links. These never replace a primary row,
   even when cheaper, since they come from a loosely related product.
"""

import re
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence

from grocery_scrape.models import ComparisonRow, ProductDetail, ProductStub, StorePriceEntry
from grocery_scrape.prices import compute_per100g

__all__ = [
    "DetailResult",
    "merge_store_prices",
    "effective_unit_cost",
    "sort_comparison_rows",
    "filter_rows_by_store",
]


class DetailResult(NamedTuple):
    """A parsed detail page together with the listing stub that led to it."""

    stub: ProductStub
    detail: ProductDetail
    detail_url: str


def _row_from_entry(entry: StorePriceEntry, result: DetailResult) -> ComparisonRow:
    detail = result.detail
    return ComparisonRow(
        store=entry.store,
        price=entry.price,
        name=detail.name,
        code=result.stub.code,
        slug=result.stub.slug,
        loyalty_price=entry.loyalty_price,
        loyalty_scheme=entry.loyalty_scheme,
        price_per_unit=entry.price_per_unit,
        unit=entry.unit,
        promotion=entry.promotion,
        per100g=compute_per100g(entry.best_price, detail.weight),
        weight=detail.weight,
        image_url=detail.image_url,
        product_url=result.detail_url,
    )


def _alternative_name(alt: ProductStub) -> str:
    """Alternative names are often just the store name; fall back to the slug."""
    if alt.name and len(alt.name) > len(alt.store) + 2:
        return alt.name
    from_slug = re.sub(r"\b\w", lambda m: m.group(0).upper(), alt.slug.replace("-", " "))
    return from_slug or alt.store


def _row_from_alternative(alt: ProductStub) -> ComparisonRow:
    return ComparisonRow(
        store=alt.store,
        price=alt.price,
        name=_alternative_name(alt),
        code=alt.code,
        slug=alt.slug,
        price_per_unit=alt.price_per_unit,
        unit=alt.unit,
        per100g=None,
        weight=None,
        image_url=alt.image_url,
        product_url=alt.product_url,
    )


def merge_store_prices(results: Sequence[DetailResult]) -> List[ComparisonRow]:
    """Reduce K detail results to at most one ComparisonRow per store.

    Rows come back in first-seen store order; display ordering is up to the
    caller (see sort_comparison_rows).
    """
    by_store: Dict[str, ComparisonRow] = {}

    for result in results:
        for entry in result.detail.store_prices:
            if not entry.store or not entry.price:
                continue
            existing = by_store.get(entry.store)
            if existing is None or entry.best_price < existing.best_price:
                by_store[entry.store] = _row_from_entry(entry, result)

    for result in results:
        for alt in result.detail.alternatives:
            if not alt.store or alt.store in by_store:
                continue
            if not alt.price or alt.price <= 0:
                continue
            by_store[alt.store] = _row_from_alternative(alt)

    return list(by_store.values())


def effective_unit_cost(row: ComparisonRow) -> float:
    """Sort key for display: per-100g, else loyalty-adjusted unit price, else best price."""
    if row.per100g:
        return row.per100g
    best = row.best_price
    if row.price_per_unit and row.price > 0:
        return row.price_per_unit * (best / row.price)
    return best


def sort_comparison_rows(rows: Iterable[ComparisonRow]) -> List[ComparisonRow]:
    """Cheapest first by effective unit cost (stable for equal costs)."""
    return sorted(rows, key=effective_unit_cost)


def filter_rows_by_store(
    rows: Iterable[ComparisonRow],
    stores: Optional[Iterable[str]],
) -> List[ComparisonRow]:
    """Keep only rows for the given stores; no filter when ``stores`` is empty."""
    wanted = {s.lower() for s in stores or () if s}
    if not wanted:
        return list(rows)
    return [row for row in rows if row.store.lower() in wanted]
