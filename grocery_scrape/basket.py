"""Basket totals across stores.

Given the compare result for each ingredient, work out what the whole
basket costs at each store, using loyalty prices where they are cheaper.
Stores that are missing items sort after complete ones.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence

from grocery_scrape.models import ComparisonRow

__all__ = ["StoreTotal", "BasketSummary", "compute_basket"]


@dataclass
class StoreTotal:
    store: str
    total: float = 0.0
    item_count: int = 0
    missing: List[str] = field(default_factory=list)
    cheapest: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "store": self.store,
            "total": round(self.total, 2),
            "itemCount": self.item_count,
            "missing": list(self.missing),
            "cheapest": self.cheapest,
        }


@dataclass
class BasketSummary:
    ingredients: List[str]
    stores: List[StoreTotal]
    breakdown: Dict[str, List[ComparisonRow]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ingredients": list(self.ingredients),
            "stores": [s.to_dict() for s in self.stores],
            "breakdown": {
                ing: [row.to_dict() for row in rows] for ing, rows in self.breakdown.items()
            },
        }


def compute_basket(
    items: Mapping[str, Sequence[ComparisonRow]],
    stores: Sequence[str],
) -> BasketSummary:
    """Total each store's basket.

    Args:
        items: Ingredient -> compare rows for that ingredient (insertion order kept)
        stores: Stores to total; rows for other stores are ignored

    Returns:
        Stores sorted by fewest missing items, then lowest total. The first
        store is flagged cheapest only if it has every item.
    """
    ingredients = list(items.keys())
    totals = {store: StoreTotal(store=store) for store in stores}
    breakdown: Dict[str, List[ComparisonRow]] = {}

    for ingredient in ingredients:
        by_store = {}
        for row in items[ingredient]:
            if row.store in totals and row.store not in by_store:
                by_store[row.store] = row

        for store, total in totals.items():
            row = by_store.get(store)
            if row is None:
                total.missing.append(ingredient)
            else:
                total.total += row.best_price
                total.item_count += 1

        breakdown[ingredient] = sorted(by_store.values(), key=lambda r: r.best_price)

    ranked = sorted(totals.values(), key=lambda t: (len(t.missing), t.total))
    if ranked and not ranked[0].missing:
        ranked[0].cheapest = True

    return BasketSummary(ingredients=ingredients, stores=ranked, breakdown=breakdown)
