"""Data models for listing stubs, store prices and comparison rows.

All records are request-scoped and never persisted. ``to_dict()`` gives
the camelCase JSON shape served by the API.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

__all__ = [
    "ProductStub",
    "StorePriceEntry",
    "ComparisonRow",
    "PriceHistory",
    "ProductDetail",
    "ListingResult",
    "CompareResult",
    "effective_price",
]


def effective_price(price: float, loyalty_price: Optional[float]) -> float:
    """Loyalty price when present and strictly cheaper, else the regular price."""
    if loyalty_price is not None and loyalty_price < price:
        return loyalty_price
    return price


@dataclass
class ProductStub:
    """A product as it appears on a listing page (or in the alternatives block).

    ``price == 0`` means no price could be parsed, not a free product.
    """

    name: str
    code: str
    slug: str
    store: str = ""
    price: float = 0.0
    weight: Optional[str] = None
    price_per_unit: Optional[float] = None
    unit: Optional[str] = None
    image_url: str = ""
    product_url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "code": self.code,
            "slug": self.slug,
            "store": self.store,
            "price": self.price,
            "weight": self.weight,
            "pricePerUnit": self.price_per_unit,
            "unit": self.unit,
            "imageUrl": self.image_url,
            "productUrl": self.product_url,
        }


@dataclass
class StorePriceEntry:
    """One store's price for one product, from the "Where To Buy" block."""

    store: str
    price: float
    loyalty_price: Optional[float] = None
    loyalty_scheme: Optional[str] = None
    price_per_unit: Optional[float] = None
    unit: Optional[str] = None
    promotion: Optional[str] = None

    @property
    def best_price(self) -> float:
        return effective_price(self.price, self.loyalty_price)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "store": self.store,
            "price": self.price,
            "pricePerUnit": self.price_per_unit,
            "unit": self.unit,
            "loyaltyPrice": self.loyalty_price,
            "loyaltyScheme": self.loyalty_scheme,
            "promotion": self.promotion,
            "bestPrice": self.best_price,
        }


@dataclass
class ComparisonRow:
    """A store's row in a merged comparison table.

    Carries the store price plus the identity of the product that
    supplied it, so the UI can link straight to it.
    """

    store: str
    price: float
    name: str
    code: str
    slug: str
    loyalty_price: Optional[float] = None
    loyalty_scheme: Optional[str] = None
    price_per_unit: Optional[float] = None
    unit: Optional[str] = None
    promotion: Optional[str] = None
    per100g: Optional[float] = None
    weight: Optional[str] = None
    image_url: Optional[str] = None
    product_url: Optional[str] = None

    @property
    def best_price(self) -> float:
        return effective_price(self.price, self.loyalty_price)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "store": self.store,
            "price": self.price,
            "pricePerUnit": self.price_per_unit,
            "unit": self.unit,
            "loyaltyPrice": self.loyalty_price,
            "loyaltyScheme": self.loyalty_scheme,
            "promotion": self.promotion,
            "bestPrice": self.best_price,
            "per100g": self.per100g,
            "name": self.name,
            "weight": self.weight,
            "imageUrl": self.image_url,
            "productUrl": self.product_url,
            "code": self.code,
            "slug": self.slug,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ComparisonRow":
        """Create from the camelCase API shape (used by the basket endpoint)."""
        return cls(
            store=str(data.get("store", "")),
            price=float(data.get("price") or 0),
            name=str(data.get("name") or ""),
            code=str(data.get("code") or ""),
            slug=str(data.get("slug") or ""),
            loyalty_price=_optional_float(data.get("loyaltyPrice")),
            loyalty_scheme=data.get("loyaltyScheme"),
            price_per_unit=_optional_float(data.get("pricePerUnit")),
            unit=data.get("unit"),
            promotion=data.get("promotion"),
            per100g=_optional_float(data.get("per100g")),
            weight=data.get("weight"),
            image_url=data.get("imageUrl"),
            product_url=data.get("productUrl"),
        )


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


@dataclass
class PriceHistory:
    usual: Optional[float] = None
    highest: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"usual": self.usual, "highest": self.highest}


@dataclass
class ProductDetail:
    """Full parse of one product page."""

    code: str
    name: str
    weight: Optional[str] = None
    image_url: Optional[str] = None
    store_prices: List[StorePriceEntry] = field(default_factory=list)
    alternatives: List[ProductStub] = field(default_factory=list)
    price_history: PriceHistory = field(default_factory=PriceHistory)
    source: str = "trolley.co.uk"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "name": self.name,
            "weight": self.weight,
            "imageUrl": self.image_url,
            "storePrices": [sp.to_dict() for sp in self.store_prices],
            "alternatives": [alt.to_dict() for alt in self.alternatives],
            "priceHistory": self.price_history.to_dict(),
            "source": self.source,
        }


@dataclass
class ListingResult:
    query: str
    products: List[ProductStub] = field(default_factory=list)
    source: str = "trolley.co.uk"

    @property
    def total_results(self) -> int:
        return len(self.products)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "products": [p.to_dict() for p in self.products],
            "totalResults": self.total_results,
            "source": self.source,
        }


@dataclass
class CompareResult:
    query: str
    store_prices: List[ComparisonRow] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "storePrices": [row.to_dict() for row in self.store_prices],
        }
