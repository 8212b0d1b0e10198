"""Price and weight token extraction from free text.

Card and segment text on the comparison site mixes the item price with
per-unit figures ("£2.50 per 100g £10.00"), so the item price is the first
amount that is *not* qualified by "per ..." or "each".
"""

import re
from typing import NamedTuple, Optional

from grocery_scrape.config import PER100G_MAX_AMOUNT, PER100G_MIN_AMOUNT, PINT_ML

__all__ = [
    "UnitPrice",
    "extract_item_price",
    "extract_price_per_unit",
    "extract_weight",
    "strip_weights",
    "compute_per100g",
]

AMOUNT_RE = re.compile(r"£(\d+(?:\.\d+)?)")
# Applied to the text right after an amount
UNIT_QUALIFIER_RE = re.compile(r"\s+(?:per\s|each\b)", re.IGNORECASE)
PER_UNIT_RE = re.compile(r"£(\d+(?:\.\d+)?)\s+per\s+(\d*\s*\w+)", re.IGNORECASE)
EACH_RE = re.compile(r"£(\d+(?:\.\d+)?)\s+each\b", re.IGNORECASE)
WEIGHT_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(kg|ml|pt|g|l)\b", re.IGNORECASE)
WEIGHT_TOKEN_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*(kg|ml|pt|g|l)$", re.IGNORECASE)

# Multipliers to grams / millilitres
UNIT_FACTORS = {
    "g": 1.0,
    "ml": 1.0,
    "kg": 1000.0,
    "l": 1000.0,
    "pt": float(PINT_ML),
}


class UnitPrice(NamedTuple):
    amount: float
    unit: str


def extract_item_price(text: str) -> float:
    """Return the first unqualified £ amount in ``text``.

    Amounts followed by "per <unit>" or "each" are unit prices and are
    skipped. Returns 0.0 when nothing usable is found; callers treat 0 as
    "no price".
    """
    if not text:
        return 0.0
    for match in AMOUNT_RE.finditer(text):
        if UNIT_QUALIFIER_RE.match(text, match.end()):
            continue
        return float(match.group(1))
    return 0.0


def extract_price_per_unit(text: str) -> Optional[UnitPrice]:
    """Find "£X per Y" (unit "per Y") or, failing that, "£X each" (unit "per item")."""
    if not text:
        return None
    per_match = PER_UNIT_RE.search(text)
    if per_match:
        return UnitPrice(float(per_match.group(1)), f"per {per_match.group(2).strip()}")
    each_match = EACH_RE.search(text)
    if each_match:
        return UnitPrice(float(each_match.group(1)), "per item")
    return None


def extract_weight(text: str) -> Optional[str]:
    """First magnitude+unit token (g, kg, ml, l, pt), e.g. "400g". No conversion."""
    if not text:
        return None
    match = WEIGHT_RE.search(text)
    if not match:
        return None
    return f"{match.group(1)}{match.group(2)}"


def strip_weights(text: str) -> str:
    """Remove weight tokens from text (used when deriving names from card text)."""
    return re.sub(r"\s*" + WEIGHT_RE.pattern, "", text, flags=re.IGNORECASE).strip()


def compute_per100g(price: Optional[float], weight: Optional[str]) -> Optional[float]:
    """Price per 100g (or 100ml) for a weight token such as "1.5kg" or "4pt".

    Returns None when the token does not parse or the normalized amount is
    outside the plausible pack-size window, so a misparsed weight can never
    produce a winning per-100g figure.
    """
    if not price or price <= 0 or not weight:
        return None
    match = WEIGHT_TOKEN_RE.match(str(weight).strip())
    if not match:
        return None

    amount = float(match.group(1)) * UNIT_FACTORS[match.group(2).lower()]
    if amount < PER100G_MIN_AMOUNT or amount > PER100G_MAX_AMOUNT:
        return None
    return price / amount * 100
