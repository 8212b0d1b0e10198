"""Command-line interface for the price pipeline."""

import argparse
import json
import logging
import sys
from typing import List, Optional

__all__ = ["main", "parse_args", "print_listing", "print_comparison", "print_detail"]

from grocery_scrape.config import DEFAULT_MAX_RESULTS, STORE_NAMES
from grocery_scrape.fetcher import FetchError
from grocery_scrape.logging_config import setup_logging
from grocery_scrape.merge import filter_rows_by_store, sort_comparison_rows
from grocery_scrape.models import CompareResult, ListingResult, ProductDetail
from grocery_scrape.pipeline import PricePipeline
from grocery_scrape.selector import get_default_selector
from grocery_scrape.validation import InvalidInputError


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Compare UK supermarket prices via trolley.co.uk",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List products matching a query
  grocery-scrape mozzarella

  # Cheapest store for a query (listing + selection + detail + merge)
  grocery-scrape "mature cheddar" --compare

  # Only some stores, as JSON
  grocery-scrape "semi skimmed milk" --compare --stores Tesco Aldi --json

  # One product's per-store prices
  grocery-scrape --product ABC123 --slug mozzarella-125g
        """,
    )
    parser.add_argument("query", nargs="?", help="Free-text product query")
    parser.add_argument(
        "--compare",
        action="store_true",
        help="Compare mode: one row per store, cheapest first",
    )
    parser.add_argument("--product", metavar="CODE", help="Product code for detail mode")
    parser.add_argument("--slug", default="", help="Slug hint for the product URL")
    parser.add_argument(
        "--max-results",
        type=int,
        default=DEFAULT_MAX_RESULTS,
        help=f"Maximum listing results (default: {DEFAULT_MAX_RESULTS})",
    )
    parser.add_argument(
        "--stores",
        nargs="+",
        choices=list(STORE_NAMES),
        metavar="STORE",
        help=f"Only show these stores in compare mode. Choices: {list(STORE_NAMES)}",
    )
    parser.add_argument("--json", action="store_true", help="Print raw JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def print_listing(result: ListingResult) -> None:
    print(f"\n{result.total_results} products for {result.query!r}\n")
    for p in result.products:
        price = f"£{p.price:.2f}" if p.price else "  -  "
        weight = f" ({p.weight})" if p.weight else ""
        store = f" [{p.store}]" if p.store else ""
        print(f"  {p.code:<12} {price:>8}  {p.name}{weight}{store}")


def print_comparison(result: CompareResult) -> None:
    rows = sort_comparison_rows(result.store_prices)
    if not rows:
        print(f"\nNo store prices found for {result.query!r}")
        return

    print(f"\n{len(rows)} store{'s' if len(rows) != 1 else ''} for {result.query!r} (cheapest first)\n")
    for i, row in enumerate(rows):
        price = f"£{row.price:.2f}"
        if row.loyalty_price is not None:
            price += f" / £{row.loyalty_price:.2f} {row.loyalty_scheme}"
        unit = f"  £{row.per100g:.2f}/100g" if row.per100g else ""
        tag = "  CHEAPEST" if i == 0 else ""
        print(f"  {row.store:<12} {price:<28} {row.name}{unit}{tag}")
        if row.promotion:
            print(f"  {'':<12} {row.promotion}")


def print_detail(detail: ProductDetail) -> None:
    weight = f" ({detail.weight})" if detail.weight else ""
    print(f"\n{detail.name}{weight} [{detail.code}]\n")
    for sp in detail.store_prices:
        loyalty = f"  {sp.loyalty_scheme} £{sp.loyalty_price:.2f}" if sp.loyalty_price is not None else ""
        promo = f"  {sp.promotion}" if sp.promotion else ""
        print(f"  {sp.store:<12} £{sp.price:.2f}{loyalty}{promo}")
    if detail.alternatives:
        print("\nAlternatives:")
        for alt in detail.alternatives:
            print(f"  {alt.store:<12} £{alt.price:.2f}  {alt.name}")
    history = detail.price_history
    if history.usual is not None or history.highest is not None:
        print(f"\nUsually: {history.usual}  Highest: {history.highest}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    args = parse_args(argv)
    setup_logging(level=logging.DEBUG if args.verbose else logging.WARNING)

    if not args.query and not args.product:
        print("Provide a query or --product CODE", file=sys.stderr)
        return 2

    pipeline = PricePipeline(selector=get_default_selector())

    try:
        if args.compare and args.query:
            result = pipeline.compare(args.query)
            result.store_prices = filter_rows_by_store(result.store_prices, args.stores)
            if args.json:
                print(json.dumps(result.to_dict(), indent=2))
            else:
                print_comparison(result)
        elif args.product:
            detail = pipeline.product_detail(args.product, args.slug)
            if detail is None:
                print("Product not found", file=sys.stderr)
                return 1
            if args.json:
                print(json.dumps(detail.to_dict(), indent=2))
            else:
                print_detail(detail)
        else:
            listing = pipeline.search(args.query, args.max_results)
            if args.json:
                print(json.dumps(listing.to_dict(), indent=2))
            else:
                print_listing(listing)
    except InvalidInputError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except FetchError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
