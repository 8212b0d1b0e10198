"""Shared fixtures for the pipeline test suite: sample pages and a fake fetcher."""

from typing import Dict, List, Union

import pytest

from grocery_scrape.config import BASE_URL
from grocery_scrape.fetcher import FetchError

LISTING_HTML = """
<html><head><title>Mozzarella | Trolley.co.uk</title></head>
<body>
<div class="results">
  <a href="/product/galbani-mozzarella-125g/ABC123" title="Galbani Mozzarella">
    <img src="/img/product/ABC123.jpg">
    <span>125g</span> <span>Tesco</span>
    <span>£0.68 per 100g</span> <span>£0.85</span>
  </a>
  <a href="/product/galbani-mozzarella-125g/ABC123">Galbani Mozzarella again £0.85</a>
  <a href="/product/tesco-mozzarella/TES001">
    <h3>Tesco Mozzarella Ball</h3> <span>250g</span> <span>£1.10</span> <span>£0.44 per 100g</span>
  </a>
  <a href="/product/aldi-mozz/ALD001">Emporium Mozzarella 125g £0.49 each Aldi</a>
  <a href="/product/x/XY">Code too short £1.00</a>
  <a href="/product/yy/YYY111">ab</a>
  <a href="/category/cheese">Cheese</a>
</div>
</body></html>
"""

DETAIL_HTML = """
<html><head>
<title>Buy Galbani Mozzarella 125g | Trolley.co.uk</title>
<script>var cached = "Where To Buy Tesco £99.99";</script>
</head>
<body>
<h1>Galbani Mozzarella</h1>
<p>125g</p>
<img src="/img/product/ABC123.jpg">
<p>Usually £2.60 and Highest £2.90 in the last 12 months</p>
<h2>Where To Buy</h2>
<div class="store"><span>Tesco</span> <span>£2.50</span> <span>Clubcard Price £2.00</span>
  <a href="https://redirect.trolley.co.uk/tesco/ABC123">VISIT</a></div>
<div class="store"><span>Sainsbury's</span> <span>£2.40</span> <span>£0.96 per 100g</span>
  <span>£2.10 Nectar Price</span> <a href="https://redirect.trolley.co.uk/sainsburys/ABC123">VISIT</a></div>
<div class="store"><span>Asda</span> <span>£2.30</span> <span>2 FOR £4.00</span>
  <a href="https://redirect.trolley.co.uk/asda/ABC123">VISIT</a></div>
<div class="store"><span>Morrisons</span> <span>Unavailable</span></div>
<div class="store"><span>Aldi</span> <span>£0.79 per 100g</span> <span>£0.99</span></div>
<h2>Supermarket Alternatives</h2>
<a href="/product/waitrose-mozzarella/WAI001" title="Waitrose Mozzarella 125g">
  <img src="/img/product/WAI001.jpg"> Waitrose £1.95</a>
<a href="/product/co-op-mozzarella/COO001">Co-op £1.50</a>
<a href="/product/tesco-mozzarella/TES001">Tesco £1.00</a>
<a href="/product/galbani-mozzarella-125g/ABC123">Tesco £2.50</a>
<a href="/product/nothing/NOP001">No retailer here £1.00</a>
<h2>Reviews</h2>
<p>Lovely on pizza.</p>
</body></html>
"""

SECOND_DETAIL_HTML = """
<html><head><title>Tesco Mozzarella Ball 250g | Trolley.co.uk</title></head>
<body>
<h1>Tesco Mozzarella Ball</h1>
<p>250g</p>
<h2>Where To Buy</h2>
<div><span>Tesco</span> <span>£1.10</span> <a href="https://redirect.trolley.co.uk/t">VISIT</a></div>
<div><span>Asda</span> <span>£2.30</span> <a href="https://redirect.trolley.co.uk/a">VISIT</a></div>
<h2>Reviews</h2>
</body></html>
"""

EMPTY_LISTING_HTML = "<html><body>" + "<p>No products matched your search.</p>" * 10 + "</body></html>"


class FakeFetcher:
    """Stand-in for fetch_html: url -> html, or an exception to raise.

    Unknown URLs raise FetchError (404), like the real site.
    """

    def __init__(self, pages: Dict[str, Union[str, Exception]]):
        self.pages = pages
        self.calls: List[str] = []

    def __call__(self, url: str, timeout: float) -> str:
        self.calls.append(url)
        page = self.pages.get(url)
        if page is None:
            raise FetchError(f"HTTP 404 fetching {url}", url=url, status_code=404)
        if isinstance(page, Exception):
            raise page
        return page


@pytest.fixture
def listing_html():
    return LISTING_HTML


@pytest.fixture
def detail_html():
    return DETAIL_HTML


@pytest.fixture
def second_detail_html():
    return SECOND_DETAIL_HTML


@pytest.fixture
def empty_listing_html():
    return EMPTY_LISTING_HTML


@pytest.fixture
def fake_fetcher_factory():
    return FakeFetcher


@pytest.fixture
def mozzarella_urls():
    """URLs the pipeline requests for the query "mozzarella"."""
    return {
        "explore_plural": f"{BASE_URL}/explore/mozzarellas",
        "explore": f"{BASE_URL}/explore/mozzarella",
        "explore_es": f"{BASE_URL}/explore/mozzarellaes",
        "search": f"{BASE_URL}/search/?q=mozzarella",
        "detail_abc": f"{BASE_URL}/product/galbani-mozzarella-125g/ABC123",
        "detail_tes": f"{BASE_URL}/product/tesco-mozzarella/TES001",
        "detail_ald": f"{BASE_URL}/product/aldi-mozz/ALD001",
    }
