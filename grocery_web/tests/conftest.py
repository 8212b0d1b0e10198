"""Shared test fixtures for the web test suite."""

import pytest

from grocery_scrape.config import BASE_URL
from grocery_scrape.fetcher import FetchError
from grocery_scrape.pipeline import PricePipeline

LISTING_HTML = """
<html><body><div class="results">
  <a href="/product/heinz-beanz-415g/HNZ415" title="Heinz Beanz">
    <span>415g</span> <span>Tesco</span> <span>£0.34 per 100g</span> <span>£1.40</span></a>
  <a href="/product/branston-beans-410g/BRN410" title="Branston Baked Beans">
    <span>410g</span> <span>£0.95</span></a>
</div>
<footer>Prices are updated daily from every major UK supermarket.</footer>
</body></html>
"""

DETAIL_HTML = """
<html><head><title>Buy Heinz Beanz 415g | Trolley.co.uk</title></head>
<body>
<h1>Heinz Beanz</h1>
<p>415g</p>
<h2>Where To Buy</h2>
<div><span>Tesco</span> <span>£1.40</span> <span>Clubcard Price £1.20</span> <a>VISIT</a></div>
<div><span>Asda</span> <span>£1.35</span> <a>VISIT</a></div>
<div><span>Aldi</span> <span>Unavailable</span></div>
<h2>Supermarket Alternatives</h2>
<a href="/product/aldi-baked-beans/ALD410">Aldi £0.39</a>
</body></html>
"""


class FakeFetcher:
    """url -> html (or exception); unknown URLs raise a 404 FetchError."""

    def __init__(self, pages):
        self.pages = pages
        self.calls = []

    def __call__(self, url, timeout):
        self.calls.append(url)
        page = self.pages.get(url)
        if page is None:
            raise FetchError(f"HTTP 404 fetching {url}", url=url, status_code=404)
        if isinstance(page, Exception):
            raise page
        return page


@pytest.fixture
def beans_pages():
    return {
        f"{BASE_URL}/explore/beanss": FetchError("HTTP 404", status_code=404),
        f"{BASE_URL}/explore/beans": LISTING_HTML,
        f"{BASE_URL}/product/heinz-beanz-415g/HNZ415": DETAIL_HTML,
    }


@pytest.fixture
def fake_fetch(beans_pages):
    return FakeFetcher(beans_pages)


@pytest.fixture
def client(fake_fetch, monkeypatch, tmp_path):
    """Flask test client backed by a pipeline that never touches the network."""
    monkeypatch.setattr("grocery_web.logging_utils.LOG_DIR", tmp_path)

    from grocery_web.app import app
    app.config["TESTING"] = True
    app.config["PRICE_PIPELINE"] = PricePipeline(fetch=fake_fetch)

    with app.test_client() as test_client:
        yield test_client

    app.config.pop("PRICE_PIPELINE", None)
