"""Tests for the search/compare/detail pipeline with a fake fetcher."""

import pytest

from grocery_scrape.cache import ResultCache
from grocery_scrape.config import BASE_URL
from grocery_scrape.fetcher import FetchError
from grocery_scrape.pipeline import PricePipeline, detail_url
from grocery_scrape.validation import InvalidInputError


class _FixedSelector:
    def __init__(self, indices=None, error=None):
        self.indices = indices
        self.error = error
        self.calls = 0

    def select(self, candidates, query):
        self.calls += 1
        if self.error:
            raise self.error
        return self.indices


class TestSearch:
    """Listing mode: URL variants tried in order."""

    def test_falls_through_failed_variant(self, fake_fetcher_factory, mozzarella_urls, listing_html):
        fetch = fake_fetcher_factory({mozzarella_urls["explore"]: listing_html})
        result = PricePipeline(fetch=fetch).search("mozzarella")

        assert fetch.calls == [mozzarella_urls["explore_plural"], mozzarella_urls["explore"]]
        assert [p.code for p in result.products] == ["ABC123", "TES001", "ALD001"]
        assert result.total_results == 3
        assert result.source == "trolley.co.uk"

    def test_short_and_empty_pages_skipped(
        self, fake_fetcher_factory, mozzarella_urls, listing_html, empty_listing_html
    ):
        fetch = fake_fetcher_factory({
            mozzarella_urls["explore_plural"]: "<html>blocked</html>",
            mozzarella_urls["explore"]: empty_listing_html,
            mozzarella_urls["explore_es"]: FetchError("timeout", url=mozzarella_urls["explore_es"]),
            mozzarella_urls["search"]: listing_html,
        })
        result = PricePipeline(fetch=fetch).search("mozzarella")

        assert len(fetch.calls) == 4
        assert result.total_results == 3

    def test_all_variants_empty_is_not_an_error(self, fake_fetcher_factory):
        fetch = fake_fetcher_factory({})
        result = PricePipeline(fetch=fetch).search("unobtainium")

        assert len(fetch.calls) == 4
        assert result.products == []
        assert result.to_dict()["totalResults"] == 0

    def test_max_results(self, fake_fetcher_factory, mozzarella_urls, listing_html):
        fetch = fake_fetcher_factory({mozzarella_urls["explore_plural"]: listing_html})
        assert PricePipeline(fetch=fetch).search("mozzarella", 2).total_results == 2

    def test_query_is_stripped(self, fake_fetcher_factory, mozzarella_urls, listing_html):
        fetch = fake_fetcher_factory({mozzarella_urls["explore_plural"]: listing_html})
        assert PricePipeline(fetch=fetch).search("  mozzarella ").query == "mozzarella"

    @pytest.mark.parametrize("query", ["", "   ", None, "x" * 121])
    def test_invalid_query(self, fake_fetcher_factory, query):
        fetch = fake_fetcher_factory({})
        with pytest.raises(InvalidInputError):
            PricePipeline(fetch=fetch).search(query)
        assert fetch.calls == []

    def test_cached_result_reused(self, fake_fetcher_factory, mozzarella_urls, listing_html):
        fetch = fake_fetcher_factory({mozzarella_urls["explore_plural"]: listing_html})
        pipeline = PricePipeline(fetch=fetch, cache=ResultCache())

        first = pipeline.search("mozzarella")
        second = pipeline.search("Mozzarella")
        assert second is first
        assert len(fetch.calls) == 1

    def test_upstream_failure_is_not_cached(
        self, fake_fetcher_factory, mozzarella_urls, listing_html
    ):
        """An empty result caused by failed fetches is retried on the next call."""
        fetch = fake_fetcher_factory({})
        pipeline = PricePipeline(fetch=fetch, cache=ResultCache())

        assert pipeline.search("mozzarella").total_results == 0
        assert len(fetch.calls) == 4

        fetch.pages[mozzarella_urls["explore"]] = listing_html
        assert pipeline.search("mozzarella").total_results == 3
        assert len(fetch.calls) == 4 + 2

    def test_fetched_but_empty_is_cached(self, fake_fetcher_factory, mozzarella_urls, empty_listing_html):
        fetch = fake_fetcher_factory({mozzarella_urls["search"]: empty_listing_html})
        pipeline = PricePipeline(fetch=fetch, cache=ResultCache())

        pipeline.search("mozzarella")
        pipeline.search("mozzarella")
        assert len(fetch.calls) == 4

    def test_blocked_page_is_not_cached(self, fake_fetcher_factory, mozzarella_urls):
        fetch = fake_fetcher_factory({mozzarella_urls["search"]: "<html>blocked</html>"})
        pipeline = PricePipeline(fetch=fetch, cache=ResultCache())

        pipeline.search("mozzarella")
        pipeline.search("mozzarella")
        assert len(fetch.calls) == 8


class TestCompare:
    """Compare mode: listing, selection, parallel detail fetches, merge."""

    def test_default_selection_uses_first_candidate(
        self, fake_fetcher_factory, mozzarella_urls, listing_html, detail_html
    ):
        fetch = fake_fetcher_factory({
            mozzarella_urls["explore_plural"]: listing_html,
            mozzarella_urls["detail_abc"]: detail_html,
        })
        result = PricePipeline(fetch=fetch).compare("mozzarella")

        assert mozzarella_urls["detail_abc"] in fetch.calls
        assert mozzarella_urls["detail_tes"] not in fetch.calls
        stores = {row.store: row for row in result.store_prices}
        assert stores["Tesco"].best_price == 2.00
        assert stores["Tesco"].product_url == mozzarella_urls["detail_abc"]

    def test_selector_error_falls_back_to_first(
        self, fake_fetcher_factory, mozzarella_urls, listing_html, detail_html
    ):
        fetch = fake_fetcher_factory({
            mozzarella_urls["explore_plural"]: listing_html,
            mozzarella_urls["detail_abc"]: detail_html,
        })
        selector = _FixedSelector(error=RuntimeError("model unavailable"))
        result = PricePipeline(fetch=fetch, selector=selector).compare("mozzarella")

        assert selector.calls == 1
        assert len(result.store_prices) > 0

    def test_merges_multiple_details(
        self, fake_fetcher_factory, mozzarella_urls, listing_html, detail_html, second_detail_html
    ):
        fetch = fake_fetcher_factory({
            mozzarella_urls["explore_plural"]: listing_html,
            mozzarella_urls["detail_abc"]: detail_html,
            mozzarella_urls["detail_tes"]: second_detail_html,
        })
        result = PricePipeline(fetch=fetch, selector=_FixedSelector([0, 1])).compare("mozzarella")
        stores = {row.store: row for row in result.store_prices}

        assert stores["Tesco"].code == "TES001", "£1.10 beats the £2.00 Clubcard price"
        assert stores["Asda"].code == "ABC123", "equal £2.30 prices keep the first selected"
        assert len(result.store_prices) == len({row.store for row in result.store_prices})

    def test_partial_detail_failure(
        self, fake_fetcher_factory, mozzarella_urls, listing_html, second_detail_html
    ):
        fetch = fake_fetcher_factory({
            mozzarella_urls["explore_plural"]: listing_html,
            mozzarella_urls["detail_tes"]: second_detail_html,
        })
        result = PricePipeline(fetch=fetch, selector=_FixedSelector([0, 1])).compare("mozzarella")
        stores = {row.store: row for row in result.store_prices}

        assert set(stores) == {"Tesco", "Asda"}
        assert stores["Tesco"].code == "TES001"

    def test_all_details_fail(self, fake_fetcher_factory, mozzarella_urls, listing_html):
        fetch = fake_fetcher_factory({mozzarella_urls["explore_plural"]: listing_html})
        result = PricePipeline(fetch=fetch, selector=_FixedSelector([0, 1, 2])).compare("mozzarella")

        assert result.store_prices == []
        assert result.to_dict() == {"query": "mozzarella", "storePrices": []}

    def test_empty_listing_fetches_no_details(self, fake_fetcher_factory):
        fetch = fake_fetcher_factory({})
        selector = _FixedSelector([0])
        result = PricePipeline(fetch=fetch, selector=selector).compare("unobtainium")

        assert result.store_prices == []
        assert selector.calls == 0
        assert all("/product/" not in url for url in fetch.calls)

    def test_cached(self, fake_fetcher_factory, mozzarella_urls, listing_html, detail_html):
        fetch = fake_fetcher_factory({
            mozzarella_urls["explore_plural"]: listing_html,
            mozzarella_urls["detail_abc"]: detail_html,
        })
        pipeline = PricePipeline(fetch=fetch, cache=ResultCache())
        pipeline.compare("mozzarella")
        calls = len(fetch.calls)

        pipeline.compare("mozzarella")
        assert len(fetch.calls) == calls

    def test_failed_details_are_not_cached(
        self, fake_fetcher_factory, mozzarella_urls, listing_html, detail_html
    ):
        fetch = fake_fetcher_factory({mozzarella_urls["explore_plural"]: listing_html})
        pipeline = PricePipeline(fetch=fetch, cache=ResultCache())

        assert pipeline.compare("mozzarella").store_prices == []

        fetch.pages[mozzarella_urls["detail_abc"]] = detail_html
        assert len(pipeline.compare("mozzarella").store_prices) > 0


class TestProductDetail:
    def test_detail(self, fake_fetcher_factory, mozzarella_urls, detail_html):
        fetch = fake_fetcher_factory({mozzarella_urls["detail_abc"]: detail_html})
        detail = PricePipeline(fetch=fetch).product_detail("ABC123", "galbani-mozzarella-125g")

        assert detail.name == "Galbani Mozzarella"
        assert len(detail.store_prices) == 4

    def test_placeholder_slug(self, fake_fetcher_factory, detail_html):
        url = f"{BASE_URL}/product/_/ABC123"
        fetch = fake_fetcher_factory({url: detail_html})

        assert PricePipeline(fetch=fetch).product_detail("ABC123") is not None
        assert fetch.calls == [url]

    def test_fetch_error_propagates(self, fake_fetcher_factory):
        fetch = fake_fetcher_factory({})
        with pytest.raises(FetchError) as exc_info:
            PricePipeline(fetch=fetch).product_detail("ABC123", "x")
        assert exc_info.value.status_code == 404

    def test_empty_page_is_none(self, fake_fetcher_factory):
        fetch = fake_fetcher_factory({detail_url("ABC123", "x"): "   "})
        assert PricePipeline(fetch=fetch).product_detail("ABC123", "x") is None

    @pytest.mark.parametrize("code, slug", [("abc123", ""), ("AB", ""), ("ABC123", "../etc"), ("ABC123", "a/b")])
    def test_invalid_input(self, fake_fetcher_factory, code, slug):
        fetch = fake_fetcher_factory({})
        with pytest.raises(InvalidInputError):
            PricePipeline(fetch=fetch).product_detail(code, slug)
        assert fetch.calls == []
