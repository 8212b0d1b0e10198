"""Tests for page fetching and its error mapping."""

from unittest.mock import MagicMock

import pytest
import requests  # type: ignore[import-untyped]

from grocery_scrape.config import HEADERS
from grocery_scrape.fetcher import FetchError, create_session, fetch_html

URL = "https://www.trolley.co.uk/explore/mozzarella"


def _session_returning(text="<html>ok</html>", status_code=200):
    response = MagicMock()
    response.text = text
    response.status_code = status_code
    if status_code >= 400:
        error = requests.exceptions.HTTPError(response=response)
        response.raise_for_status.side_effect = error
    session = MagicMock()
    session.get.return_value = response
    return session


class TestFetchHtml:
    def test_returns_body(self):
        session = _session_returning("<html>listing</html>")
        assert fetch_html(URL, timeout=5, session=session) == "<html>listing</html>"
        session.get.assert_called_once_with(URL, timeout=5, allow_redirects=True)

    def test_http_error_carries_status(self):
        session = _session_returning(status_code=404)
        with pytest.raises(FetchError) as exc_info:
            fetch_html(URL, session=session)

        assert exc_info.value.status_code == 404
        assert exc_info.value.url == URL

    def test_timeout(self):
        session = MagicMock()
        session.get.side_effect = requests.exceptions.Timeout()
        with pytest.raises(FetchError, match="Timeout"):
            fetch_html(URL, timeout=8, session=session)

    def test_connection_error(self):
        session = MagicMock()
        session.get.side_effect = requests.exceptions.ConnectionError("refused")
        with pytest.raises(FetchError) as exc_info:
            fetch_html(URL, session=session)
        assert exc_info.value.status_code is None

    def test_rejects_other_domains(self):
        session = MagicMock()
        with pytest.raises(FetchError, match="Invalid URL"):
            fetch_html("https://example.com/product/x/ABC123", session=session)
        session.get.assert_not_called()

    def test_empty_body_is_returned(self):
        assert fetch_html(URL, session=_session_returning("")) == ""


class TestCreateSession:
    def test_browser_headers(self):
        session = create_session()
        assert session.headers["User-Agent"] == HEADERS["User-Agent"]
        assert session.headers["Accept-Language"] == "en-GB,en;q=0.9"
