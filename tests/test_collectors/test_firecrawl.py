"""Tests for the Firecrawl scrape collector."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from citation_recency.collectors.firecrawl import FirecrawlClient, ScrapeRateLimitError, ScrapeResult


@pytest.fixture
def client():
    return FirecrawlClient(api_key="fc-test-fake-key", api_url="https://api.firecrawl.test/", timeout_seconds=30)


def _mock_http(mock_cls, *, response=None, side_effect=None):
    mock_client = AsyncMock()
    if side_effect is not None:
        mock_client.post.side_effect = side_effect
    else:
        mock_client.post.return_value = response
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    mock_cls.return_value = mock_client
    return mock_client


def _response(status_code: int, data=None, json_error: Exception | None = None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = "error body"
    if json_error is not None:
        resp.json.side_effect = json_error
    else:
        resp.json.return_value = data
    return resp


class TestScrape:
    @pytest.mark.asyncio
    async def test_success(self, client):
        data = {
            "success": True,
            "data": {
                "markdown": "# Careers\nPosted 3 days ago",
                "metadata": {"og:published_time": "2024-01-02T00:00:00Z", "statusCode": 200},
            },
        }
        with patch("citation_recency.collectors.firecrawl.httpx.AsyncClient") as MockClient:
            mock_client = _mock_http(MockClient, response=_response(200, data))
            result = await client.scrape("https://example.com/careers")

        assert result.ok is True
        assert result.markdown.startswith("# Careers")
        assert result.metadata["og:published_time"] == "2024-01-02T00:00:00Z"

        url = mock_client.post.call_args.args[0]
        kwargs = mock_client.post.call_args.kwargs
        assert url == "https://api.firecrawl.test/v2/scrape"
        assert kwargs["json"]["url"] == "https://example.com/careers"
        assert kwargs["json"]["formats"] == ["markdown"]
        assert kwargs["json"]["onlyMainContent"] is True
        assert kwargs["json"]["timeout"] == 30000
        assert kwargs["headers"]["Authorization"] == "Bearer fc-test-fake-key"

    @pytest.mark.asyncio
    async def test_rate_limit_raises(self, client):
        with patch("citation_recency.collectors.firecrawl.httpx.AsyncClient") as MockClient:
            _mock_http(MockClient, response=_response(429, {"success": False}))
            with pytest.raises(ScrapeRateLimitError):
                await client.scrape("https://example.com/a")

    @pytest.mark.asyncio
    async def test_page_timeout_408(self, client):
        with patch("citation_recency.collectors.firecrawl.httpx.AsyncClient") as MockClient:
            _mock_http(MockClient, response=_response(408, {"success": False}))
            result = await client.scrape("https://example.com/slow")

        assert result.ok is False
        assert result.status_code == 408
        assert result.counts_as_failure is False

    @pytest.mark.asyncio
    async def test_server_error(self, client):
        with patch("citation_recency.collectors.firecrawl.httpx.AsyncClient") as MockClient:
            _mock_http(MockClient, response=_response(500, {"success": False}))
            result = await client.scrape("https://example.com/a")

        assert result.ok is False
        assert result.status_code == 500
        assert result.counts_as_failure is True

    @pytest.mark.asyncio
    async def test_transport_timeout(self, client):
        with patch("citation_recency.collectors.firecrawl.httpx.AsyncClient") as MockClient:
            _mock_http(MockClient, side_effect=httpx.ReadTimeout("timed out"))
            result = await client.scrape("https://example.com/a")

        assert result.ok is False
        assert result.timed_out is True
        assert result.counts_as_failure is False

    @pytest.mark.asyncio
    async def test_connection_error(self, client):
        with patch("citation_recency.collectors.firecrawl.httpx.AsyncClient") as MockClient:
            _mock_http(MockClient, side_effect=httpx.ConnectError("refused"))
            result = await client.scrape("https://example.com/a")

        assert result.ok is False
        assert result.counts_as_failure is True

    @pytest.mark.asyncio
    async def test_invalid_json(self, client):
        with patch("citation_recency.collectors.firecrawl.httpx.AsyncClient") as MockClient:
            _mock_http(MockClient, response=_response(200, json_error=ValueError("bad json")))
            result = await client.scrape("https://example.com/a")

        assert result.ok is False

    @pytest.mark.asyncio
    async def test_unsuccessful_payload(self, client):
        with patch("citation_recency.collectors.firecrawl.httpx.AsyncClient") as MockClient:
            _mock_http(MockClient, response=_response(200, {"success": False, "error": "blocked"}))
            result = await client.scrape("https://example.com/a")

        assert result.ok is False


class TestScrapeResult:
    def test_ok_is_not_failure(self):
        assert ScrapeResult(ok=True).counts_as_failure is False
