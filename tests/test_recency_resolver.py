"""Tests for the URL Recency Resolver chain."""

from datetime import date, datetime, timedelta, timezone

import pytest

from citation_recency.analysis.types import Citation, ExtractionMethod
from citation_recency.collectors.firecrawl import ScrapeRateLimitError, ScrapeResult
from citation_recency.services.recency_resolver import UrlRecencyResolver, date_from_metadata

from conftest import TEST_PROBLEMATIC_DOMAINS, FakeScraper

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


def _citation(url: str | None, domain: str = "example.com") -> Citation:
    return Citation(url=url, domain=domain, title="T", source_type="perplexity")


def _resolver(scraper: FakeScraper | None) -> UrlRecencyResolver:
    return UrlRecencyResolver(scraper, TEST_PROBLEMATIC_DOMAINS)


class TestNetworkFreeSteps:
    @pytest.mark.asyncio
    async def test_url_pattern_wins(self):
        scraper = FakeScraper()
        res = await _resolver(scraper).resolve(_citation("https://example.com/2024/06/01/post"), now=NOW)
        assert res.result.extraction_method == ExtractionMethod.URL_PATTERN
        assert res.result.publication_date == date(2024, 6, 1)
        assert res.result.recency_score == 100
        assert res.scrape_attempted is False
        assert scraper.calls == []

    @pytest.mark.asyncio
    async def test_problematic_domain(self):
        scraper = FakeScraper()
        citation = _citation("https://www.glassdoor.com/Reviews/Nubank.htm", domain="glassdoor.com")
        res = await _resolver(scraper).resolve(citation, now=NOW)
        assert res.result.extraction_method == ExtractionMethod.PROBLEMATIC_DOMAIN
        assert res.result.recency_score is None
        assert res.result.publication_date is None
        assert scraper.calls == []

    @pytest.mark.asyncio
    async def test_problematic_domain_matched_on_url_host(self):
        scraper = FakeScraper()
        citation = _citation("https://www.glassdoor.com/Reviews/Nubank.htm", domain="Glassdoor")
        res = await _resolver(scraper).resolve(citation, now=NOW)
        assert res.result.extraction_method == ExtractionMethod.PROBLEMATIC_DOMAIN
        assert res.result.domain == "Glassdoor"
        assert scraper.calls == []

    @pytest.mark.asyncio
    async def test_problematic_label_on_other_host_is_scraped(self):
        scraper = FakeScraper()
        citation = _citation("https://example.com/careers", domain="glassdoor.com")
        res = await _resolver(scraper).resolve(citation, now=NOW)
        assert res.result.extraction_method != ExtractionMethod.PROBLEMATIC_DOMAIN
        assert scraper.calls == ["https://example.com/careers"]

    def test_problematic_suffix_match(self):
        resolver = _resolver(None)
        assert resolver.is_problematic_domain("uk.indeed.com")
        assert resolver.is_problematic_domain("indeed.com")
        assert not resolver.is_problematic_domain("notindeed.com")

    @pytest.mark.asyncio
    async def test_skip_scrape(self):
        scraper = FakeScraper()
        res = await _resolver(scraper).resolve(_citation("https://example.com/careers"), skip_scrape=True, now=NOW)
        assert res.result.extraction_method == ExtractionMethod.NOT_FOUND
        assert scraper.calls == []

    @pytest.mark.asyncio
    async def test_no_scraper(self):
        res = await _resolver(None).resolve(_citation("https://example.com/careers"), now=NOW)
        assert res.result.extraction_method == ExtractionMethod.NOT_FOUND
        assert res.scrape_attempted is False

    @pytest.mark.asyncio
    async def test_citation_without_url(self):
        res = await _resolver(FakeScraper()).resolve(_citation(None, domain="unknown"), now=NOW)
        assert res.result.extraction_method == ExtractionMethod.NOT_FOUND
        assert res.result.url is None


class TestScrapeSteps:
    URL = "https://example.com/careers"

    async def _resolve(self, scraped):
        scraper = FakeScraper(default=scraped)
        res = await _resolver(scraper).resolve(_citation(self.URL), now=NOW)
        assert scraper.calls == [self.URL]
        return res

    @pytest.mark.asyncio
    async def test_metadata(self):
        scraped = ScrapeResult(
            ok=True,
            markdown="Posted 3 days ago",
            metadata={"dateModified": "2024-01-01", "og:published_time": "2023-03-01T00:00:00Z"},
        )
        res = await self._resolve(scraped)
        assert res.result.extraction_method == ExtractionMethod.FIRECRAWL_METADATA
        assert res.result.publication_date == date(2023, 3, 1)
        assert res.result.recency_score == 50
        assert res.scrape_attempted is True
        assert res.scrape_failed is False

    @pytest.mark.asyncio
    async def test_review_site_marker(self):
        scraped = ScrapeResult(ok=True, markdown="r/cscareerquestions • 2y ago\nNubank interview")
        res = await self._resolve(scraped)
        assert res.result.extraction_method == ExtractionMethod.FIRECRAWL_REDDIT
        assert res.result.publication_date == NOW.date() - timedelta(days=730)

    @pytest.mark.asyncio
    async def test_relative(self):
        res = await self._resolve(ScrapeResult(ok=True, markdown="Posted 3 days ago"))
        assert res.result.extraction_method == ExtractionMethod.FIRECRAWL_RELATIVE
        assert res.result.publication_date == date(2024, 6, 12)
        assert res.result.recency_score == 100

    @pytest.mark.asyncio
    async def test_absolute(self):
        res = await self._resolve(ScrapeResult(ok=True, markdown="Published March 14, 2022"))
        assert res.result.extraction_method == ExtractionMethod.FIRECRAWL_ABSOLUTE
        assert res.result.publication_date == date(2022, 3, 14)
        assert res.result.recency_score == 30

    @pytest.mark.asyncio
    async def test_nothing_found(self):
        res = await self._resolve(ScrapeResult(ok=True, markdown="Join our team", metadata={"title": "Careers"}))
        assert res.result.extraction_method == ExtractionMethod.NOT_FOUND
        assert res.result.recency_score is None
        assert res.scrape_attempted is True
        assert res.scrape_failed is False

    @pytest.mark.asyncio
    async def test_server_error_counts_as_failure(self):
        res = await self._resolve(ScrapeResult(ok=False, status_code=500))
        assert res.result.extraction_method == ExtractionMethod.NOT_FOUND
        assert res.scrape_failed is True

    @pytest.mark.asyncio
    async def test_page_timeout_not_a_failure(self):
        res = await self._resolve(ScrapeResult(ok=False, status_code=408))
        assert res.result.extraction_method == ExtractionMethod.NOT_FOUND
        assert res.scrape_failed is False

    @pytest.mark.asyncio
    async def test_rate_limit_propagates(self):
        scraper = FakeScraper(default=ScrapeRateLimitError(self.URL))
        with pytest.raises(ScrapeRateLimitError):
            await _resolver(scraper).resolve(_citation(self.URL), now=NOW)


class TestDateFromMetadata:
    def test_published_before_modified(self):
        meta = {"modifiedTime": "2024-02-02", "publishedTime": "2020-01-01"}
        assert date_from_metadata(meta) == date(2020, 1, 1)

    def test_list_value(self):
        assert date_from_metadata({"article:published_time": ["2022-02-02T10:00:00Z"]}) == date(2022, 2, 2)

    def test_empty(self):
        assert date_from_metadata({}) is None
