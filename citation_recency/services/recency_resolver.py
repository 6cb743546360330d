"""URL Recency Resolver — finds the publication date of a single cited URL.

Resolution chain, first success wins:
  1. Date embedded in the URL path           → url-pattern (no network)
  2. Blocklisted host (job-review / social)  → problematic-domain (no network)
  3. Firecrawl scrape:
       a. page metadata (publishedTime, og:published_time ...) → firecrawl-metadata
       b. review-site "• 2y ago" markers                       → firecrawl-reddit
       c. "3 days ago" / "yesterday"                            → firecrawl-relative
       d. "March 14, 2022" / "2022-03-14" in body              → firecrawl-absolute
  4. Nothing found                            → not-found

A 429 from Firecrawl is not handled here: ``ScrapeRateLimitError``
propagates so the batch orchestrator can stop scraping.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timezone

from citation_recency.analysis.citation_extractor import extract_domain
from citation_recency.analysis.date_extractor import (
    extract_absolute_date,
    extract_date_from_url,
    extract_platform_relative_date,
    extract_relative_date,
    parse_date_value,
)
from citation_recency.analysis.scoring import calculate_recency_score
from citation_recency.analysis.types import Citation, ExtractionMethod, RecencyResult
from citation_recency.collectors.firecrawl import FirecrawlClient, ScrapeResult

logger = logging.getLogger(__name__)

# Checked in order; published fields win over modified ones
METADATA_DATE_FIELDS = (
    "publishedTime",
    "article:published_time",
    "og:published_time",
    "ogPublishedTime",
    "datePublished",
    "publishedDate",
    "modifiedTime",
    "article:modified_time",
    "og:updated_time",
    "dateModified",
)


@dataclass
class Resolution:
    """Resolver output plus what it cost in scrape calls."""

    result: RecencyResult
    scrape_attempted: bool = False
    scrape_failed: bool = False


def date_from_metadata(metadata: dict) -> date | None:
    for key in METADATA_DATE_FIELDS:
        found = parse_date_value(metadata.get(key))
        if found:
            return found
    return None


class UrlRecencyResolver:
    """Resolve a citation's publication date and recency score."""

    def __init__(self, scraper: FirecrawlClient | None, problematic_domains: Iterable[str] = ()):
        self.scraper = scraper
        self.problematic_domains = tuple(d.lower().lstrip(".") for d in problematic_domains if d)

    @property
    def can_scrape(self) -> bool:
        return self.scraper is not None

    def is_problematic_domain(self, domain: str) -> bool:
        """Suffix match, so "uk.indeed.com" is caught by "indeed.com"."""
        domain = (domain or "").lower()
        return any(domain == d or domain.endswith(f".{d}") for d in self.problematic_domains)

    def _dated(
        self,
        citation: Citation,
        published: date,
        method: ExtractionMethod,
        now: datetime,
    ) -> RecencyResult:
        return RecencyResult(
            domain=citation.domain,
            url=citation.url,
            title=citation.title,
            source_type=citation.source_type,
            publication_date=published,
            recency_score=calculate_recency_score(published, now),
            extraction_method=method,
        )

    def _undated(self, citation: Citation, method: ExtractionMethod) -> RecencyResult:
        return RecencyResult(
            domain=citation.domain,
            url=citation.url,
            title=citation.title,
            source_type=citation.source_type,
            extraction_method=method,
        )

    async def resolve(
        self,
        citation: Citation,
        *,
        skip_scrape: bool = False,
        now: datetime | None = None,
    ) -> Resolution:
        """Run the resolution chain for one citation.

        Raises:
            ScrapeRateLimitError: Firecrawl answered 429.
        """
        now = now or datetime.now(timezone.utc)
        if not citation.url:
            return Resolution(self._undated(citation, ExtractionMethod.NOT_FOUND))

        # 1. URL path
        published = extract_date_from_url(citation.url)
        if published:
            return Resolution(self._dated(citation, published, ExtractionMethod.URL_PATTERN, now))

        # 2. Blocklist, matched on the URL host; client-supplied domain labels are not trusted
        host = extract_domain(citation.url) or citation.domain
        if self.is_problematic_domain(host):
            logger.debug("Skipping problematic domain %s", host)
            return Resolution(self._undated(citation, ExtractionMethod.PROBLEMATIC_DOMAIN))

        if skip_scrape or self.scraper is None:
            return Resolution(self._undated(citation, ExtractionMethod.NOT_FOUND))

        # 3. Scrape
        scraped = await self.scraper.scrape(citation.url)
        if not scraped.ok:
            return Resolution(
                self._undated(citation, ExtractionMethod.NOT_FOUND),
                scrape_attempted=True,
                scrape_failed=scraped.counts_as_failure,
            )

        found = self._date_from_page(scraped, now)
        if found is None:
            logger.debug("No date found in scraped page %s", citation.url)
            return Resolution(self._undated(citation, ExtractionMethod.NOT_FOUND), scrape_attempted=True)

        published, method = found
        return Resolution(self._dated(citation, published, method, now), scrape_attempted=True)

    @staticmethod
    def _date_from_page(scraped: ScrapeResult, now: datetime) -> tuple[date, ExtractionMethod] | None:
        published = date_from_metadata(scraped.metadata)
        if published:
            return published, ExtractionMethod.FIRECRAWL_METADATA

        markdown = scraped.markdown
        published = extract_platform_relative_date(markdown, now)
        if published:
            return published, ExtractionMethod.FIRECRAWL_REDDIT

        published = extract_relative_date(markdown, now)
        if published:
            return published, ExtractionMethod.FIRECRAWL_RELATIVE

        published = extract_absolute_date(markdown)
        if published:
            return published, ExtractionMethod.FIRECRAWL_ABSOLUTE

        return None
