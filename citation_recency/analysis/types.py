"""Core types and DTOs for citation extraction and recency resolution."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from enum import Enum


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ExtractionMethod(str, Enum):
    """How a citation's publication date was (or was not) determined."""

    URL_PATTERN = "url-pattern"  # Date embedded in the URL path
    FIRECRAWL_METADATA = "firecrawl-metadata"  # publishedTime / og:published_time etc.
    FIRECRAWL_RELATIVE = "firecrawl-relative"  # "3 days ago" in scraped body
    FIRECRAWL_ABSOLUTE = "firecrawl-absolute"  # "March 14, 2022" in scraped body
    FIRECRAWL_REDDIT = "firecrawl-reddit"  # "• 2y ago" review-site format
    CACHE_HIT = "cache-hit"
    NOT_FOUND = "not-found"
    RATE_LIMIT_HIT = "rate-limit-hit"
    TIMEOUT = "timeout"  # Batch time budget exhausted before resolution
    PROBLEMATIC_DOMAIN = "problematic-domain"  # Blocklisted host, never scraped


# ---------------------------------------------------------------------------
# Data containers
# ---------------------------------------------------------------------------


@dataclass
class Citation:
    """A single source reference found in (or supplied alongside) an AI response."""

    url: str | None = None
    domain: str = "unknown"
    title: str | None = None
    source_type: str | None = None  # perplexity | google-ai-overviews | search-results


@dataclass
class RecencyResult:
    """Freshness resolution for one citation."""

    domain: str
    extraction_method: ExtractionMethod
    url: str | None = None
    title: str | None = None
    publication_date: date | None = None
    recency_score: int | None = None  # None = unknown, 0 = very old
    source_type: str | None = None

    @property
    def has_date(self) -> bool:
        return self.recency_score is not None

    def for_citation(self, citation: Citation) -> RecencyResult:
        """Copy this URL-level result onto another citation sharing the URL."""
        return replace(
            self,
            title=citation.title if citation.title is not None else self.title,
            source_type=citation.source_type,
        )

    def to_dict(self) -> dict:
        """Serialize with the wire (camelCase) keys."""
        data: dict = {
            "domain": self.domain,
            "recencyScore": self.recency_score,
            "extractionMethod": self.extraction_method.value,
        }
        if self.title is not None:
            data["title"] = self.title
        if self.url is not None:
            data["url"] = self.url
        if self.publication_date is not None:
            data["publicationDate"] = self.publication_date.isoformat()
        if self.source_type is not None:
            data["sourceType"] = self.source_type
        return data


@dataclass
class BatchSummary:
    """Aggregate counters returned alongside a batch of results."""

    total: int = 0
    unique_urls: int = 0
    duplicates_avoided: int = 0
    with_dates: int = 0
    without_dates: int = 0
    cache_hits: int = 0
    newly_analyzed: int = 0
    firecrawl_requests_made: int = 0
    problematic_domains_skipped: int = 0

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "uniqueUrls": self.unique_urls,
            "duplicatesAvoided": self.duplicates_avoided,
            "withDates": self.with_dates,
            "withoutDates": self.without_dates,
            "cacheHits": self.cache_hits,
            "newlyAnalyzed": self.newly_analyzed,
            "firecrawlRequestsMade": self.firecrawl_requests_made,
            "problematicDomainsSkipped": self.problematic_domains_skipped,
        }


@dataclass
class BatchOutcome:
    """Output of the batch orchestrator: one result per input citation."""

    results: list[RecencyResult]
    summary: BatchSummary
