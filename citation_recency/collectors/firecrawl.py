"""Firecrawl scrape collector (v2 /scrape endpoint, markdown + page metadata)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from citation_recency.core.metrics import SCRAPE_REQUESTS

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.firecrawl.dev"
DEFAULT_TIMEOUT_SECONDS = 30.0


class ScrapeRateLimitError(Exception):
    """Firecrawl answered 429; the caller should stop scraping for this batch."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Firecrawl rate limit hit while scraping {url}")


@dataclass
class ScrapeResult:
    """Outcome of a single scrape call. Failures are data, not exceptions."""

    ok: bool
    status_code: int | None = None
    markdown: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)
    timed_out: bool = False

    @property
    def counts_as_failure(self) -> bool:
        """Whether this outcome should count towards the consecutive-failure cutoff.

        Slow pages (timeouts, 408) are expected and do not mean the API is down.
        """
        return not self.ok and not self.timed_out and self.status_code != 408


class FirecrawlClient:
    """Thin async client for Firecrawl's scrape API."""

    def __init__(
        self,
        api_key: str,
        api_url: str = DEFAULT_API_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    async def scrape(self, url: str) -> ScrapeResult:
        """Scrape one page and return its main-content markdown and metadata.

        Raises:
            ScrapeRateLimitError: on HTTP 429. Every other failure is
                returned as ``ScrapeResult(ok=False)``.
        """
        payload = {
            "url": url,
            "formats": ["markdown"],
            "onlyMainContent": True,
            "timeout": int(self.timeout_seconds * 1000),
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        # Leave the API a few seconds beyond its own page timeout to answer
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds + 5) as client:
                resp = await client.post(f"{self.api_url}/v2/scrape", json=payload, headers=headers)
        except httpx.TimeoutException:
            logger.info("Firecrawl timeout for %s", url)
            SCRAPE_REQUESTS.labels(outcome="timeout").inc()
            return ScrapeResult(ok=False, timed_out=True)
        except httpx.HTTPError as e:
            logger.warning("Firecrawl request failed for %s: %s", url, e)
            SCRAPE_REQUESTS.labels(outcome="error").inc()
            return ScrapeResult(ok=False)

        if resp.status_code == 429:
            logger.warning("Firecrawl rate limit (429) for %s", url)
            SCRAPE_REQUESTS.labels(outcome="rate_limited").inc()
            raise ScrapeRateLimitError(url)

        if resp.status_code == 408:
            logger.info("Firecrawl page timeout (408) for %s", url)
            SCRAPE_REQUESTS.labels(outcome="timeout").inc()
            return ScrapeResult(ok=False, status_code=408)

        if resp.status_code >= 400:
            logger.warning("Firecrawl API %d for %s: %s", resp.status_code, url, resp.text[:300])
            SCRAPE_REQUESTS.labels(outcome="error").inc()
            return ScrapeResult(ok=False, status_code=resp.status_code)

        try:
            data = resp.json()
        except ValueError:
            logger.warning("Firecrawl returned non-JSON body for %s", url)
            SCRAPE_REQUESTS.labels(outcome="error").inc()
            return ScrapeResult(ok=False, status_code=resp.status_code)

        if not isinstance(data, dict) or not data.get("success"):
            error = data.get("error") if isinstance(data, dict) else None
            logger.warning("Firecrawl scrape unsuccessful for %s: %s", url, error)
            SCRAPE_REQUESTS.labels(outcome="error").inc()
            return ScrapeResult(ok=False, status_code=resp.status_code)

        page = data.get("data") or {}
        SCRAPE_REQUESTS.labels(outcome="ok").inc()
        return ScrapeResult(
            ok=True,
            status_code=resp.status_code,
            markdown=page.get("markdown") or "",
            metadata=page.get("metadata") or {},
        )
