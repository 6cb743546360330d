"""Recency batch orchestrator — Pipeline Step.

Flow for one batch:
  1. Collapse duplicate URLs and look them up in the URL cache
  2. Resolve each unique miss sequentially (URL pattern → blocklist → scrape)
  3. Write every resolution back to the cache (except 429 placeholders)
  4. Fan results back out to the original citations, in input order

Scraping degrades to URL patterns only once Firecrawl rate-limits us, after
a streak of consecutive scrape failures, or when a very large batch has
already used its scrape allowance. A wall-clock budget bounds the whole
batch; whatever is left unresolved when it runs out is marked ``timeout``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone

from citation_recency.analysis.types import (
    BatchOutcome,
    BatchSummary,
    Citation,
    ExtractionMethod,
    RecencyResult,
)
from citation_recency.collectors.firecrawl import ScrapeRateLimitError
from citation_recency.core.config import settings
from citation_recency.core.metrics import CACHE_LOOKUPS, EXTRACTION_METHODS
from citation_recency.services.recency_cache import CacheStore, partition_by_cache
from citation_recency.services.recency_resolver import UrlRecencyResolver

logger = logging.getLogger(__name__)

# Inter-request delay in seconds, by number of cache misses in the batch
LARGE_BATCH_DELAY = 0.5  # > 100 misses
MEDIUM_BATCH_DELAY = 0.75  # > 50 misses
SMALL_BATCH_DELAY = 1.0
PROBLEMATIC_DOMAIN_DELAY = 0.2


def inter_request_delay(miss_count: int, method: ExtractionMethod) -> float:
    """Shorter pauses for bigger batches; near-zero after a blocklisted host."""
    if miss_count > 100:
        base = LARGE_BATCH_DELAY
    elif miss_count > 50:
        base = MEDIUM_BATCH_DELAY
    else:
        base = SMALL_BATCH_DELAY
    if method == ExtractionMethod.PROBLEMATIC_DOMAIN:
        return min(PROBLEMATIC_DOMAIN_DELAY, base)
    return base


@dataclass
class BatchContext:
    """Mutable state of one ``process_batch`` call."""

    started_at: float
    scrape_calls: int = 0
    consecutive_failures: int = 0
    rate_limited: bool = False
    problematic_skipped: int = 0
    newly_analyzed: int = 0
    resolved: dict[str, RecencyResult] = field(default_factory=dict)


class RecencyBatchProcessor:
    """Resolve recency for a batch of citations against a cache and a resolver."""

    def __init__(
        self,
        cache: CacheStore,
        resolver: UrlRecencyResolver,
        *,
        time_budget: float | None = None,
        max_consecutive_failures: int | None = None,
        large_batch_threshold: int | None = None,
        large_batch_scrape_cap: int | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.cache = cache
        self.resolver = resolver
        self.time_budget = time_budget if time_budget is not None else settings.recency_time_budget_seconds
        self.max_consecutive_failures = (
            max_consecutive_failures
            if max_consecutive_failures is not None
            else settings.recency_max_consecutive_failures
        )
        self.large_batch_threshold = (
            large_batch_threshold if large_batch_threshold is not None else settings.recency_large_batch_threshold
        )
        self.large_batch_scrape_cap = (
            large_batch_scrape_cap if large_batch_scrape_cap is not None else settings.recency_large_batch_scrape_cap
        )
        self.clock = clock
        self.sleep = sleep

    def _should_skip_scrape(self, ctx: BatchContext, miss_count: int, test_mode: bool) -> bool:
        if test_mode or not self.resolver.can_scrape:
            return True
        if ctx.rate_limited:
            return True
        if ctx.consecutive_failures >= self.max_consecutive_failures:
            return True
        return miss_count > self.large_batch_threshold and ctx.scrape_calls > self.large_batch_scrape_cap

    async def process_batch(
        self,
        citations: Sequence[Citation],
        *,
        test_mode: bool = False,
        now: datetime | None = None,
    ) -> BatchOutcome:
        """Resolve every citation, returning one result per input in input order."""
        now = now or datetime.now(timezone.utc)
        ctx = BatchContext(started_at=self.clock())

        # --- 1. Dedup + cache lookup ---
        urls = [c.url for c in citations if c.url]
        unique_urls = list(dict.fromkeys(urls))
        cached = await self.cache.get_many(unique_urls) if unique_urls else {}
        partition = partition_by_cache(citations, cached)
        ctx.resolved.update(partition.resolved)

        misses = list(partition.to_resolve.items())
        CACHE_LOOKUPS.labels(result="hit").inc(len(partition.resolved))
        CACHE_LOOKUPS.labels(result="miss").inc(len(misses))
        logger.info(
            "Recency batch: %d citations, %d unique URLs, %d cache hits, %d to analyze",
            len(citations),
            len(unique_urls),
            len(partition.resolved),
            len(misses),
        )

        # --- 2. Resolve misses sequentially ---
        scraping_possible = not test_mode and self.resolver.can_scrape
        for index, (url, group) in enumerate(misses):
            if self.clock() - ctx.started_at >= self.time_budget:
                logger.warning(
                    "Recency time budget (%.0fs) exhausted after %d/%d URLs",
                    self.time_budget,
                    index,
                    len(misses),
                )
                break

            citation = group[0]
            skip_scrape = self._should_skip_scrape(ctx, len(misses), test_mode)
            try:
                resolution = await self.resolver.resolve(citation, skip_scrape=skip_scrape, now=now)
            except ScrapeRateLimitError:
                logger.warning("Firecrawl rate limit hit, URL patterns only for the rest of the batch")
                ctx.rate_limited = True
                ctx.scrape_calls += 1
                result = RecencyResult(
                    domain=citation.domain,
                    url=url,
                    title=citation.title,
                    source_type=citation.source_type,
                    extraction_method=ExtractionMethod.RATE_LIMIT_HIT,
                )
            else:
                result = resolution.result
                ctx.newly_analyzed += 1
                if resolution.scrape_attempted:
                    ctx.scrape_calls += 1
                    if resolution.scrape_failed:
                        ctx.consecutive_failures += 1
                        if ctx.consecutive_failures == self.max_consecutive_failures:
                            logger.warning(
                                "%d consecutive Firecrawl failures, URL patterns only for the rest of the batch",
                                ctx.consecutive_failures,
                            )
                    else:
                        ctx.consecutive_failures = 0
                if result.extraction_method == ExtractionMethod.PROBLEMATIC_DOMAIN:
                    ctx.problematic_skipped += 1
                await self.cache.upsert(result)

            ctx.resolved[url] = result
            logger.debug(
                "Analyzed %d/%d: %s - %s (scrape calls: %d)",
                index + 1,
                len(misses),
                result.domain,
                result.extraction_method.value,
                ctx.scrape_calls,
                extra={"url": url, "extraction_method": result.extraction_method.value},
            )

            if scraping_possible and index < len(misses) - 1:
                await self.sleep(inter_request_delay(len(misses), result.extraction_method))

        # --- 3. Fan out to the original citations ---
        results: list[RecencyResult] = []
        for citation in citations:
            if not citation.url:
                result = RecencyResult(
                    domain=citation.domain,
                    title=citation.title,
                    source_type=citation.source_type,
                    extraction_method=ExtractionMethod.NOT_FOUND,
                )
            elif citation.url in ctx.resolved:
                result = ctx.resolved[citation.url].for_citation(citation)
            else:
                result = RecencyResult(
                    domain=citation.domain,
                    url=citation.url,
                    title=citation.title,
                    source_type=citation.source_type,
                    extraction_method=ExtractionMethod.TIMEOUT,
                )
            EXTRACTION_METHODS.labels(method=result.extraction_method.value).inc()
            results.append(result)

        with_dates = sum(1 for r in results if r.has_date)
        summary = BatchSummary(
            total=len(results),
            unique_urls=len(unique_urls),
            duplicates_avoided=len(urls) - len(unique_urls),
            with_dates=with_dates,
            without_dates=len(results) - with_dates,
            cache_hits=len(partition.resolved),
            newly_analyzed=ctx.newly_analyzed,
            firecrawl_requests_made=ctx.scrape_calls,
            problematic_domains_skipped=ctx.problematic_skipped,
        )
        logger.info(
            "Recency batch done: %d/%d dated, %d scrape calls, %.1fs",
            with_dates,
            len(results),
            ctx.scrape_calls,
            self.clock() - ctx.started_at,
        )
        return BatchOutcome(results=results, summary=summary)
