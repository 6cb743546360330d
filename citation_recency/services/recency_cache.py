"""URL recency cache — dedup + persistent memo of resolved URLs.

Every URL is resolved at most once across all batches: resolutions are
upserted into ``url_recency_cache`` and later lookups short-circuit to a
``cache-hit`` result. Rows with a null score are negative entries (the URL
was checked and had no date) and are served as hits too.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from citation_recency.analysis.types import Citation, ExtractionMethod, RecencyResult
from citation_recency.models.url_recency_cache import UrlRecencyCache

logger = logging.getLogger(__name__)

LOOKUP_CHUNK_SIZE = 50
LARGE_LOOKUP_CHUNK_SIZE = 25
LARGE_LOOKUP_THRESHOLD = 500  # unique URLs


class CachedRecency(Protocol):
    """What the orchestrator reads from a cache row."""

    url: str
    domain: str
    publication_date: date | None
    recency_score: int | None


class CacheStore(Protocol):
    async def get_many(self, urls: Iterable[str]) -> Mapping[str, CachedRecency]: ...

    async def upsert(self, result: RecencyResult) -> None: ...


def lookup_chunk_size(url_count: int) -> int:
    """Smaller IN (...) lists for very large batches."""
    return LARGE_LOOKUP_CHUNK_SIZE if url_count > LARGE_LOOKUP_THRESHOLD else LOOKUP_CHUNK_SIZE


class UrlRecencyCacheRepository:
    """PostgreSQL-backed ``CacheStore``."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_many(self, urls: Iterable[str]) -> dict[str, UrlRecencyCache]:
        """Fetch cached rows for the given URLs.

        A failing chunk is logged and its URLs are treated as misses.
        """
        unique = list(dict.fromkeys(u for u in urls if u))
        if not unique:
            return {}

        size = lookup_chunk_size(len(unique))
        found: dict[str, UrlRecencyCache] = {}
        for start in range(0, len(unique), size):
            chunk = unique[start : start + size]
            try:
                rows = await self.db.execute(select(UrlRecencyCache).where(UrlRecencyCache.url.in_(chunk)))
                for row in rows.scalars().all():
                    found[row.url] = row
            except (SQLAlchemyError, OSError) as e:
                logger.warning("Cache lookup failed for %d URLs: %s", len(chunk), e)
                await self._rollback()

        logger.debug("Cache lookup: %d/%d hits", len(found), len(unique))
        return found

    async def upsert(self, result: RecencyResult) -> None:
        """Insert or refresh the cache row for a resolved URL. Never raises."""
        if not result.url:
            return

        values = {
            "url": result.url,
            "domain": result.domain[:255],
            "publication_date": result.publication_date,
            "recency_score": result.recency_score,
            "extraction_method": result.extraction_method.value,
        }
        stmt = (
            pg_insert(UrlRecencyCache)
            .values(**values)
            .on_conflict_do_update(
                index_elements=[UrlRecencyCache.url],
                set_={
                    "domain": values["domain"],
                    "publication_date": values["publication_date"],
                    "recency_score": values["recency_score"],
                    "extraction_method": values["extraction_method"],
                    "last_checked_at": func.now(),
                },
            )
        )
        try:
            await self.db.execute(stmt)
            await self.db.commit()
        except (SQLAlchemyError, OSError):
            logger.exception("Failed to cache recency for %s", result.url)
            await self._rollback()

    async def _rollback(self) -> None:
        try:
            await self.db.rollback()
        except (SQLAlchemyError, OSError) as e:
            logger.warning("Rollback failed: %s", e)


# ---------------------------------------------------------------------------
# Partitioning
# ---------------------------------------------------------------------------


@dataclass
class CachePartition:
    """Citations split by cache status."""

    resolved: dict[str, RecencyResult] = field(default_factory=dict)  # url -> cache-hit result
    to_resolve: dict[str, list[Citation]] = field(default_factory=dict)  # url -> citations sharing it
    without_url: list[Citation] = field(default_factory=list)


def partition_by_cache(citations: Iterable[Citation], cached: Mapping[str, CachedRecency]) -> CachePartition:
    """Split citations into cache hits, unique misses and URL-less entries."""
    partition = CachePartition()
    for citation in citations:
        url = citation.url
        if not url:
            partition.without_url.append(citation)
            continue
        if url in partition.resolved:
            continue
        row = cached.get(url)
        if row is not None:
            partition.resolved[url] = RecencyResult(
                domain=citation.domain,
                url=url,
                title=citation.title,
                source_type=citation.source_type,
                publication_date=row.publication_date,
                recency_score=row.recency_score,
                extraction_method=ExtractionMethod.CACHE_HIT,
            )
        else:
            partition.to_resolve.setdefault(url, []).append(citation)
    return partition
