"""
run_recency_check.py — offline recency check for a saved AI response

Runs the pipeline in a single process, without the database:
  1. Read a response text file (markdown or plain)
  2. Extract citations (bare URLs, [n] markers, Sources section)
  3. Resolve recency for every citation (URL patterns only unless --scrape)
  4. Print the per-citation results and the batch summary as JSON

Usage:
    python run_recency_check.py response.md
    FIRECRAWL_API_KEY=fc-... python run_recency_check.py response.md --scrape
"""

import argparse
import asyncio
import json
import logging
import sys

from citation_recency.analysis.citation_extractor import extract_citations
from citation_recency.analysis.types import RecencyResult
from citation_recency.collectors.firecrawl import FirecrawlClient
from citation_recency.core.config import settings
from citation_recency.services.recency_resolver import UrlRecencyResolver
from citation_recency.services.recency_service import RecencyBatchProcessor

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)s %(levelname)s: %(message)s",
)
logger = logging.getLogger("recency_check")


class NullCache:
    """Cache store that stores nothing; process_batch already dedups URLs within a run."""

    async def get_many(self, urls):
        return {}

    async def upsert(self, result: RecencyResult) -> None:
        return None


async def main(path: str, scrape: bool) -> int:
    with open(path, encoding="utf-8") as f:
        text = f.read()

    citations = extract_citations(text)
    logger.info("Extracted %d citations from %s", len(citations), path)
    if not citations:
        return 1

    scraper = None
    if scrape:
        if not settings.firecrawl_api_key:
            logger.error("--scrape needs FIRECRAWL_API_KEY")
            return 2
        scraper = FirecrawlClient(
            api_key=settings.firecrawl_api_key,
            api_url=settings.firecrawl_api_url,
            timeout_seconds=settings.firecrawl_timeout_seconds,
        )

    processor = RecencyBatchProcessor(
        NullCache(),
        UrlRecencyResolver(scraper, settings.problematic_domain_list),
    )
    outcome = await processor.process_batch(citations, test_mode=not scrape)

    print(
        json.dumps(
            {
                "results": [r.to_dict() for r in outcome.results],
                "summary": outcome.summary.to_dict(),
            },
            indent=2,
            ensure_ascii=False,
        )
    )
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Score the recency of citations in a saved AI response")
    parser.add_argument("path", help="Response text file")
    parser.add_argument("--scrape", action="store_true", help="Scrape pages via Firecrawl when the URL has no date")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.path, args.scrape)))
