"""Recency API — scores the freshness of cited sources."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from citation_recency.analysis.citation_extractor import normalize_citations
from citation_recency.collectors.firecrawl import FirecrawlClient
from citation_recency.core.config import settings
from citation_recency.core.exceptions import AppError, BadRequestError
from citation_recency.core.rate_limit import limiter
from citation_recency.db.postgres import get_db
from citation_recency.schemas.recency import RecencyRequest, RecencyResponse
from citation_recency.services.recency_cache import UrlRecencyCacheRepository
from citation_recency.services.recency_resolver import UrlRecencyResolver
from citation_recency.services.recency_service import RecencyBatchProcessor

logger = logging.getLogger(__name__)

router = APIRouter(tags=["recency"])

CITATIONS_REQUIRED = "citations array is required"
EXTRACTION_FAILED = "Failed to extract recency scores"


def get_scraper() -> FirecrawlClient | None:
    """Firecrawl client, or None to run on URL patterns only."""
    if not settings.firecrawl_api_key:
        return None
    return FirecrawlClient(
        api_key=settings.firecrawl_api_key,
        api_url=settings.firecrawl_api_url,
        timeout_seconds=settings.firecrawl_timeout_seconds,
    )


def get_recency_processor(
    db: AsyncSession = Depends(get_db),
    scraper: FirecrawlClient | None = Depends(get_scraper),
) -> RecencyBatchProcessor:
    resolver = UrlRecencyResolver(scraper, settings.problematic_domain_list)
    return RecencyBatchProcessor(UrlRecencyCacheRepository(db), resolver)


@router.post("/extract-recency-scores", response_model=RecencyResponse)
@limiter.limit(settings.recency_rate_limit)
async def extract_recency_scores(
    request: Request,
    processor: RecencyBatchProcessor = Depends(get_recency_processor),
):
    """Resolve publication dates and recency scores for a batch of citations.

    Body: ``{"citations": [...], "testMode": false}``. Each citation is a URL
    string or an object with ``url``/``link``, ``domain``, ``title``, ``sourceType``.
    """
    try:
        body = await request.json()
    except ValueError:
        logger.warning("Unparseable recency request body")
        raise AppError(EXTRACTION_FAILED)

    if not isinstance(body, dict) or not isinstance(body.get("citations"), list):
        raise BadRequestError(CITATIONS_REQUIRED)

    try:
        payload = RecencyRequest.model_validate(body)
    except ValidationError as e:
        logger.info("Invalid recency request: %s", e.errors()[:3])
        raise BadRequestError(CITATIONS_REQUIRED)

    citations = normalize_citations(payload.citations)
    outcome = await processor.process_batch(citations, test_mode=payload.test_mode)

    return JSONResponse(
        content={
            "success": True,
            "results": [r.to_dict() for r in outcome.results],
            "summary": outcome.summary.to_dict(),
        }
    )
