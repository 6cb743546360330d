from datetime import date

from pydantic import BaseModel, ConfigDict, Field


class CitationIn(BaseModel):
    """One citation as sent by clients; ``link`` is accepted as an alias of ``url``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    url: str | None = None
    link: str | None = None
    domain: str | None = None
    title: str | None = None
    source_type: str | None = Field(None, alias="sourceType")


class RecencyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    citations: list[CitationIn | str]
    test_mode: bool = Field(False, alias="testMode")


class RecencyResultOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    domain: str
    title: str | None = None
    url: str | None = None
    publication_date: date | None = Field(None, alias="publicationDate")
    recency_score: int | None = Field(alias="recencyScore")
    extraction_method: str = Field(alias="extractionMethod")
    source_type: str | None = Field(None, alias="sourceType")


class RecencySummaryOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int
    unique_urls: int = Field(alias="uniqueUrls")
    duplicates_avoided: int = Field(alias="duplicatesAvoided")
    with_dates: int = Field(alias="withDates")
    without_dates: int = Field(alias="withoutDates")
    cache_hits: int = Field(alias="cacheHits")
    newly_analyzed: int = Field(alias="newlyAnalyzed")
    firecrawl_requests_made: int = Field(alias="firecrawlRequestsMade")
    problematic_domains_skipped: int = Field(alias="problematicDomainsSkipped")


class RecencyResponse(BaseModel):
    success: bool = True
    results: list[RecencyResultOut]
    summary: RecencySummaryOut


class HealthResponse(BaseModel):
    status: str
    firecrawl: bool
