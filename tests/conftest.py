from collections.abc import AsyncGenerator, Iterable

import pytest
from httpx import ASGITransport, AsyncClient

from citation_recency.core.config import settings

# Override settings for tests
settings.app_env = "test"
settings.firecrawl_api_key = ""

from citation_recency.analysis.types import RecencyResult  # noqa: E402
from citation_recency.api.v1.recency import get_recency_processor  # noqa: E402
from citation_recency.collectors.firecrawl import ScrapeResult  # noqa: E402
from citation_recency.main import app  # noqa: E402
from citation_recency.models.url_recency_cache import UrlRecencyCache  # noqa: E402
from citation_recency.services.recency_resolver import UrlRecencyResolver  # noqa: E402
from citation_recency.services.recency_service import RecencyBatchProcessor  # noqa: E402

TEST_PROBLEMATIC_DOMAINS = ("glassdoor.com", "indeed.com", "reddit.com")


class FakeCacheStore:
    """In-memory stand-in for the url_recency_cache repository."""

    def __init__(self):
        self.rows: dict[str, UrlRecencyCache] = {}
        self.lookups: list[list[str]] = []
        self.upserts: list[RecencyResult] = []

    async def get_many(self, urls: Iterable[str]) -> dict[str, UrlRecencyCache]:
        urls = list(urls)
        self.lookups.append(urls)
        return {u: self.rows[u] for u in urls if u in self.rows}

    async def upsert(self, result: RecencyResult) -> None:
        if not result.url:
            return
        self.upserts.append(result)
        self.rows[result.url] = UrlRecencyCache(
            url=result.url,
            domain=result.domain,
            publication_date=result.publication_date,
            recency_score=result.recency_score,
            extraction_method=result.extraction_method.value,
        )


class FakeScraper:
    """Returns canned ScrapeResults (or raises canned exceptions) per URL."""

    def __init__(self, results: dict | None = None, default: ScrapeResult | Exception | None = None):
        self.results = dict(results or {})
        self.default = default if default is not None else ScrapeResult(ok=True)
        self.calls: list[str] = []

    async def scrape(self, url: str) -> ScrapeResult:
        self.calls.append(url)
        outcome = self.results.get(url, self.default)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeClock:
    """Monotonic clock that advances by a fixed step on every reading."""

    def __init__(self, step: float = 0.0):
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value


@pytest.fixture
def cache_store() -> FakeCacheStore:
    return FakeCacheStore()


@pytest.fixture
def scraper() -> FakeScraper:
    return FakeScraper()


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def make_processor(cache_store: FakeCacheStore, sleeps: list[float]):
    """Build a RecencyBatchProcessor over the fake cache; sleeps are recorded, not awaited."""

    async def _record_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    def _make(scraper: FakeScraper | None = None, **kwargs) -> RecencyBatchProcessor:
        resolver = UrlRecencyResolver(scraper, TEST_PROBLEMATIC_DOMAINS)
        kwargs.setdefault("time_budget", 110.0)
        kwargs.setdefault("max_consecutive_failures", 3)
        kwargs.setdefault("large_batch_threshold", 200)
        kwargs.setdefault("large_batch_scrape_cap", 50)
        kwargs.setdefault("clock", FakeClock())
        return RecencyBatchProcessor(cache_store, resolver, sleep=_record_sleep, **kwargs)

    return _make


@pytest.fixture
async def client(make_processor) -> AsyncGenerator[AsyncClient, None]:
    processor = make_processor(None)
    app.dependency_overrides[get_recency_processor] = lambda: processor
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.pop(get_recency_processor, None)
