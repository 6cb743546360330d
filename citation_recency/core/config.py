from pydantic_settings import BaseSettings, SettingsConfigDict

# Hosts that are slow or block scrapers (job-review sites, social networks).
# Matched as a domain suffix, so "uk.indeed.com" is covered by "indeed.com".
DEFAULT_PROBLEMATIC_DOMAINS = (
    "glassdoor.com,glassdoor.co.uk,glassdoor.ie,glassdoor.de,glassdoor.fr,glassdoor.com.br,"
    "indeed.com,linkedin.com,facebook.com,twitter.com,x.com,reddit.com,yelp.com,"
    "comparably.com,greatplacetowork.com,teamblind.com,ambitionbox.com,ziprecruiter.com"
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # PostgreSQL
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "recency_user"
    postgres_password: str = "changeme"
    postgres_db: str = "citation_recency"

    @property
    def postgres_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def postgres_url_sync(self) -> str:
        """For Alembic migrations (sync driver)."""
        return (
            f"postgresql+psycopg2://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # Firecrawl scrape API (leave key empty to run URL-pattern matching only)
    firecrawl_api_key: str = ""
    firecrawl_api_url: str = "https://api.firecrawl.dev"
    firecrawl_timeout_seconds: float = 30.0

    # Batch policy
    recency_time_budget_seconds: float = 110.0
    recency_max_consecutive_failures: int = 3
    recency_large_batch_threshold: int = 200  # unique URLs
    recency_large_batch_scrape_cap: int = 50  # scrape calls allowed before degrading
    problematic_domains: str = DEFAULT_PROBLEMATIC_DOMAINS  # comma-separated

    @property
    def problematic_domain_list(self) -> list[str]:
        return [d.strip().lower() for d in self.problematic_domains.split(",") if d.strip()]

    # Rate limiting of the public endpoint (slowapi syntax)
    recency_rate_limit: str = "30/minute"

    # App
    app_env: str = "development"
    app_debug: bool = True
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    # CORS
    allowed_origins: str = "*"  # comma-separated

    # Logging
    log_level: str = "INFO"
    log_json: bool = False  # set True in production for structured JSON logs
    scrape_log_level: str = ""  # level for the Firecrawl collector; empty follows LOG_LEVEL

    # Sentry
    sentry_dsn: str = ""  # leave empty to disable


settings = Settings()


def validate_settings_for_production() -> None:
    """Validate critical settings. Called on startup."""
    errors: list[str] = []

    if settings.recency_time_budget_seconds <= 0:
        errors.append("RECENCY_TIME_BUDGET_SECONDS must be positive")

    if settings.app_env == "production":
        if settings.allowed_origins == "*":
            errors.append("ALLOWED_ORIGINS must not be '*' in production")
        if settings.app_debug:
            errors.append("APP_DEBUG must be false in production")
        if not settings.firecrawl_api_key:
            errors.append("FIRECRAWL_API_KEY must be set in production")

    if errors:
        raise SystemExit("Configuration errors:\n  - " + "\n  - ".join(errors))
