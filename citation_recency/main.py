import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from citation_recency.api.v1.recency import EXTRACTION_FAILED
from citation_recency.api.v1.recency import router as recency_router
from citation_recency.api.v1.router import api_v1_router
from citation_recency.core.config import settings, validate_settings_for_production
from citation_recency.core.exceptions import AppError, app_error_handler
from citation_recency.core.logging import setup_logging
from citation_recency.core.metrics import PrometheusMiddleware, metrics_response
from citation_recency.core.middleware import RequestLoggingMiddleware
from citation_recency.core.rate_limit import limiter
from citation_recency.core.sentry import init_sentry
from citation_recency.db.postgres import engine
from citation_recency.schemas.recency import HealthResponse

# Configure logging before anything else
setup_logging()
init_sentry()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    validate_settings_for_production()
    logger.info(
        "Starting Citation Recency service (firecrawl=%s)",
        "on" if settings.firecrawl_api_key else "off",
    )

    yield

    # Shutdown
    await engine.dispose()
    logger.info("Citation Recency service shut down")


app = FastAPI(
    title="Citation Recency",
    description="Citation extraction and publication-date recency scoring",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/api/docs" if settings.app_debug else None,
    redoc_url="/api/redoc" if settings.app_debug else None,
)

app.add_exception_handler(AppError, app_error_handler)


@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    logger.error("Unhandled %s on %s %s:\n%s", type(exc).__name__, request.method, request.url.path, "".join(tb))
    return JSONResponse(status_code=500, content={"error": EXTRACTION_FAILED})


# Rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Request logging + metrics middleware
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(PrometheusMiddleware)

# CORS: allowed_origins is comma-separated
_origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=_origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(api_v1_router)

# Unversioned path kept for existing callers
app.include_router(recency_router, include_in_schema=False)


@app.get("/api/v1/health", response_model=HealthResponse)
async def health():
    return {
        "status": "ok",
        "firecrawl": bool(settings.firecrawl_api_key),
    }


@app.get("/metrics", include_in_schema=False)
async def metrics():
    return metrics_response()
