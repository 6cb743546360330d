"""Rate limiting configuration using slowapi."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from citation_recency.core.config import settings

# Keyed by client address; the recency endpoint applies settings.recency_rate_limit
limiter = Limiter(key_func=get_remote_address, enabled=settings.app_env != "test")
