from citation_recency.models.url_recency_cache import UrlRecencyCache

__all__ = [
    "UrlRecencyCache",
]
