from functools import lru_cache
from typing import Optional

from src.config import Settings, get_settings

from .client import SearchEngineClient


@lru_cache(maxsize=1)
def make_search_client(settings: Optional[Settings] = None) -> SearchEngineClient:
    """Factory function to create cached OpenSearch client."""
    if settings is None:
        settings = get_settings()
    return SearchEngineClient(host=settings.opensearch.host, settings=settings)
