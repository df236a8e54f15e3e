from functools import lru_cache
from typing import Optional

from src.config import Settings, get_settings

from .client import ObjectStoreClient


@lru_cache(maxsize=1)
def make_object_store_client(settings: Optional[Settings] = None) -> ObjectStoreClient:
    """Factory function to create cached object store client."""
    if settings is None:
        settings = get_settings()
    return ObjectStoreClient(settings=settings)
