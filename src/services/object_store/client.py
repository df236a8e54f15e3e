import copy
import logging
from typing import Any, Dict, Optional

import httpx
from src.config import Settings, get_settings
from src.exceptions import ObjectNotFound, ObjectStoreError

logger = logging.getLogger(__name__)


class ObjectStoreClient:
    """Client for the object service that holds the canonical documents."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.base_url = (base_url or self.settings.object_store.base_url).rstrip("/")
        self.client = httpx.Client(
            base_url=f"{self.base_url}/api/1.0",
            timeout=self.settings.object_store.timeout_seconds,
            transport=transport,
        )
        logger.info(f"Object store client initialized with base url: {self.base_url}")

    def close(self) -> None:
        self.client.close()

    def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = self.client.request(method, url, **kwargs)
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise ObjectNotFound("The following object doesn't exist.") from e
            try:
                cause = e.response.json()
            except ValueError:
                cause = None
            raise ObjectStoreError(
                f"Object service returned {e.response.status_code} for {method} {url}",
                cause=cause if isinstance(cause, dict) else None,
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            raise ObjectStoreError(f"Object service request failed: {e}") from e

    def exists(self, object_id: str, database: str, collection: str) -> bool:
        try:
            self._send("GET", f"/{database}/{collection}/{object_id}")
        except ObjectNotFound:
            return False
        return True

    def get(self, object_id: str, database: str, collection: str) -> Dict[str, Any]:
        return self._send("GET", f"/{database}/{collection}/{object_id}").json()

    def find(
        self,
        query: Dict[str, Any],
        database: str,
        collection: str,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Find objects matching a filter. Returns {"items": [...], "total": n}."""
        params = {"from": offset}
        if limit is not None:
            params["size"] = limit
        return self._send("POST", f"/{database}/{collection}/find", json=query, params=params).json()

    def count(self, query: Dict[str, Any], database: str, collection: str) -> int:
        return int(self._send("POST", f"/{database}/{collection}/count", json=query).json()["count"])


def merge_documents(stored: Dict[str, Any], source: Dict[str, Any]) -> Dict[str, Any]:
    """Deep-merge a search hit source over the stored document; the hit source wins on conflicts."""
    merged = copy.deepcopy(stored)
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_documents(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged
