import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

from opensearchpy import OpenSearch
from opensearchpy.exceptions import TransportError
from src.config import Settings, get_settings
from src.exceptions import SearchEngineError

logger = logging.getLogger(__name__)


def _path(*segments: str) -> str:
    return "/" + "/".join(quote(str(segment), safe="") for segment in segments)


class SearchEngineClient:
    """
    Client for OpenSearch operations: typed document indexing, search, scroll
    and index management.

    Every failure is raised as SearchEngineError carrying the structured error
    body returned by the engine, when there is one.
    """

    def __init__(
        self,
        host: str = "http://localhost:9200",
        settings: Optional[Settings] = None,
        client: Optional[OpenSearch] = None,
    ):
        """Initialize OpenSearch client."""
        self.host = host
        self.settings = settings or get_settings()

        # Create the low-level client
        self.client = client or OpenSearch(
            hosts=[host],
            http_compress=True,
            use_ssl=False,
            verify_certs=False,
            ssl_assert_hostname=False,
            ssl_show_warn=False,
        )
        logger.info(f"OpenSearch client initialized with host: {host}")

    def _request(self, operation: str, call, *args, **kwargs) -> Dict[str, Any]:
        try:
            return call(*args, **kwargs)
        except TransportError as e:
            cause = e.info if isinstance(e.info, dict) else None
            status = e.status_code if isinstance(e.status_code, int) else None
            logger.error(f"OpenSearch {operation} failed ({e.status_code}): {e.error}")
            raise SearchEngineError(f"{operation} failed: {e.error}", cause=cause, status_code=status) from e

    # ============================================================
    # DOCUMENTS
    # ============================================================

    def put_document(self, index: str, doc_type: str, doc_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        """Index a document at index/type/id."""
        response = self._request(
            "index", self.client.transport.perform_request, "PUT", _path(index, doc_type, doc_id), body=body
        )
        logger.debug(f"Indexed {index}/{doc_type}/{doc_id}: {response.get('result')}")
        return response

    def get_document(self, index: str, doc_type: str, doc_id: str) -> Dict[str, Any]:
        """Fetch a document from index/type/id."""
        return self._request("get", self.client.transport.perform_request, "GET", _path(index, doc_type, doc_id))

    # ============================================================
    # SEARCH
    # ============================================================

    def search(self, index: str, body: Dict[str, Any], scroll: Optional[str] = None) -> Dict[str, Any]:
        """
        Run a search request.

        Args:
            index: Index to search
            body: Complete request body (query, from, size and appended keys)
            scroll: Optional scroll time to live, opens a scroll context

        Returns:
            Raw search response
        """
        return self._request("search", self.client.search, index=index, body=body, scroll=scroll or None)

    def continue_scroll(self, scroll_id: str, scroll: str) -> Dict[str, Any]:
        """Fetch the next page of an open scroll."""
        return self._request("scroll", self.client.scroll, body={"scroll": scroll, "scroll_id": scroll_id})

    def close_scroll(self, scroll_id: str) -> Dict[str, Any]:
        """Release a scroll context."""
        return self._request("clear_scroll", self.client.clear_scroll, body={"scroll_id": [scroll_id]})

    # ============================================================
    # INDEX MANAGEMENT
    # ============================================================

    def put_mapping(self, index: str, doc_type: str, body: Dict[str, Any]) -> Dict[str, Any]:
        """Define the mapping of a document type."""
        return self._request(
            "put_mapping", self.client.transport.perform_request, "PUT", _path(index, "_mapping", doc_type), body=body
        )

    def create_index(self, index: str) -> Dict[str, Any]:
        response = self._request("create_index", self.client.indices.create, index=index)
        logger.info(f"Created index: {index}")
        return response

    def delete_index(self, index: str) -> Dict[str, Any]:
        response = self._request("delete_index", self.client.indices.delete, index=index)
        logger.info(f"Deleted index: {index}")
        return response

    # ============================================================
    # HEALTH
    # ============================================================

    def health_check(self) -> bool:
        """Check if OpenSearch is healthy and accessible."""
        try:
            health = self.client.cluster.health()
            return health["status"] in ["green", "yellow"]
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return False
