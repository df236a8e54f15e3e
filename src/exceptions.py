from typing import Any, Dict, Optional


class IndexingServiceError(Exception):
    """Base exception for indexing service errors."""

    status_code = 500


# Configuration exceptions
class ConfigurationError(IndexingServiceError):
    """Exception raised when a type configuration is invalid or inconsistent."""

    status_code = 400


class TransformValueError(IndexingServiceError, ValueError):
    """Exception raised when a value cannot be parsed by its transform."""

    status_code = 400


# Lookup exceptions
class NotFound(IndexingServiceError):
    """Base exception for missing objects, configurations, indices or scrolls."""

    status_code = 404


class ConfigurationNotFound(NotFound):
    """Exception raised when no configuration exists for an object type."""


class ObjectNotFound(NotFound):
    """Exception raised when the document store has no such object."""


class IndexNotFound(NotFound):
    """Exception raised when the search index does not exist."""


class ScrollNotFound(NotFound):
    """Exception raised when a scroll identifier is unknown."""


class IndexAlreadyExists(IndexingServiceError):
    """Exception raised when creating an index that already exists."""

    status_code = 409


class PayloadTooLarge(IndexingServiceError):
    """Exception raised when a bulk request exceeds the id limit."""

    status_code = 413


class InvalidScrollRequest(IndexingServiceError):
    """Exception raised when the search engine rejects a scroll identifier."""

    status_code = 422


# Collaborator exceptions
class CollaboratorFailure(IndexingServiceError):
    """Base exception for document store and search engine failures."""

    status_code = 502

    def __init__(self, message: str, cause: Optional[Dict[str, Any]] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.cause = cause
        self.upstream_status = status_code

    @property
    def error_type(self) -> Optional[str]:
        """Structured error type reported by the collaborator, if any."""
        if isinstance(self.cause, dict) and isinstance(self.cause.get("error"), dict):
            return self.cause["error"].get("type")
        return None

    @property
    def reason(self) -> str:
        """Most specific reason available: first root cause, then the error itself."""
        error = self.cause.get("error") if isinstance(self.cause, dict) else None
        if isinstance(error, dict):
            root_causes = error.get("root_cause") or []
            if root_causes and isinstance(root_causes[0], dict) and root_causes[0].get("reason"):
                return str(root_causes[0]["reason"])
            if error.get("reason"):
                return str(error["reason"])
        return str(self)


class SearchEngineError(CollaboratorFailure):
    """Exception raised when an OpenSearch request fails."""


class ObjectStoreError(CollaboratorFailure):
    """Exception raised when an object service request fails."""
