import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from src.config import Settings, get_settings
from src.exceptions import (
    CollaboratorFailure,
    ConfigurationError,
    ConfigurationNotFound,
    IndexAlreadyExists,
    IndexNotFound,
    InvalidScrollRequest,
    ObjectNotFound,
    ObjectStoreError,
    PayloadTooLarge,
    ScrollNotFound,
    SearchEngineError,
)
from src.repositories.configuration import ConfigurationRepository
from src.schemas.configuration import TypeConfiguration
from src.services.object_store.client import ObjectStoreClient, merge_documents
from src.services.search.client import SearchEngineClient
from src.services.search.query_compiler import build_search_body, compile_query

from .projection import project_document

logger = logging.getLogger(__name__)

INDEX_NOT_FOUND = "index_not_found_exception"
INDEX_ALREADY_EXISTS = ("index_already_exists_exception", "resource_already_exists_exception")
INVALID_SCROLL = ("illegal_argument_exception", "parse_exception")


@dataclass(frozen=True)
class ReindexJob:
    """Everything a full reindex needs, copied at dispatch time."""

    config_name: str
    database: str
    collection: str
    index: str
    doc_type: str
    configuration: TypeConfiguration


def _object_id(item: Dict[str, Any]) -> str:
    identifier = item.get("_id")
    if isinstance(identifier, dict):
        identifier = identifier.get("$oid")
    if identifier is None or identifier == "":
        raise ObjectStoreError(f"The object has no identifier: {item.get('_id')!r}")
    return str(identifier)


class IndexingService:
    """Loads type configurations and runs indexing and search operations against the collaborators."""

    def __init__(
        self,
        configurations: ConfigurationRepository,
        object_store: ObjectStoreClient,
        search_engine: SearchEngineClient,
        settings: Optional[Settings] = None,
    ):
        self.configurations = configurations
        self.object_store = object_store
        self.search_engine = search_engine
        self.settings = settings or get_settings()

    # ============================================================
    # CONFIGURATION
    # ============================================================

    def load_configuration(self, config_name: str) -> TypeConfiguration:
        payload = self.configurations.get(config_name)
        if payload is None:
            raise ConfigurationNotFound(
                f"The configuration for the following object type doesn't exist: {config_name}"
            )
        return TypeConfiguration.from_payload(payload)

    def upsert_configuration(self, config_name: str, payload: Dict[str, Any]) -> bool:
        """Create or replace a configuration. Returns True when it was created."""
        pattern = self.settings.indexing.config_name_regex
        if not re.fullmatch(pattern, config_name):
            raise ConfigurationError(
                f"The configuration name is not valid, it must match the following expression: {pattern}"
            )
        _, created = self.configurations.upsert(config_name, payload)
        return created

    def list_configurations(self, limit: int = 100, offset: int = 0) -> List[str]:
        """Names of the stored configurations, ordered by name."""
        return [record.name for record in self.configurations.list(limit=limit, offset=offset)]

    def get_configuration(self, config_name: str) -> Dict[str, Any]:
        payload = self.configurations.get(config_name)
        if payload is None:
            raise ConfigurationNotFound("This configuration doesn't exist.")
        return payload

    def delete_configuration(self, config_name: str) -> None:
        if not self.configurations.delete(config_name):
            raise ConfigurationNotFound("This configuration doesn't exist.")

    # ============================================================
    # INDEXING
    # ============================================================

    def index_object(self, config_name: str, object_id: str) -> Dict[str, Any]:
        """Project one stored object and index it under its own id."""
        configuration = self.load_configuration(config_name)
        database, collection = configuration.require_database()
        index = configuration.require_index()
        doc_type = configuration.require_type()

        if not self.object_store.exists(object_id, database, collection):
            raise ObjectNotFound("The following object doesn't exist.")
        document = self.object_store.get(object_id, database, collection)

        project_document(document, configuration)
        response = self.search_engine.put_document(index, doc_type, object_id, document)
        logger.info(f"Indexed {config_name}/{object_id} into {index}/{doc_type}")
        return {"data": document, "elk": response}

    def index_bulk(self, config_name: str, object_ids: List[str]) -> Dict[str, Any]:
        """Index up to bulk_max_ids objects fetched in a single batch."""
        max_ids = self.settings.indexing.bulk_max_ids
        if len(object_ids) > max_ids:
            raise PayloadTooLarge(f"The bulk indexing process accepts a maximum of {max_ids} ids.")

        configuration = self.load_configuration(config_name)
        database, collection = configuration.require_database()
        index = configuration.require_index()
        doc_type = configuration.require_type()

        query = {"_id": {"$in": [{"$oid": object_id} for object_id in object_ids]}}
        items = self.object_store.find(query, database, collection).get("items", [])
        for item in items:
            object_id = _object_id(item)
            project_document(item, configuration)
            self.search_engine.put_document(index, doc_type, object_id, item)

        logger.info(f"Bulk indexed {len(items)}/{len(object_ids)} {config_name} objects")
        return {"indexed": len(items), "success": True}

    def prepare_full_reindex(self, config_name: str) -> ReindexJob:
        """Validate the configuration and capture what the background reindex needs."""
        configuration = self.load_configuration(config_name)
        database, collection = configuration.require_database()
        return ReindexJob(
            config_name=config_name,
            database=database,
            collection=collection,
            index=configuration.require_index(),
            doc_type=configuration.require_type(),
            configuration=configuration,
        )

    def reindex_all(self, job: ReindexJob) -> Dict[str, Any]:
        """
        Index every object of a collection, page by page.

        A failing page or record is logged and skipped; the run always continues.
        """
        results = {"total": 0, "indexed": 0, "failed": 0, "processing_time": 0}
        start_time = datetime.now()
        page_size = self.settings.indexing.page_size

        total = self.object_store.count({}, job.database, job.collection)
        results["total"] = total
        logger.info(f"Full reindex of {job.config_name}: {total} objects")

        offset = 0
        while offset < total:
            logger.debug(f"  Indexing [ {offset:5d} ~ {offset + page_size - 1:5d} ] / {total:5d}...")
            try:
                items = self.object_store.find({}, job.database, job.collection, offset, page_size).get("items", [])
            except CollaboratorFailure as e:
                logger.error(f"Error fetching page at offset {offset}: {e}")
                offset += page_size
                continue

            for item in items:
                object_id = None
                try:
                    object_id = _object_id(item)
                    project_document(item, job.configuration)
                    self.search_engine.put_document(job.index, job.doc_type, object_id, item)
                    results["indexed"] += 1
                except Exception as e:
                    logger.error(f"Error with object: {object_id}: {e}")
                    results["failed"] += 1
            offset += page_size

        results["processing_time"] = (datetime.now() - start_time).total_seconds()
        logger.info(
            f"Full reindex of {job.config_name} completed in {results['processing_time']:.1f}s: "
            f"{results['indexed']} indexed, {results['failed']} failed"
        )
        return results

    # ============================================================
    # RETRIEVAL & SEARCH
    # ============================================================

    def get_object(self, config_name: str, object_id: str, hydrate: bool = False) -> Dict[str, Any]:
        configuration = self.load_configuration(config_name)
        index = configuration.require_index()
        doc_type = configuration.require_type()

        try:
            response = self.search_engine.get_document(index, doc_type, object_id)
        except SearchEngineError as e:
            if e.error_type == INDEX_NOT_FOUND:
                raise IndexNotFound("This index doesn't exist.") from e
            if e.upstream_status == 404:
                raise ObjectNotFound("The following object doesn't exist.") from e
            raise CollaboratorFailure(e.reason, cause=e.cause) from e

        if hydrate:
            self._hydrate(response, configuration)
        return response

    def search(
        self,
        config_name: str,
        query: Optional[str],
        from_: int = 0,
        size: int = 10,
        scroll: Optional[str] = None,
        hydrate: bool = False,
    ) -> Dict[str, Any]:
        configuration = self.load_configuration(config_name)
        index = configuration.require_index()

        compiled = compile_query(configuration, query)
        body = build_search_body(compiled, from_, size, configuration.append_to_query)

        try:
            response = self.search_engine.search(index, body, scroll=scroll)
        except SearchEngineError as e:
            logger.error(f"Search on {index} failed: {e.reason}")
            if e.error_type == INDEX_NOT_FOUND:
                raise IndexNotFound("This index doesn't exist.") from e
            raise CollaboratorFailure(e.reason, cause=e.cause) from e

        response["query"] = compiled
        if hydrate:
            self._hydrate_hits(response, configuration)
        return response

    def continue_scroll(
        self, config_name: str, scroll_id: str, scroll: Optional[str] = None, hydrate: bool = False
    ) -> Dict[str, Any]:
        configuration = self.load_configuration(config_name)
        ttl = scroll or self.settings.opensearch.default_scroll_ttl
        try:
            response = self.search_engine.continue_scroll(scroll_id, ttl)
        except SearchEngineError as e:
            raise self._scroll_error(e) from e

        if hydrate:
            self._hydrate_hits(response, configuration)
        return response

    def close_scroll(self, scroll_id: str) -> Dict[str, Any]:
        try:
            return self.search_engine.close_scroll(scroll_id)
        except SearchEngineError as e:
            raise self._scroll_error(e) from e

    def _scroll_error(self, error: SearchEngineError) -> Exception:
        # Without an error body the identifier was well formed but unknown
        if error.error_type is None:
            return ScrollNotFound("This scroll identifier doesn't exist")
        if error.error_type in INVALID_SCROLL:
            return InvalidScrollRequest(error.reason)
        return CollaboratorFailure(error.reason, cause=error.cause)

    def _hydrate_hits(self, response: Dict[str, Any], configuration: TypeConfiguration) -> None:
        for hit in response.get("hits", {}).get("hits", []):
            self._hydrate(hit, configuration)

    def _hydrate(self, hit: Dict[str, Any], configuration: TypeConfiguration) -> None:
        """Replace a hit's _source with the stored document merged with it."""
        database, collection = configuration.require_database()
        stored = self.object_store.get(hit["_id"], database, collection)
        hit["_source"] = merge_documents(stored, hit.get("_source") or {})

    # ============================================================
    # INDEX MANAGEMENT
    # ============================================================

    def define_mapping(self, config_name: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        configuration = self.load_configuration(config_name)
        index = configuration.require_index()
        doc_type = configuration.require_type()
        try:
            return self.search_engine.put_mapping(index, doc_type, payload)
        except SearchEngineError as e:
            if e.error_type == INDEX_NOT_FOUND:
                raise IndexNotFound("This index doesn't exist.") from e
            raise CollaboratorFailure(e.reason, cause=e.cause) from e

    def create_index(self, config_name: str) -> Dict[str, Any]:
        index = self.load_configuration(config_name).require_index()
        try:
            return self.search_engine.create_index(index)
        except SearchEngineError as e:
            if e.error_type in INDEX_ALREADY_EXISTS:
                raise IndexAlreadyExists("This index already exists.") from e
            raise CollaboratorFailure(e.reason, cause=e.cause) from e

    def delete_index(self, config_name: str) -> Dict[str, Any]:
        index = self.load_configuration(config_name).require_index()
        try:
            return self.search_engine.delete_index(index)
        except SearchEngineError as e:
            if e.error_type == INDEX_NOT_FOUND:
                raise IndexNotFound("This index doesn't exist.") from e
            raise CollaboratorFailure(e.reason, cause=e.cause) from e
