"""Shared test fixtures and in-memory collaborators."""

import copy
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from src.config import Settings  # noqa: E402
from src.exceptions import ObjectStoreError, SearchEngineError  # noqa: E402


class FakeConfigurationStore:
    def __init__(self, configurations: Optional[Dict[str, Dict[str, Any]]] = None):
        self.configurations = copy.deepcopy(configurations or {})
        self.calls: List[str] = []

    def exists(self, name):
        self.calls.append("exists")
        return name in self.configurations

    def get(self, name):
        self.calls.append("get")
        payload = self.configurations.get(name)
        return copy.deepcopy(payload) if payload is not None else None

    def upsert(self, name, payload):
        self.calls.append("upsert")
        created = name not in self.configurations
        self.configurations[name] = copy.deepcopy(payload)
        return payload, created

    def delete(self, name):
        self.calls.append("delete")
        return self.configurations.pop(name, None) is not None

    def list(self, limit=100, offset=0):
        self.calls.append("list")
        names = sorted(self.configurations)[offset:offset + limit]
        return [SimpleNamespace(name=name, payload=self.configurations[name]) for name in names]


class FakeObjectStore:
    """Document store keyed by (database, collection) then object id."""

    def __init__(self, documents: Optional[Dict[str, Dict[str, Any]]] = None, database="db", collection="records"):
        self.location = (database, collection)
        self.documents = copy.deepcopy(documents or {})
        self.calls: List[tuple] = []
        self.failing_offsets = set()

    def exists(self, object_id, database, collection):
        self.calls.append(("exists", object_id))
        return (database, collection) == self.location and object_id in self.documents

    def get(self, object_id, database, collection):
        self.calls.append(("get", object_id))
        return copy.deepcopy(self.documents[object_id])

    def find(self, query, database, collection, offset=0, limit=None):
        self.calls.append(("find", offset, limit))
        if offset in self.failing_offsets:
            raise ObjectStoreError(f"page at {offset} unavailable", status_code=500)
        ids = list(self.documents)
        if query.get("_id"):
            wanted = [entry["$oid"] for entry in query["_id"]["$in"]]
            ids = [object_id for object_id in ids if object_id in wanted]
        page = ids[offset:] if limit is None else ids[offset:offset + limit]
        items = []
        for object_id in page:
            item = copy.deepcopy(self.documents[object_id])
            item["_id"] = {"$oid": object_id}
            items.append(item)
        return {"items": items, "total": len(ids)}

    def count(self, query, database, collection):
        self.calls.append(("count",))
        return len(self.documents)


class FakeSearchEngine:
    def __init__(self):
        self.documents: Dict[tuple, Dict[str, Any]] = {}
        self.calls: List[tuple] = []
        self.failing_ids = set()
        self.errors: Dict[str, SearchEngineError] = {}
        self.search_response: Dict[str, Any] = {"hits": {"total": 0, "hits": []}}

    def _maybe_fail(self, operation):
        if operation in self.errors:
            raise self.errors[operation]

    def put_document(self, index, doc_type, doc_id, body):
        self.calls.append(("put_document", index, doc_type, doc_id))
        if doc_id in self.failing_ids:
            raise SearchEngineError(f"cannot index {doc_id}", status_code=400)
        self.documents[(index, doc_type, doc_id)] = copy.deepcopy(body)
        return {"_id": doc_id, "_version": 1, "result": "created", "created": True}

    def get_document(self, index, doc_type, doc_id):
        self.calls.append(("get_document", index, doc_type, doc_id))
        self._maybe_fail("get_document")
        return {
            "_index": index,
            "_type": doc_type,
            "_id": doc_id,
            "_version": 1,
            "found": True,
            "_source": copy.deepcopy(self.documents.get((index, doc_type, doc_id), {})),
        }

    def search(self, index, body, scroll=None):
        self.calls.append(("search", index, copy.deepcopy(body), scroll))
        self._maybe_fail("search")
        return copy.deepcopy(self.search_response)

    def continue_scroll(self, scroll_id, scroll):
        self.calls.append(("continue_scroll", scroll_id, scroll))
        self._maybe_fail("continue_scroll")
        return copy.deepcopy(self.search_response)

    def close_scroll(self, scroll_id):
        self.calls.append(("close_scroll", scroll_id))
        self._maybe_fail("close_scroll")
        return {"succeeded": True, "num_freed": 1}

    def put_mapping(self, index, doc_type, body):
        self.calls.append(("put_mapping", index, doc_type))
        self._maybe_fail("put_mapping")
        return {"acknowledged": True}

    def create_index(self, index):
        self.calls.append(("create_index", index))
        self._maybe_fail("create_index")
        return {"acknowledged": True, "index": index}

    def delete_index(self, index):
        self.calls.append(("delete_index", index))
        self._maybe_fail("delete_index")
        return {"acknowledged": True}

    def health_check(self):
        return True


@pytest.fixture
def type_config() -> Dict[str, Any]:
    """A complete object type configuration."""
    return {
        "mongo": {"database": "db", "collection": "records"},
        "elastic": {"index": "records", "type": "record"},
        "filters": {
            "year": {
                "regex": "year:(\\d{4})",
                "regexGroup": 1,
                "clause": "filter",
                "queryType": "range",
                "field": "year",
                "operator": "gte",
            },
            "text": {
                "clause": "must",
                "queryType": "multi_match",
                "fields": ["full_name", "notes"],
            },
        },
        "mapping": {
            "$set": {
                "full_name": {"fields": ["$.first", "$.last"], "separator": " "},
            },
            "$unset": ["internal"],
        },
        "appendToQuery": {"sort": [{"year": {"order": "desc"}}]},
    }


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def documents() -> Dict[str, Dict[str, Any]]:
    return {
        f"id{i}": {"first": f"First{i}", "last": f"Last{i}", "internal": "secret"}
        for i in range(5)
    }


@pytest.fixture
def configuration_store(type_config):
    return FakeConfigurationStore({"records": type_config})


@pytest.fixture
def object_store(documents):
    return FakeObjectStore(documents)


@pytest.fixture
def search_engine():
    return FakeSearchEngine()
