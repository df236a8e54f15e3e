from .client import ObjectStoreClient, merge_documents
from .factory import make_object_store_client

__all__ = ["ObjectStoreClient", "make_object_store_client", "merge_documents"]
