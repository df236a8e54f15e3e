from .client import SearchEngineClient
from .factory import make_search_client
from .query_compiler import QueryCompiler, build_search_body, compile_query

__all__ = ["QueryCompiler", "SearchEngineClient", "build_search_body", "compile_query", "make_search_client"]
