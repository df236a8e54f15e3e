from functools import lru_cache
from typing import Annotated, Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session
from src.config import Settings
from src.db.interfaces.base import BaseDatabase
from src.repositories.configuration import ConfigurationRepository
from src.services.indexing.service import IndexingService
from src.services.object_store.client import ObjectStoreClient
from src.services.search.client import SearchEngineClient


@lru_cache
def get_settings() -> Settings:
    """Get application settings."""
    return Settings()


def get_request_settings(request: Request) -> Settings:
    """Get settings from the request state."""
    return request.app.state.settings


def get_database(request: Request) -> BaseDatabase:
    """Get database from the request state."""
    return request.app.state.database


def get_db_session(database: Annotated[BaseDatabase, Depends(get_database)]) -> Generator[Session, None, None]:
    """Get database session dependency."""
    with database.get_session() as session:
        yield session


def get_search_client(request: Request) -> SearchEngineClient:
    """Get OpenSearch client from app state."""
    return request.app.state.search_client


def get_object_store(request: Request) -> ObjectStoreClient:
    """Get object store client from app state."""
    return request.app.state.object_store


def get_indexing_service(
    session: Annotated[Session, Depends(get_db_session)],
    object_store: Annotated[ObjectStoreClient, Depends(get_object_store)],
    search_client: Annotated[SearchEngineClient, Depends(get_search_client)],
    settings: Annotated[Settings, Depends(get_request_settings)],
) -> IndexingService:
    """Build the indexing service for the current request."""
    return IndexingService(
        configurations=ConfigurationRepository(session),
        object_store=object_store,
        search_engine=search_client,
        settings=settings,
    )


# Dependency type aliases for better type hints
SettingsDep = Annotated[Settings, Depends(get_settings)]
DatabaseDep = Annotated[BaseDatabase, Depends(get_database)]
SessionDep = Annotated[Session, Depends(get_db_session)]
SearchClientDep = Annotated[SearchEngineClient, Depends(get_search_client)]
ObjectStoreDep = Annotated[ObjectStoreClient, Depends(get_object_store)]
IndexingServiceDep = Annotated[IndexingService, Depends(get_indexing_service)]
