import logging
from typing import Any, Dict, List

from fastapi import APIRouter, BackgroundTasks, Body, status
from src.dependencies import IndexingServiceDep

logger = logging.getLogger(__name__)

router = APIRouter(tags=["indexing"])


# Registered before /index/{config}/{object_id} so "bulk" is not read as a config name
@router.post("/index/bulk/{config}", status_code=status.HTTP_201_CREATED)
def index_bulk_objects(config: str, service: IndexingServiceDep, object_ids: List[str] = Body(...)):
    """Index up to 100 objects in one call."""
    return service.index_bulk(config, object_ids)


@router.put("/index/all/{config}", status_code=status.HTTP_201_CREATED)
def index_all_objects(config: str, background_tasks: BackgroundTasks, service: IndexingServiceDep):
    """Start a full reindex of the collection in the background."""
    job = service.prepare_full_reindex(config)
    background_tasks.add_task(service.reindex_all, job)
    logger.info(f"Full reindex of {config} scheduled")
    return {"success": True}


@router.post("/index/{config}/{object_id}", status_code=status.HTTP_201_CREATED)
def index_object(config: str, object_id: str, service: IndexingServiceDep):
    """Project one stored object and index it."""
    return service.index_object(config, object_id)


@router.put("/index/{config}")
def create_index(config: str, service: IndexingServiceDep):
    return service.create_index(config)


@router.delete("/index/{config}")
def delete_index(config: str, service: IndexingServiceDep):
    return service.delete_index(config)


@router.post("/mapping/{config}", status_code=status.HTTP_201_CREATED)
def define_mapping(config: str, service: IndexingServiceDep, payload: Dict[str, Any] = Body(...)):
    """Define the mapping of the configured document type."""
    return service.define_mapping(config, payload)
