from typing import Any, Dict

from fastapi import APIRouter, Body, Query, Response, status
from src.dependencies import IndexingServiceDep

router = APIRouter(tags=["configuration"])


@router.put("/config/{config}")
@router.post("/config/{config}")
def upsert_config(config: str, response: Response, service: IndexingServiceDep, payload: Dict[str, Any] = Body(...)):
    """Create or replace the configuration of an object type."""
    created = service.upsert_configuration(config, payload)
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return {"success": True, "config": config}


@router.get("/config")
def list_configs(
    service: IndexingServiceDep,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
):
    return {"configs": service.list_configurations(limit=limit, offset=offset)}


@router.get("/config/{config}")
def get_config(config: str, service: IndexingServiceDep):
    return service.get_configuration(config)


@router.delete("/config/{config}")
def delete_config(config: str, service: IndexingServiceDep):
    service.delete_configuration(config)
    return {"success": True}
