from fastapi import APIRouter
from src.dependencies import SearchClientDep, SettingsDep

router = APIRouter(tags=["health"])


@router.get("/")
def version(settings: SettingsDep):
    """Service version."""
    return {"version": settings.app_version}


@router.get("/ping")
def ping(search_client: SearchClientDep):
    """Health check, including OpenSearch connectivity."""
    opensearch_ok = search_client.health_check()
    return {"status": "ok" if opensearch_ok else "degraded", "opensearch": opensearch_ok}
