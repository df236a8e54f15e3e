from typing import Optional

from fastapi import APIRouter, Query
from src.dependencies import IndexingServiceDep

router = APIRouter(tags=["search"])


@router.get("/get/{config}/{object_id}")
def get_object(
    config: str,
    object_id: str,
    service: IndexingServiceDep,
    hydrate: bool = Query(False, description="Merge the stored document into the result"),
):
    return service.get_object(config, object_id, hydrate=hydrate)


@router.post("/search/scroll/{config}")
def scroll_search(
    config: str,
    service: IndexingServiceDep,
    scroll_id: str = Query(..., alias="scrollId", description="Scroll identifier"),
    scroll: Optional[str] = Query(None, description="Scroll time to live, e.g. 1m"),
    hydrate: bool = Query(False),
):
    """Fetch the next page of a scroll."""
    return service.continue_scroll(config, scroll_id, scroll=scroll, hydrate=hydrate)


@router.delete("/search/scroll")
def delete_scroll(service: IndexingServiceDep, scroll_id: str = Query(..., alias="scrollId")):
    return service.close_scroll(scroll_id)


@router.post("/search/{config}")
def search_objects(
    config: str,
    service: IndexingServiceDep,
    query: str = Query("", description="Search string compiled with the type's filters"),
    from_: int = Query(0, alias="from", ge=0),
    size: int = Query(10, ge=0),
    scroll: Optional[str] = Query(None, description="Open a scroll with this time to live"),
    hydrate: bool = Query(False),
):
    """
    Search objects of a type.

    The query string is compiled into a bool query using the type's filters;
    an empty query matches everything.
    """
    return service.search(config, query, from_=from_, size=size, scroll=scroll, hydrate=hydrate)
