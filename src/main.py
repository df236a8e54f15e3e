import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from src.config import get_settings
from src.db.factory import make_database
from src.exceptions import IndexingServiceError
from src.routers import configuration, indexing, ping, search
from src.services.object_store.factory import make_object_store_client
from src.services.search.factory import make_search_client

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting indexing API...")

    settings = get_settings()
    app.state.settings = settings

    database = make_database(settings)
    app.state.database = database
    logger.info("Configuration database connected")

    app.state.object_store = make_object_store_client()
    app.state.search_client = make_search_client()
    if app.state.search_client.health_check():
        logger.info("OpenSearch connected successfully")
    else:
        logger.warning("OpenSearch connection failed")

    logger.info("API ready")
    yield

    # Cleanup
    app.state.object_store.close()
    database.teardown()
    logger.info("API shutdown complete")


app = FastAPI(
    title="Search Indexing API",
    description="Configuration-driven document projection, indexing and search",
    version=os.getenv("APP_VERSION", "0.1.0"),
    lifespan=lifespan,
)


@app.exception_handler(IndexingServiceError)
async def handle_service_error(request: Request, exc: IndexingServiceError) -> JSONResponse:
    logger.warning(f"{request.method} {request.url.path} failed ({exc.status_code}): {exc}")
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": str(exc)})


# Include routers
app.include_router(ping.router, prefix="/api/v1")
app.include_router(indexing.router, prefix="/api/v1")
app.include_router(search.router, prefix="/api/v1")
app.include_router(configuration.router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, port=8000, host="0.0.0.0")
