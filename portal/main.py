"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from portal.api.router import api_router
from portal.cache.query_cache import QueryCache
from portal.client.remote import RemoteResourceClient
from portal.config import settings
from portal.errors import FormValidationError, RemoteResourceError, WorkflowBusyError

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan management.

    Startup:
    - Create the backend client (one connection pool)
    - Create the process-wide query cache

    Shutdown:
    - Close the backend client
    """
    logger.info("Starting Client Portal Dashboard...")

    remote_client = RemoteResourceClient()
    app.state.remote_client = remote_client
    logger.info(f"Backend client configured: {settings.api_base_url}")

    app.state.query_cache = QueryCache()
    logger.info("Query cache initialized")

    yield

    logger.info("Shutting down Client Portal Dashboard...")
    await remote_client.close()
    logger.info("Backend client closed")


app = FastAPI(
    title=settings.app_name,
    description="Role-aware dashboard core for the client portal",
    version=settings.app_version,
    lifespan=lifespan,
)

app.include_router(api_router)


@app.exception_handler(FormValidationError)
async def form_validation_handler(request: Request, exc: FormValidationError) -> JSONResponse:
    """Client-side validation failure: nothing was sent to the backend."""
    return JSONResponse(
        status_code=422,
        content={"detail": str(exc), "errors": exc.field_errors},
    )


@app.exception_handler(WorkflowBusyError)
async def workflow_busy_handler(request: Request, exc: WorkflowBusyError) -> JSONResponse:
    """A submission is already in flight."""
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(RemoteResourceError)
async def remote_error_handler(request: Request, exc: RemoteResourceError) -> JSONResponse:
    """Backend failure surfaced with its message or a fixed fallback."""
    return JSONResponse(
        status_code=502,
        content={
            "detail": exc.user_message("Backend request failed"),
            "errors": exc.errors,
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "portal.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
