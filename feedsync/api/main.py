"""
FastAPI application entry point.

Serves the product feed file and exposes feed and scheduler control.
The dispatch loop runs in-process, started with the app when
SCHEDULER_AUTOSTART is enabled.

Optional API key authentication (API_AUTH_ENABLED / API_KEY).
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI

from feedsync import __version__
from feedsync.infra.data_paths import ensure_data_directories, is_scheduler_autostart_enabled

from .routers import feed, scheduler
from ._app_state import init_feed_app, shutdown_feed_app
from .dependencies.auth import verify_api_key, verify_feed_access


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown of resources:
    - Feed app (catalog, feed job, scheduler)
    - Scheduler dispatch loop with crash recovery
    """
    # Startup
    ensure_data_directories()
    feed_app = init_feed_app()

    if is_scheduler_autostart_enabled() and not feed_app.scheduler.is_running:
        feed_app.scheduler.start(run_recovery=True, blocking=False)

    yield

    # Shutdown - waits for the step in flight
    shutdown_feed_app()

# Tag metadata for Swagger UI
tags_metadata = [
    {
        "name": "feed",
        "description": "Product feed file download, regeneration and status",
    },
    {
        "name": "scheduler",
        "description": "Chain scheduler control - dispatch loop start/stop and run inspection",
    },
]

app = FastAPI(
    title="Catalog Feed Sync API",
    lifespan=lifespan,
    description="""
## Catalog Feed Sync API

Generates the product catalog CSV feed in batches and serves it to the
external catalog.

### Authentication
When `API_AUTH_ENABLED=true`, all endpoints except `/health` require
an `X-API-Key` header matching the `API_KEY` environment variable.
`/feed/file` also accepts the key as a `?token=` query parameter.

### Usage
```bash
# Start server
uvicorn feedsync.api.main:app --host 127.0.0.1 --port 8000

# Regenerate the feed
curl -X POST http://localhost:8000/feed/regenerate -H "X-API-Key: your-api-key"

# Download it
curl -O "http://localhost:8000/feed/file?token=your-api-key"
```
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=tags_metadata,
)

# Health check - NO authentication (operational endpoint)
@app.get("/health")
async def health_check():
    """Health check endpoint. Not authenticated."""
    return {"status": "ok", "version": __version__}


# Auth settings are read per request; with API_AUTH_ENABLED unset these pass
app.include_router(
    feed.router, prefix="/feed", tags=["feed"], dependencies=[Depends(verify_feed_access)]
)
app.include_router(
    scheduler.router,
    prefix="/scheduler",
    tags=["scheduler"],
    dependencies=[Depends(verify_api_key)],
)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8000)
