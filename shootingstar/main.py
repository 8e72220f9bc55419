"""
FastAPI application for the starred email pipeline.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shootingstar.config import settings
from shootingstar.core.logging import configure_logging, get_logger
from shootingstar.dependencies import set_pipeline
from shootingstar.pipeline import build_pipeline
from shootingstar.routers.history import router as history_router
from shootingstar.routers.pending import router as pending_router
from shootingstar.routers.status import router as status_router

log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    configure_logging(settings.log_level, settings.log_json)
    log.info("application_starting")

    pipeline = build_pipeline()
    pipeline.db.init_schema()
    set_pipeline(pipeline)

    if settings.scheduler_enabled:
        pipeline.scheduler.start()
    else:
        log.info("scheduler_disabled", reason="run the worker process or use /api/control")

    yield

    # Shutdown
    pipeline.scheduler.shutdown()
    set_pipeline(None)
    log.info("application_stopped")


app = FastAPI(
    title="ShootingStar",
    description="Starred Gmail to Todoist task pipeline",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["POST", "GET", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(status_router)
app.include_router(pending_router)
app.include_router(history_router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": "1.0.0"}


# Run with: uvicorn shootingstar.main:app --host 0.0.0.0 --port 8000
