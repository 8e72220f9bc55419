"""
Automation status and control endpoints.

GET  /api/status   running flag, last run, counts and service health
POST /api/control  start | stop | run_once | trigger
"""

from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from shootingstar.core.database import STATE_AUTH_URL
from shootingstar.core.logging import get_logger
from shootingstar.dependencies import get_pipeline
from shootingstar.pipeline import Pipeline

log = get_logger(__name__)
router = APIRouter(prefix="/api")


class ControlRequest(BaseModel):
    action: Literal["start", "stop", "run_once", "trigger"]


def _check(name: str, probe, ok: str, not_ok: str) -> str:
    """Run a health probe; any exception reports 'error'."""
    try:
        return ok if probe() else not_ok
    except Exception as e:
        log.warning("health_check_failed", service=name, error=str(e))
        return "error"


@router.get("/status")
def get_status(pipeline: Pipeline = Depends(get_pipeline)):
    """Automation status. Reads only the store apart from the service probes."""
    db = pipeline.db
    return {
        "running": db.is_running(),
        "last_run": db.get_last_run(),
        "auth_url": db.get_state(STATE_AUTH_URL),
        **db.get_stats(),
        "services": {
            "claude": _check("claude", pipeline.extractor.is_authenticated, "authenticated", "unauthenticated"),
            "gmail": _check("gmail", pipeline.gmail.is_authenticated, "authenticated", "unauthenticated"),
            "todoist": _check("todoist", pipeline.todoist.test_connection, "connected", "disconnected"),
        },
    }


@router.post("/control")
def control(request: ControlRequest, pipeline: Pipeline = Depends(get_pipeline)):
    scheduler = pipeline.scheduler

    if request.action == "start":
        if not scheduler.start_automation():
            return {"success": False, "message": "Automation is already running"}
        return {"success": True, "message": "Automation started"}

    if request.action == "stop":
        if not scheduler.stop_automation():
            return {"success": False, "message": "Automation is not running"}
        return {"success": True, "message": "Automation stopped"}

    if request.action == "trigger":
        scheduler.trigger_once()
        return {"success": True, "message": "Processing triggered"}

    result = scheduler.run_now()
    if result is None:
        return {"success": False, "message": "Cycle already in progress or failed; see error log"}
    if result.auth_required:
        return {
            "success": False,
            "message": "Gmail authentication required",
            "auth_required": True,
            "auth_url": result.auth_url,
        }
    return {
        "success": not result.aborted,
        "message": (
            f"Processed {result.processed} emails, {result.errors} errors, "
            f"{result.pending} pending reviews"
        ),
        "result": result.to_dict(),
    }
