"""
Human review queue endpoints.

GET  /api/pending  list reviews by status
POST /api/pending  submit a task for a review, or skip it
"""

from dataclasses import asdict
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from shootingstar.core.models import ExtractionResult, ReviewStatus
from shootingstar.dependencies import get_pipeline
from shootingstar.pipeline import Pipeline

router = APIRouter(prefix="/api")


class TaskData(BaseModel):
    task: str = Field(min_length=1)
    labels: list[str] = []
    notes: str | None = None
    due_string: str | None = None


class PendingActionRequest(BaseModel):
    id: int
    action: Literal["submit", "skip"]
    task_data: TaskData | None = None


@router.get("/pending")
def list_pending(
    status: ReviewStatus = ReviewStatus.PENDING,
    limit: int = 100,
    pipeline: Pipeline = Depends(get_pipeline),
):
    return [asdict(review) for review in pipeline.db.list_pending_reviews(status, limit)]


@router.post("/pending")
def resolve_pending(request: PendingActionRequest, pipeline: Pipeline = Depends(get_pipeline)):
    if request.action == "skip":
        if not pipeline.review.skip(request.id):
            raise HTTPException(status_code=404, detail=f"No pending review: {request.id}")
        return {"success": True, "message": "Review skipped"}

    if request.task_data is None or not request.task_data.task.strip():
        raise HTTPException(status_code=400, detail="task_data with a non-empty task is required for submit")

    outcome = pipeline.review.complete(
        request.id,
        ExtractionResult(
            task_title=request.task_data.task.strip(),
            label_ids=list(request.task_data.labels),
            notes=request.task_data.notes,
            due_string=request.task_data.due_string,
        ),
    )
    if not outcome["success"]:
        return {"success": False, "message": outcome["error"] or "Failed to create task"}

    return {"success": True, "message": "Task created successfully", "task_id": outcome["task_id"]}
