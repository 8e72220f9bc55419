"""
Processing history endpoints.

GET /api/emails  recently processed emails
GET /api/errors  recent error log entries
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, Query

from shootingstar.dependencies import get_pipeline
from shootingstar.pipeline import Pipeline

router = APIRouter(prefix="/api")


@router.get("/emails")
def list_processed(limit: int = Query(20, ge=1, le=500), pipeline: Pipeline = Depends(get_pipeline)):
    return [asdict(record) for record in pipeline.db.list_processed(limit)]


@router.get("/errors")
def list_errors(limit: int = Query(20, ge=1, le=500), pipeline: Pipeline = Depends(get_pipeline)):
    return [asdict(record) for record in pipeline.db.list_errors(limit)]
