"""
FastAPI dependency for the shared pipeline.

The pipeline is built once at startup and injected into routers; tests
override get_pipeline through app.dependency_overrides.
"""

from shootingstar.pipeline import Pipeline

# Module-level pipeline injected at startup
_pipeline: Pipeline | None = None


def set_pipeline(pipeline: Pipeline | None) -> None:
    global _pipeline
    _pipeline = pipeline


def get_pipeline() -> Pipeline:
    if _pipeline is None:
        raise RuntimeError("Pipeline not initialized")
    return _pipeline
