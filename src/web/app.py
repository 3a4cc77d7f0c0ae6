"""
FastAPI application factory for artifact recognition.

Routes:
- /api/identify -> run the recognition pipeline on an uploaded photo
- /api/health   -> model readiness and label table
"""

from __future__ import annotations

from fastapi import FastAPI

from pipeline.engine import PipelineEngine
from runtime.context import RuntimeContext
from .routes import api


def create_app(ctx: RuntimeContext) -> FastAPI:
    """Create the FastAPI app around an already-built runtime context."""
    app = FastAPI(
        title="Artifact Recognition",
        version="0.1.0",
        description="De-glare and detect museum artifacts in photographs",
    )
    app.state.context = ctx
    app.state.engine = PipelineEngine.from_context(ctx)

    app.include_router(api.router, prefix="/api")
    return app
