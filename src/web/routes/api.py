from __future__ import annotations

import logging

import cv2
import numpy as np
from fastapi import APIRouter, HTTPException, Request
from fastapi.concurrency import run_in_threadpool

from models.image import Image
from pipeline.engine import PipelineResult
from ..api_models import HealthResponse, IdentifyResponse

router = APIRouter()


def _decode_upload(body: bytes) -> Image:
    """Decode an encoded photo (JPEG/PNG/...) from a request body."""
    if not body:
        raise HTTPException(status_code=400, detail="Empty request body; send encoded image bytes")
    frame = cv2.imdecode(np.frombuffer(body, dtype=np.uint8), cv2.IMREAD_COLOR)
    if frame is None:
        raise HTTPException(status_code=400, detail="Request body is not a decodable image")
    return Image.from_bgr(frame)


def _to_response(result: PipelineResult) -> IdentifyResponse:
    return IdentifyResponse(
        labels=list(result.labels),
        stage=result.stage.value,
        failed_stage=result.failed_stage.value if result.failed_stage else None,
        error_message=result.error_message,
    )


@router.post("/identify", response_model=IdentifyResponse)
async def identify(request: Request):
    """
    Recognise the artifact in an uploaded photo.

    The body is the raw encoded image. Pipeline failures are reported in
    the response (error_message) with status 200; only a bad upload is 400.
    """
    image = _decode_upload(await request.body())
    engine = request.app.state.engine
    # Inference blocks; keep it off the event loop
    result = await run_in_threadpool(engine.run, image)
    if not result.ok:
        logging.warning(f"Identify request failed at {result.failed_stage.value}: {result.error}")
    return _to_response(result)


@router.get("/health", response_model=HealthResponse)
def health(request: Request):
    ctx = request.app.state.context
    return {
        "ready": ctx.ready,
        "models": ctx.model_status(),
        "labels": list(ctx.config.detector.labels),
    }
