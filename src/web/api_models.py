from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class IdentifyResponse(BaseModel):
    labels: List[str] = Field(
        default_factory=list,
        description="Fused artifact labels; ['unknown'] if nothing was recognised, empty on failure",
    )
    stage: str = Field(..., description="done|failed")
    failed_stage: Optional[str] = Field(None, description="Pipeline stage that failed")
    error_message: Optional[str] = Field(None, description="User-facing failure message")


class ModelStatus(BaseModel):
    ready: bool
    model_id: Optional[str] = None
    input_shape: Optional[List[int]] = None
    output_shape: Optional[List[int]] = None
    error: Optional[str] = None


class HealthResponse(BaseModel):
    ready: bool = Field(..., description="True if both models are loaded")
    models: Dict[str, ModelStatus]
    labels: List[str]
