"""
Pipeline module for artifact recognition.

The pipeline orchestrates the full processing flow:
- Tensor preparation of the captured photo
- Detector pass on the original image
- De-glare, reconstruction and a second detector pass
- Fusion of both label sets
"""

from .engine import (
    PipelineEngine,
    PipelineConfig,
    PipelineResult,
    PipelineStage,
    failure_message,
)
from .stages.fusion import fuse

__all__ = [
    "PipelineEngine",
    "PipelineConfig",
    "PipelineResult",
    "PipelineStage",
    "failure_message",
    "fuse",
]
