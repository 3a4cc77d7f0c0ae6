"""
Typed models for the artifact recognition pipeline.

Images, tensors and detections are immutable once produced; each stage
hands them forward to the next.
"""

from .image import Image
from .tensor import Tensor
from .detection import Detection, DetectionSet, UNKNOWN_LABEL
from .errors import (
    PipelineError,
    PreprocessError,
    ModelLoadError,
    ModelNotFound,
    InferenceError,
    ReconstructError,
)
from .config import (
    Config,
    ModelStoreConfig,
    DetectorConfig,
    DeglareConfig,
    CaptureConfig,
    GalleryConfig,
    WebConfig,
)

__all__ = [
    # Raster / tensor
    "Image",
    "Tensor",
    # Detection
    "Detection",
    "DetectionSet",
    "UNKNOWN_LABEL",
    # Errors
    "PipelineError",
    "PreprocessError",
    "ModelLoadError",
    "ModelNotFound",
    "InferenceError",
    "ReconstructError",
    # Config
    "Config",
    "ModelStoreConfig",
    "DetectorConfig",
    "DeglareConfig",
    "CaptureConfig",
    "GalleryConfig",
    "WebConfig",
]
