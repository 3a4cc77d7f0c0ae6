"""
Capture layer for pluggable photo sources.

This layer abstracts where the photograph comes from (camera, file on
disk) from the recognition pipeline. Each source implements the
CaptureSource interface and returns an Image.
"""

from typing import Any, Dict, Optional

from .base import CaptureDenied, CaptureSource, SourceConfig, request_capture
from .file_source import ImageFileSource, ImageFileSourceConfig
from .opencv_source import OpenCVCameraSource, OpenCVSourceConfig


def create_source_from_config(
    capture_cfg: Dict[str, Any],
    image_path: Optional[str] = None,
) -> CaptureSource:
    """
    Factory: build a capture source from the capture config dict.

    An explicit image_path always selects the file source.
    """
    backend = capture_cfg.get("backend", "file")
    if image_path is not None or backend == "file":
        path = image_path if image_path is not None else capture_cfg.get("path", "")
        return ImageFileSource(ImageFileSourceConfig(source_id="photo-file", path=path))
    if backend == "opencv":
        return OpenCVCameraSource(OpenCVSourceConfig.from_capture_config(capture_cfg))
    raise ValueError(f"Unknown capture backend: {backend}")


__all__ = [
    "CaptureDenied",
    "CaptureSource",
    "SourceConfig",
    "request_capture",
    "ImageFileSource",
    "ImageFileSourceConfig",
    "OpenCVCameraSource",
    "OpenCVSourceConfig",
    "create_source_from_config",
]
