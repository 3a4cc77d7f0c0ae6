"""
Image-file capture source.

Stands in for the camera when a photo already exists on disk (kiosk
uploads, batch re-runs, tests).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import cv2

from models.image import Image
from .base import CaptureDenied, CaptureSource, SourceConfig


@dataclass
class ImageFileSourceConfig(SourceConfig):
    """
    Attributes:
        path: Path to the photograph (any format cv2.imread understands).
    """
    path: Union[str, Path] = ""


class ImageFileSource(CaptureSource):
    """Reads a single photograph from disk as an RGB(A) Image."""

    def __init__(self, config: ImageFileSourceConfig):
        super().__init__(config)
        self._file_config = config
        self._path: Optional[Path] = None

    @property
    def path(self) -> Path:
        return Path(self._file_config.path)

    def open(self) -> None:
        if not self.path.is_file():
            raise CaptureDenied(f"Image not found: {self.path}")
        self._path = self.path
        self._is_open = True

    def capture(self) -> Image:
        if not self._is_open or self._path is None:
            raise CaptureDenied("Source must be open before capturing")
        frame = cv2.imread(str(self._path), cv2.IMREAD_UNCHANGED)
        if frame is None:
            raise CaptureDenied(f"Failed to read image: {self._path}")
        if frame.dtype != "uint8":
            # 16-bit PNG/TIFF; scale to 8 bits per channel
            frame = cv2.convertScaleAbs(frame, alpha=255.0 / 65535.0)
        image = Image.from_bgr(frame)
        logging.info(f"Captured {image.width}x{image.height} image from {self._path}")
        return image

    def close(self) -> None:
        self._path = None
        self._is_open = False
