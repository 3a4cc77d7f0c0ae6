"""
Image model for captured and reconstructed photographs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import cv2
import numpy as np

_CHANNELS = {"RGB": 3, "RGBA": 4}


@dataclass(frozen=True)
class Image:
    """
    An immutable raster image.

    Attributes:
        pixels: uint8 array shaped (height, width, channels), read-only.
        pixel_format: "RGB" or "RGBA".
    """
    pixels: np.ndarray
    pixel_format: str = "RGB"

    def __post_init__(self) -> None:
        if self.pixel_format not in _CHANNELS:
            raise ValueError(f"Unsupported pixel format: {self.pixel_format}")
        pixels = np.asarray(self.pixels)
        if pixels.dtype != np.uint8:
            raise ValueError(f"Image pixels must be uint8, got {pixels.dtype}")
        expected = _CHANNELS[self.pixel_format]
        if pixels.ndim != 3 or pixels.shape[2] != expected:
            raise ValueError(
                f"{self.pixel_format} image needs shape (h, w, {expected}), got {pixels.shape}"
            )
        # Own a private copy so later writes by the producer cannot leak in
        pixels = pixels.copy()
        pixels.setflags(write=False)
        object.__setattr__(self, "pixels", pixels)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def channels(self) -> int:
        return int(self.pixels.shape[2])

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)

    def rgb(self) -> np.ndarray:
        """Return the R,G,B planes as an (h, w, 3) array, dropping alpha."""
        return self.pixels[:, :, :3]

    @classmethod
    def from_bgr(cls, frame: np.ndarray) -> "Image":
        """
        Adapter: Create an Image from an OpenCV frame (BGR, BGRA or grayscale).
        """
        if frame is None:
            raise ValueError("Frame is None")
        if frame.ndim == 2:
            return cls(cv2.cvtColor(frame, cv2.COLOR_GRAY2RGB), "RGB")
        if frame.shape[2] == 4:
            return cls(cv2.cvtColor(frame, cv2.COLOR_BGRA2RGBA), "RGBA")
        return cls(cv2.cvtColor(frame, cv2.COLOR_BGR2RGB), "RGB")

    def to_bgr(self) -> np.ndarray:
        """Convert to an OpenCV-ordered array (BGR or BGRA) for writing to disk."""
        if self.pixel_format == "RGBA":
            return cv2.cvtColor(self.pixels, cv2.COLOR_RGBA2BGRA)
        return cv2.cvtColor(self.pixels, cv2.COLOR_RGB2BGR)
