"""
OpenCV-based capture source.

Grabs a single still from a USB/CSI camera (device_id as int) or a stream
URL (device_id as str) through cv2.VideoCapture.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

import cv2

from models.image import Image
from .base import CaptureDenied, CaptureSource, SourceConfig

# Backoff between open attempts is capped at this many seconds
MAX_BACKOFF_S = 10


@dataclass
class OpenCVSourceConfig(SourceConfig):
    """
    Settings for taking one still with cv2.VideoCapture.

    Attributes:
        device_id: Camera index (int) or stream URL (str).
        resolution: Requested (width, height); None keeps the device default.
        warmup_frames: Frames read and dropped so exposure/focus can settle.
        max_retries: Attempts to open the device before access is denied.
    """
    device_id: Union[int, str] = 0
    resolution: Optional[Tuple[int, int]] = (1280, 720)
    warmup_frames: int = 5
    max_retries: int = 3

    @classmethod
    def from_capture_config(cls, capture_cfg: Dict[str, Any], source_id: str = "camera") -> "OpenCVSourceConfig":
        """Adapter: build from the `capture` section of the app config."""
        size = capture_cfg.get("resolution")
        return cls(
            source_id=source_id,
            device_id=capture_cfg.get("device_id", 0),
            resolution=tuple(size) if size else None,
            warmup_frames=int(capture_cfg.get("warmup_frames", 5)),
            max_retries=int(capture_cfg.get("max_retries", 3)),
        )


class OpenCVCameraSource(CaptureSource):
    """
    Single-shot camera source.

    Example:
        with OpenCVCameraSource(OpenCVSourceConfig(device_id=0)) as camera:
            photo = camera.capture()
    """

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config)
        self.settings = config
        self._device: Optional[cv2.VideoCapture] = None

    @property
    def device_id(self) -> Union[int, str]:
        return self.settings.device_id

    def _try_open(self) -> Optional[cv2.VideoCapture]:
        device = cv2.VideoCapture(self.device_id)
        if device.isOpened():
            return device
        device.release()
        logging.warning(f"Camera {self.device_id} did not open")
        return None

    def _request_resolution(self) -> None:
        # Stream URLs ignore size requests
        if not isinstance(self.device_id, int) or not self.settings.resolution:
            return
        width, height = self.settings.resolution
        self._device.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        self._device.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        logging.info(
            f"Camera {self.device_id} resolution requested {width}x{height}, got "
            f"{self._device.get(cv2.CAP_PROP_FRAME_WIDTH)}x"
            f"{self._device.get(cv2.CAP_PROP_FRAME_HEIGHT)}"
        )

    def open(self) -> None:
        """Open the camera, retrying with exponential backoff."""
        if self.is_open:
            return

        attempts = self.settings.max_retries
        for attempt in range(attempts):
            if attempt:
                delay = min(2 ** attempt, MAX_BACKOFF_S)
                logging.info(f"Camera open attempt {attempt + 1}/{attempts} in {delay}s")
                time.sleep(delay)
            self._device = self._try_open()
            if self._device is not None:
                break
        else:
            raise CaptureDenied(f"Camera {self.device_id} unavailable after {attempts} attempts")

        self._request_resolution()
        self._is_open = True
        logging.info(f"Camera {self.device_id} opened ({self.source_id})")

    def capture(self) -> Image:
        """Drop the warm-up frames and return the next one as RGB."""
        if self._device is None:
            raise CaptureDenied("Camera is not open")

        for _ in range(self.settings.warmup_frames):
            self._device.read()

        grabbed, still = self._device.read()
        if not grabbed or still is None:
            raise CaptureDenied(f"Camera {self.device_id} returned no frame")
        logging.info(f"Captured {still.shape[1]}x{still.shape[0]} still from camera {self.device_id}")
        return Image.from_bgr(still)

    def close(self) -> None:
        """Release the camera. Safe to call twice."""
        device, self._device = self._device, None
        if device is not None:
            device.release()
            logging.info(f"Camera {self.device_id} released")
        self._is_open = False
