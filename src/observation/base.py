"""
Capture boundary for single-shot photo sources.

The pipeline needs exactly one photograph per run. Where it comes from
(a camera, a file on disk) is the source's business; the caller only sees
request_capture(), which either returns an Image or raises CaptureDenied.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict

from models.image import Image


class CaptureDenied(Exception):
    """The capture source refused access or could not produce a photo."""


@dataclass
class SourceConfig:
    """
    Settings shared by every capture source.

    Attributes:
        source_id: Name used in logs (e.g. "camera", "photo-file").
        metadata: Free-form source-specific settings.
    """
    source_id: str = "default"
    metadata: Dict[str, Any] = field(default_factory=dict)


class CaptureSource(ABC):
    """
    A device or file that yields one photograph.

    Sources are used as context managers so the device is always released:

        with ImageFileSource(config) as source:
            image = source.capture()
    """

    def __init__(self, config: SourceConfig):
        self.config = config
        self._is_open = False

    @property
    def source_id(self) -> str:
        return self.config.source_id

    @property
    def is_open(self) -> bool:
        return self._is_open

    @abstractmethod
    def open(self) -> None:
        """Acquire the device or file. Raises CaptureDenied if unavailable."""

    @abstractmethod
    def capture(self) -> Image:
        """Take one photograph. Raises CaptureDenied if none is produced."""

    @abstractmethod
    def close(self) -> None:
        """Release the device. Must tolerate repeated calls."""

    def __enter__(self) -> "CaptureSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def request_capture(source: CaptureSource) -> Image:
    """
    Open the source, take one photo and close it again.

    Raises:
        CaptureDenied: If the source is unavailable or yields no image.
    """
    with source:
        return source.capture()
