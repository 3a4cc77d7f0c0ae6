"""
Gallery sink for de-glared images.

Saving is fire-and-forget: the pipeline never waits on or reacts to the
outcome, so write failures are logged and not raised.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

import cv2

from models.config import GalleryConfig
from models.image import Image


class GallerySink:
    """
    Writes images as timestamped PNGs under an output directory.

    Example:
        sink = GallerySink("output/deglared")
        sink.save(image)
    """

    def __init__(self, output_dir: Union[str, Path], enabled: bool = True, prefix: str = "deglared"):
        self.output_dir = Path(output_dir)
        self.enabled = enabled
        self.prefix = prefix
        self.last_path: Optional[Path] = None

    @classmethod
    def from_config(cls, cfg: GalleryConfig) -> "GallerySink":
        return cls(cfg.output_dir, enabled=cfg.enabled)

    def save(self, image: Image) -> None:
        """Save an image; failures are logged as warnings."""
        if not self.enabled:
            return
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        # Concurrent runs can share a timestamp
        path = self.output_dir / f"{self.prefix}_{timestamp}_{uuid.uuid4().hex[:8]}.png"
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            if not cv2.imwrite(str(path), image.to_bgr()):
                logging.warning(f"Gallery save failed: could not write {path}")
                return
        except (OSError, cv2.error) as e:
            logging.warning(f"Gallery save failed: {e}")
            return
        self.last_path = path
        logging.info(f"De-glared image saved: {path}")
