"""
Tensor preparation: stretch an image to a model's input size and normalize.

The models were trained on images squashed to a square input, so aspect
ratio is deliberately not preserved here.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import cv2
import numpy as np

from models.errors import PreprocessError
from models.image import Image
from models.tensor import Tensor


def prepare(image: Optional[Image], target_size: Tuple[int, int]) -> Tensor:
    """
    Convert an image into a (1, height, width, 3) float32 tensor in [0, 1].

    Args:
        image: Source image (RGB or RGBA).
        target_size: Output size as (width, height).

    Raises:
        PreprocessError: If the image is missing or unreadable, or the
            extracted RGB byte count does not match the target size.
    """
    if image is None:
        raise PreprocessError("No image to prepare")

    width, height = int(target_size[0]), int(target_size[1])
    if width <= 0 or height <= 0:
        raise PreprocessError(f"Invalid target size: {target_size}")

    try:
        resized = cv2.resize(
            np.array(image.pixels),
            (width, height),
            interpolation=cv2.INTER_LINEAR,
        )
    except cv2.error as e:
        raise PreprocessError(f"Image resize failed: {e}") from e

    if resized.ndim != 3 or resized.shape[2] < 3:
        raise PreprocessError(f"Resized image has unexpected shape {resized.shape}")
    rgb = resized[:, :, :3]

    expected = width * height * 3
    if rgb.size != expected:
        raise PreprocessError(
            f"RGB byte count mismatch: expected {expected}, got {rgb.size}"
        )

    normalized = rgb.astype(np.float32) / np.float32(255.0)
    logging.debug(f"Prepared {image.width}x{image.height} image as {width}x{height} tensor")
    return Tensor(data=normalized.reshape(-1), shape=(1, height, width, 3))
