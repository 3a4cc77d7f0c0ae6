"""
Image reconstruction from de-glare generator output.
"""

from __future__ import annotations

import numpy as np

from models.errors import ReconstructError
from models.image import Image
from models.tensor import Tensor


def to_bytes(values: np.ndarray) -> np.ndarray:
    """Map generator values in about [-1, 1] to uint8 via round((v + 1) * 127.5)."""
    scaled = np.rint((values.astype(np.float32) + np.float32(1.0)) * np.float32(127.5))
    return np.clip(scaled, 0, 255).astype(np.uint8)


def reconstruct(output: Tensor, width: int, height: int) -> Image:
    """
    Rebuild an RGBA image from a (1, height, width, 3) generator tensor.

    Only the first width * height * 3 elements are used; alpha is opaque.

    Raises:
        ReconstructError: If the size is not positive, the tensor holds
            fewer than width * height * 3 elements, or a used value is not finite.
    """
    if width <= 0 or height <= 0:
        raise ReconstructError(f"Invalid image size {width}x{height}")
    needed = width * height * 3
    if output.size < needed:
        raise ReconstructError(
            f"Generator output has {output.size} elements, need {needed} for {width}x{height}"
        )

    values = output.data[:needed]
    if not np.all(np.isfinite(values)):
        raise ReconstructError("Generator output contains NaN or infinite values")
    rgb = to_bytes(values).reshape(height, width, 3)
    alpha = np.full((height, width, 1), 255, dtype=np.uint8)
    return Image(np.concatenate([rgb, alpha], axis=2), "RGBA")
