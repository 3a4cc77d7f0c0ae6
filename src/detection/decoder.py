"""
Detector output decoding.

The detector is used here as an image-level multi-label classifier: its
(1, 4 + num_classes, num_anchors) output is collapsed to one confidence per
class (max over anchors), then thresholded. Box channels are ignored.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

import numpy as np

from models.detection import Detection
from models.errors import InferenceError
from models.tensor import Tensor

# Channels 0-3 carry box geometry (cx, cy, w, h)
BOX_CHANNELS = 4
DEFAULT_THRESHOLD = 0.7


def max_class_confidences(output: Tensor, num_classes: int) -> np.ndarray:
    """
    Collapse per-anchor scores to the max confidence for each class.

    Args:
        output: Detector output tensor shaped (1, channels, anchors).
        num_classes: Number of class channels following the box channels.

    Returns:
        float32 array of length num_classes. NaN anchors are ignored.

    Raises:
        InferenceError: If the tensor is not rank 3 or has too few channels.
    """
    if output.rank != 3 or output.shape[0] != 1:
        raise InferenceError(
            f"Detector output must be shaped (1, channels, anchors), got {output.shape}"
        )
    _, channels, anchors = output.shape
    if channels < BOX_CHANNELS + num_classes:
        raise InferenceError(
            f"Detector output has {channels} channels, "
            f"need at least {BOX_CHANNELS + num_classes} for {num_classes} classes"
        )
    if anchors == 0:
        raise InferenceError("Detector output has no anchors")

    scores = output.view()[0, BOX_CHANNELS:BOX_CHANNELS + num_classes, :]
    # fmax skips NaN anchors; a class is NaN only if every anchor is
    return np.fmax.reduce(scores, axis=1)


def decode(
    output: Tensor,
    labels: Sequence[str],
    threshold: float = DEFAULT_THRESHOLD,
) -> List[Detection]:
    """
    Decode detector output into thresholded, labelled detections.

    A class is detected iff its max confidence is strictly greater than
    threshold. Results keep class-index order. If nothing is detected, a
    single Detection.unknown() sentinel is returned, never an empty list.

    Args:
        output: Detector output tensor shaped (1, channels, anchors).
        labels: Ordered label table; labels[i] names class channel 4 + i.
        threshold: Confidence threshold (strict).
    """
    confidences = max_class_confidences(output, len(labels))
    for index, confidence in enumerate(confidences):
        logging.debug(f"max confidence [{labels[index]}]: {float(confidence):.4f}")

    detections = [
        Detection(label=labels[index], confidence=float(confidence))
        for index, confidence in enumerate(confidences)
        if float(confidence) > threshold
    ]
    if not detections:
        return [Detection.unknown()]
    return detections
