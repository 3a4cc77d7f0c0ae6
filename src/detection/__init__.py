"""
Detection module: decodes detector output into labelled detections.
"""

from .decoder import decode, max_class_confidences, DEFAULT_THRESHOLD

__all__ = ["decode", "max_class_confidences", "DEFAULT_THRESHOLD"]
