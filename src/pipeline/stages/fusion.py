"""
Fusion of the two detector passes into the final label set.

Recall is favoured: any positive label from either pass is kept, and the
"unknown" sentinel survives only when neither pass found anything.
"""

from __future__ import annotations

from models.detection import DetectionSet, UNKNOWN_LABEL


def fuse(pass_a: DetectionSet, pass_b: DetectionSet) -> DetectionSet:
    """
    Union the labels of both passes, dropping the sentinel if any real label remains.

    Order is pass A's labels, then pass B's new labels, in first-seen order.
    """
    known = [
        label
        for label in (*pass_a.labels, *pass_b.labels)
        if label != UNKNOWN_LABEL
    ]
    if known:
        return DetectionSet(labels=tuple(known))
    return DetectionSet.unknown()
