"""
Typed tensor view exchanged with model interpreters.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np


@dataclass(frozen=True)
class Tensor:
    """
    A flat float32 buffer plus its logical shape.

    The buffer is read-only and never reinterpreted: only float32 data is
    accepted, and element count must equal the product of the shape dims.

    Attributes:
        data: 1-D float32 array.
        shape: Logical dims, e.g. (1, h, w, 3) or (1, channels, anchors).
    """
    data: np.ndarray
    shape: Tuple[int, ...]

    def __post_init__(self) -> None:
        data = np.asarray(self.data)
        if data.dtype != np.float32:
            raise TypeError(f"Tensor data must be float32, got {data.dtype}")
        shape = tuple(int(d) for d in self.shape)
        if any(d < 0 for d in shape):
            raise ValueError(f"Negative dimension in shape {shape}")
        expected = int(np.prod(shape, dtype=np.int64)) if shape else 1
        if data.size != expected:
            raise ValueError(
                f"Tensor has {data.size} elements but shape {shape} needs {expected}"
            )
        flat = np.ascontiguousarray(data.reshape(-1)).copy()
        flat.setflags(write=False)
        object.__setattr__(self, "data", flat)
        object.__setattr__(self, "shape", shape)

    @classmethod
    def from_array(cls, array: np.ndarray) -> "Tensor":
        """Adapter: Wrap an n-d float32 array, keeping its shape."""
        array = np.asarray(array)
        return cls(data=array.reshape(-1), shape=tuple(array.shape))

    @property
    def size(self) -> int:
        return int(self.data.size)

    @property
    def rank(self) -> int:
        return len(self.shape)

    def view(self) -> np.ndarray:
        """Return a read-only n-d view in the logical shape."""
        return self.data.reshape(self.shape)

    def at(self, *index: int) -> float:
        """
        Bounds-checked element access by logical index.

        Raises:
            IndexError: If the index rank or any coordinate is out of range.
        """
        if len(index) != len(self.shape):
            raise IndexError(f"Expected {len(self.shape)} indices, got {len(index)}")
        for i, (idx, dim) in enumerate(zip(index, self.shape)):
            if not 0 <= idx < dim:
                raise IndexError(f"Index {idx} out of range for axis {i} with size {dim}")
        return float(self.view()[tuple(index)])
