"""
Inference backend interface.

A backend loads models into ModelHandles and runs tensors through them.
Handles are long-lived and shared; each one serializes its own runs because
the interpreter's bound input/output buffers are mutated by every call.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Dict, Protocol, Tuple

from models.errors import InferenceError
from models.tensor import Tensor


class ModelHandle:
    """
    A loaded, tensor-allocated interpreter plus its declared I/O details.

    Attributes:
        model_id: Identifier the model was loaded under (e.g. "detector-v2").
        path: Artifact path the interpreter was built from.
        interpreter: Engine object with the TFLite Interpreter API.
        lock: Serializes runs on this handle.
    """

    def __init__(self, model_id: str, path: Path, interpreter: Any):
        self.model_id = model_id
        self.path = path
        self.interpreter = interpreter
        self.lock = threading.Lock()
        self._input_details: Dict[str, Any] = interpreter.get_input_details()[0]
        self._output_details: Dict[str, Any] = interpreter.get_output_details()[0]

    @property
    def input_details(self) -> Dict[str, Any]:
        return self._input_details

    @property
    def output_details(self) -> Dict[str, Any]:
        return self._output_details

    @property
    def input_shape(self) -> Tuple[int, ...]:
        return tuple(int(d) for d in self._input_details["shape"])

    @property
    def output_shape(self) -> Tuple[int, ...]:
        return tuple(int(d) for d in self._output_details["shape"])

    @property
    def input_size(self) -> Tuple[int, int]:
        """
        Native image size as (width, height), from an NHWC input shape.

        Raises:
            InferenceError: If the input is not a (1, h, w, 3) image tensor.
        """
        shape = self.input_shape
        if len(shape) != 4 or shape[0] != 1 or shape[3] != 3:
            raise InferenceError(
                f"{self.model_id} input shape {shape} is not a (1, h, w, 3) image"
            )
        return (shape[2], shape[1])

    def __repr__(self) -> str:
        return (
            f"ModelHandle(model_id={self.model_id!r}, input={self.input_shape}, "
            f"output={self.output_shape})"
        )


class InferenceBackend(Protocol):
    def load(self, model_id: str) -> ModelHandle:
        ...

    def run(self, handle: ModelHandle, tensor: Tensor) -> Tensor:
        ...
