"""
TensorFlow Lite inference backend.

Uses tflite_runtime if installed, falling back to the interpreter bundled
with full TensorFlow. Both expose the same Interpreter API.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

import numpy as np

from models.errors import InferenceError, ModelLoadError
from models.tensor import Tensor
from .backend import InferenceBackend, ModelHandle
from .model_store import ModelStore

InterpreterFactory = Callable[[str], Any]


def default_interpreter_factory(model_path: str) -> Any:
    """
    Build a TFLite Interpreter for a model file.

    Raises:
        ModelLoadError: If neither tflite_runtime nor tensorflow is installed.
    """
    try:
        from tflite_runtime.interpreter import Interpreter  # type: ignore
    except ImportError:
        try:
            from tensorflow.lite.python.interpreter import Interpreter  # type: ignore
        except ImportError as e:
            raise ModelLoadError(
                "No TFLite interpreter available. Install with `pip install tflite-runtime` "
                "or `pip install tensorflow`."
            ) from e
    return Interpreter(model_path=model_path)


class TFLiteBackend(InferenceBackend):
    """
    Loads .tflite artifacts from a ModelStore and runs float32 tensors.

    Example:
        backend = TFLiteBackend(ModelStore("models", artifacts))
        handle = backend.load("detector-v2")
        output = backend.run(handle, prepare(image, handle.input_size))
    """

    def __init__(
        self,
        store: ModelStore,
        interpreter_factory: Optional[InterpreterFactory] = None,
    ):
        self.store = store
        self._interpreter_factory = interpreter_factory or default_interpreter_factory

    def load(self, model_id: str) -> ModelHandle:
        """
        Resolve, build and allocate a model.

        Raises:
            ModelLoadError: If the artifact is missing or graph allocation fails.
        """
        path = self.store.resolve(model_id)
        try:
            interpreter = self._interpreter_factory(str(path))
            interpreter.allocate_tensors()
            handle = ModelHandle(model_id, path, interpreter)
        except ModelLoadError:
            raise
        except (RuntimeError, ValueError, OSError, IndexError, KeyError) as e:
            raise ModelLoadError(f"Failed to load {model_id} from {path}: {e}") from e

        logging.info(f"Model {model_id} loaded from {path}")
        logging.info(f"Model {model_id} input shape: {list(handle.input_shape)}")
        logging.info(f"Model {model_id} output shape: {list(handle.output_shape)}")
        return handle

    def run(self, handle: ModelHandle, tensor: Tensor) -> Tensor:
        """
        Bind the input tensor, invoke, and return a copy of output 0.

        Raises:
            InferenceError: On shape or dtype mismatch, or execution failure.
        """
        if tensor.shape != handle.input_shape:
            raise InferenceError(
                f"{handle.model_id} expects input shape {handle.input_shape}, "
                f"got {tensor.shape}"
            )
        if np.dtype(handle.input_details["dtype"]) != np.float32:
            raise InferenceError(
                f"{handle.model_id} input dtype {np.dtype(handle.input_details['dtype'])} "
                "is not float32"
            )

        with handle.lock:
            try:
                handle.interpreter.set_tensor(
                    handle.input_details["index"], np.array(tensor.view())
                )
                handle.interpreter.invoke()
                output = np.array(handle.interpreter.get_tensor(handle.output_details["index"]))
            except (RuntimeError, ValueError) as e:
                raise InferenceError(f"{handle.model_id} inference failed: {e}") from e

        if output.dtype != np.float32:
            raise InferenceError(
                f"{handle.model_id} output dtype {output.dtype} is not float32"
            )
        return Tensor.from_array(output)
