"""
Tests for model storage, handles and the TFLite backend.
"""

import sys
import threading
from pathlib import Path
from unittest.mock import patch

import numpy as np
import pytest

from inference.backend import ModelHandle
from inference.model_store import ModelStore
from inference.tflite_backend import TFLiteBackend, default_interpreter_factory
from models.errors import InferenceError, ModelLoadError, ModelNotFound
from models.tensor import Tensor


@pytest.fixture
def store(tmp_path):
    (tmp_path / "det.tflite").write_bytes(b"\x00")
    (tmp_path / "gen.tflite").write_bytes(b"\x00")
    return ModelStore(tmp_path, {"detector-v2": "det.tflite", "deglare-v1": "gen.tflite", "ghost": "gone.tflite"})


def image_tensor(h=4, w=4):
    return Tensor.from_array(np.zeros((1, h, w, 3), dtype=np.float32))


class TestModelStore:
    def test_resolve_known_id(self, store, tmp_path):
        assert store.resolve("detector-v2") == tmp_path / "det.tflite"

    def test_resolve_unknown_id(self, store):
        with pytest.raises(ModelNotFound):
            store.resolve("detector-v9")

    def test_resolve_missing_file(self, store):
        with pytest.raises(ModelNotFound):
            store.resolve("ghost")

    def test_absolute_artifact_path(self, tmp_path):
        model = tmp_path / "elsewhere.tflite"
        model.write_bytes(b"\x00")
        store = ModelStore("unused", {"m": str(model)})
        assert store.resolve("m") == model

    def test_not_found_is_load_error(self):
        assert issubclass(ModelNotFound, ModelLoadError)


class TestModelHandle:
    def test_shapes_and_input_size(self, make_handle):
        handle = make_handle("det", (1, 640, 480, 3), np.zeros((1, 11, 10), dtype=np.float32))
        assert handle.input_shape == (1, 640, 480, 3)
        assert handle.output_shape == (1, 11, 10)
        assert handle.input_size == (480, 640)

    def test_input_size_requires_image_input(self, make_handle):
        handle = make_handle("odd", (1, 100), np.zeros((1, 2), dtype=np.float32))
        with pytest.raises(InferenceError):
            handle.input_size


class TestTFLiteBackendLoad:
    def test_load_allocates_and_returns_handle(self, store, fake_interpreter_cls):
        built = []

        def factory(path):
            interp = fake_interpreter_cls((1, 8, 8, 3), np.zeros((1, 11, 5), dtype=np.float32))
            built.append((path, interp))
            return interp

        handle = TFLiteBackend(store, interpreter_factory=factory).load("detector-v2")
        assert isinstance(handle, ModelHandle)
        assert handle.model_id == "detector-v2"
        assert built[0][0].endswith("det.tflite")
        assert built[0][1].allocated

    def test_load_logs_shapes(self, store, fake_interpreter_cls, caplog):
        factory = lambda path: fake_interpreter_cls((1, 8, 8, 3), np.zeros((1, 11, 5), dtype=np.float32))
        with caplog.at_level("INFO"):
            TFLiteBackend(store, interpreter_factory=factory).load("detector-v2")
        assert "input shape: [1, 8, 8, 3]" in caplog.text
        assert "output shape: [1, 11, 5]" in caplog.text

    def test_load_missing_artifact(self, store):
        with pytest.raises(ModelLoadError):
            TFLiteBackend(store, interpreter_factory=lambda p: None).load("ghost")

    def test_load_interpreter_failure(self, store):
        def factory(path):
            raise ValueError("Could not open model")

        with pytest.raises(ModelLoadError):
            TFLiteBackend(store, interpreter_factory=factory).load("detector-v2")

    def test_load_allocation_failure(self, store, fake_interpreter_cls):
        interp = fake_interpreter_cls((1, 8, 8, 3), np.zeros((1, 2), dtype=np.float32))

        def fail():
            raise RuntimeError("Failed to allocate tensors")

        interp.allocate_tensors = fail
        with pytest.raises(ModelLoadError):
            TFLiteBackend(store, interpreter_factory=lambda p: interp).load("detector-v2")

    def test_no_interpreter_library(self):
        blocked = {
            "tflite_runtime": None,
            "tflite_runtime.interpreter": None,
            "tensorflow": None,
            "tensorflow.lite": None,
            "tensorflow.lite.python": None,
            "tensorflow.lite.python.interpreter": None,
        }
        with patch.dict(sys.modules, blocked):
            with pytest.raises(ModelLoadError):
                default_interpreter_factory("model.tflite")


class TestTFLiteBackendRun:
    def test_run_returns_output_tensor(self, backend, make_handle):
        out = np.arange(6, dtype=np.float32).reshape(1, 2, 3)
        handle = make_handle("det", (1, 4, 4, 3), out)
        result = backend.run(handle, image_tensor())
        assert isinstance(result, Tensor)
        assert result.shape == (1, 2, 3)
        assert np.array_equal(result.view(), out)
        assert handle.interpreter.inputs[0].shape == (1, 4, 4, 3)

    def test_output_is_copied(self, backend, make_handle):
        """Later writes to the interpreter's buffer do not change a returned tensor."""
        out = np.zeros((1, 2), dtype=np.float32)
        handle = make_handle("det", (1, 4, 4, 3), out)
        result = backend.run(handle, image_tensor())
        out[0, 0] = 5.0
        assert result.at(0, 0) == 0.0

    def test_shape_mismatch(self, backend, make_handle):
        handle = make_handle("det", (1, 4, 4, 3), np.zeros((1, 2), dtype=np.float32))
        with pytest.raises(InferenceError):
            backend.run(handle, image_tensor(8, 8))
        assert handle.interpreter.invocations == 0

    def test_non_float_input_model(self, backend, make_handle):
        handle = make_handle("det", (1, 4, 4, 3), np.zeros((1, 2), dtype=np.float32), input_dtype=np.uint8)
        with pytest.raises(InferenceError):
            backend.run(handle, image_tensor())

    def test_non_float_output(self, backend, make_handle):
        handle = make_handle("det", (1, 4, 4, 3), np.zeros((1, 2), dtype=np.uint8))
        with pytest.raises(InferenceError):
            backend.run(handle, image_tensor())

    def test_invoke_failure(self, backend, make_handle):
        def boom(_):
            raise RuntimeError("Node number 3 failed to invoke")

        handle = make_handle("det", (1, 4, 4, 3), boom, output_shape=(1, 2))
        with pytest.raises(InferenceError):
            backend.run(handle, image_tensor())

    def test_runs_on_one_handle_are_serialized(self, backend, make_handle):
        handle = make_handle(
            "det", (1, 4, 4, 3), np.zeros((1, 2), dtype=np.float32), invoke_delay=0.01
        )
        errors = []

        def worker():
            try:
                backend.run(handle, image_tensor())
            except Exception as e:  # pragma: no cover
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert handle.interpreter.invocations == 4
        assert handle.interpreter.max_active == 1
