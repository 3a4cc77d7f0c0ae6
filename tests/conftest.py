"""
Pytest configuration and shared fixtures.
"""

import os
import sys
import threading
import time
from pathlib import Path

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from inference.backend import ModelHandle  # noqa: E402
from inference.model_store import ModelStore  # noqa: E402
from inference.tflite_backend import TFLiteBackend  # noqa: E402
from models.config import DEFAULT_LABELS  # noqa: E402


class FakeInterpreter:
    """
    Stand-in for tflite Interpreter with the same method surface.

    outputs may be a single array, a list (returned in invocation order), or a
    callable taking the bound input array.
    """

    def __init__(self, input_shape, outputs, output_shape=None, input_dtype=np.float32, invoke_delay=0.0):
        self.input_shape = tuple(input_shape)
        self.outputs = outputs
        self.output_shape = tuple(output_shape) if output_shape is not None else None
        self.input_dtype = input_dtype
        self.invoke_delay = invoke_delay
        self.allocated = False
        self.invocations = 0
        self.inputs = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()
        self._input = None
        self._output = None

    def _next_output(self):
        if callable(self.outputs):
            return self.outputs(self._input)
        if isinstance(self.outputs, list):
            return self.outputs[min(self.invocations - 1, len(self.outputs) - 1)]
        return self.outputs

    def allocate_tensors(self):
        self.allocated = True

    def get_input_details(self):
        return [{"index": 0, "shape": np.array(self.input_shape, dtype=np.int32), "dtype": self.input_dtype}]

    def get_output_details(self):
        if self.output_shape is not None:
            shape = self.output_shape
        elif isinstance(self.outputs, list):
            shape = np.asarray(self.outputs[0]).shape
        elif callable(self.outputs):
            shape = ()
        else:
            shape = np.asarray(self.outputs).shape
        return [{"index": 1, "shape": np.array(shape, dtype=np.int32), "dtype": np.float32}]

    def set_tensor(self, index, value):
        if tuple(value.shape) != self.input_shape:
            raise ValueError("Cannot set tensor: Dimension mismatch")
        self._input = np.array(value)
        self.inputs.append(self._input)

    def invoke(self):
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.invoke_delay:
                time.sleep(self.invoke_delay)
            self.invocations += 1
            self._output = np.asarray(self._next_output())
        finally:
            with self._lock:
                self.active -= 1

    def get_tensor(self, index):
        return self._output


def build_detector_output(class_scores=None, num_classes=7, anchors=8400, base=0.0):
    """
    Build a (1, 4 + num_classes, anchors) detector output.

    class_scores maps class index -> scalar (fills every anchor) or a full
    per-anchor array.
    """
    out = np.full((1, 4 + num_classes, anchors), base, dtype=np.float32)
    out[0, :4, :] = 0.5
    for cls, scores in (class_scores or {}).items():
        out[0, 4 + cls, :] = scores
    return out


@pytest.fixture
def labels():
    return list(DEFAULT_LABELS)


@pytest.fixture
def detector_output():
    """Factory for synthetic detector output arrays."""
    return build_detector_output


@pytest.fixture
def make_handle():
    """Factory: ModelHandle over a FakeInterpreter."""
    def _make(model_id, input_shape, outputs, **kwargs):
        interpreter = FakeInterpreter(input_shape, outputs, **kwargs)
        interpreter.allocate_tensors()
        return ModelHandle(model_id, Path(f"{model_id}.tflite"), interpreter)
    return _make


@pytest.fixture
def fake_interpreter_cls():
    return FakeInterpreter


@pytest.fixture
def backend(tmp_path):
    """TFLite backend over an empty store; run() only needs handles."""
    return TFLiteBackend(ModelStore(tmp_path, {}))


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
models:
  directory: "models"
  artifacts:
    detector-v2: "no_reflex2000_float32.tflite"
    deglare-v1: "aigo_model_v1.tflite"

detector:
  model_id: "detector-v2"
  threshold: 0.7
  labels: ["蟠龍方壺", "虎形尊"]

deglare:
  model_id: "deglare-v1"

capture:
  backend: "file"

log_path: "logs/test.log"
log_level: "INFO"
""", encoding="utf-8")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "models": {
            "directory": "models",
            "artifacts": {
                "detector-v2": "no_reflex2000_float32.tflite",
                "deglare-v1": "aigo_model_v1.tflite",
            },
        },
        "detector": {
            "model_id": "detector-v2",
            "threshold": 0.7,
            "labels": list(DEFAULT_LABELS),
        },
        "deglare": {
            "model_id": "deglare-v1",
        },
        "capture": {
            "backend": "file",
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }


@pytest.fixture
def context_factory(tmp_path):
    """
    Factory: RuntimeContext over a real TFLiteBackend whose interpreters are fakes.

    detector_outputs is passed to the detector FakeInterpreter; model ids listed
    in missing have no artifact on disk and fail to load.
    """
    from models.config import Config
    from runtime.context import build_context

    def _build(detector_outputs=None, deglare_output=None, missing=(), save_images=False):
        model_dir = tmp_path / "models"
        model_dir.mkdir(exist_ok=True)
        for name in ("det.tflite", "gen.tflite"):
            (model_dir / name).write_bytes(b"\x00")
        for model_id in missing:
            (model_dir / {"detector-v2": "det.tflite", "deglare-v1": "gen.tflite"}[model_id]).unlink()

        if detector_outputs is None:
            detector_outputs = build_detector_output(anchors=16)
        if deglare_output is None:
            deglare_output = np.zeros((1, 6, 6, 3), dtype=np.float32)

        def factory(path):
            if path.endswith("det.tflite"):
                return FakeInterpreter((1, 8, 8, 3), detector_outputs)
            return FakeInterpreter((1, 6, 6, 3), deglare_output)

        config = Config.from_dict({
            "models": {
                "directory": str(model_dir),
                "artifacts": {"detector-v2": "det.tflite", "deglare-v1": "gen.tflite"},
            },
            "gallery": {"output_dir": str(tmp_path / "gallery")},
            "log_path": str(tmp_path / "logs" / "test.log"),
        })
        backend = TFLiteBackend(ModelStore.from_config(config.models), interpreter_factory=factory)
        return build_context(config, backend=backend, save_images=save_images)

    return _build
