"""
Inference layer: model storage, handles, and the TFLite backend.
"""

from .backend import InferenceBackend, ModelHandle
from .model_store import ModelStore
from .tflite_backend import TFLiteBackend, default_interpreter_factory

__all__ = [
    "InferenceBackend",
    "ModelHandle",
    "ModelStore",
    "TFLiteBackend",
    "default_interpreter_factory",
]
