from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from models.config import Config
from models.errors import ModelLoadError
from inference.backend import InferenceBackend, ModelHandle
from inference.model_store import ModelStore
from inference.tflite_backend import TFLiteBackend
from storage.gallery import GallerySink


@dataclass
class RuntimeContext:
    """Holds loaded model handles and collaborators; avoids global singletons."""

    config: Config
    backend: InferenceBackend
    detector: Optional[ModelHandle]
    deglare: Optional[ModelHandle]
    gallery: Optional[GallerySink] = None

    # Load failures by role, kept so every run can report "not ready"
    load_errors: Dict[str, str] = field(default_factory=dict)

    @property
    def ready(self) -> bool:
        return self.detector is not None and self.deglare is not None

    def model_status(self) -> Dict[str, Dict[str, object]]:
        status = {}
        for role, handle in (("detector", self.detector), ("deglare", self.deglare)):
            status[role] = {
                "ready": handle is not None,
                "model_id": handle.model_id if handle is not None else None,
                "input_shape": list(handle.input_shape) if handle is not None else None,
                "output_shape": list(handle.output_shape) if handle is not None else None,
                "error": self.load_errors.get(role),
            }
        return status


def _load_model(backend: InferenceBackend, role: str, model_id: str, errors: Dict[str, str]) -> Optional[ModelHandle]:
    try:
        return backend.load(model_id)
    except ModelLoadError as e:
        logging.error(f"Failed to load {role} model {model_id}: {e}")
        errors[role] = str(e)
        return None


def build_context(
    config: Config,
    backend: Optional[InferenceBackend] = None,
    save_images: Optional[bool] = None,
) -> RuntimeContext:
    """
    Load both models once and wire collaborators.

    A model that fails to load leaves its handle as None; the pipeline then
    fails fast on every run instead of the process refusing to start.

    Args:
        config: Typed application config.
        backend: Inference backend (defaults to TFLite over the configured store).
        save_images: Override gallery.enabled (e.g. from --no-save).
    """
    if backend is None:
        backend = TFLiteBackend(ModelStore.from_config(config.models))

    errors: Dict[str, str] = {}
    detector = _load_model(backend, "detector", config.detector.model_id, errors)
    deglare = _load_model(backend, "deglare", config.deglare.model_id, errors)

    gallery = GallerySink.from_config(config.gallery)
    if save_images is not None:
        gallery.enabled = save_images

    return RuntimeContext(
        config=config,
        backend=backend,
        detector=detector,
        deglare=deglare,
        gallery=gallery,
        load_errors=errors,
    )
