"""
Model storage: resolve model identifiers to artifact paths.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Union

from models.config import ModelStoreConfig
from models.errors import ModelNotFound


class ModelStore:
    """
    Maps model ids ("detector-v2", "deglare-v1") to files under a directory.

    Example:
        store = ModelStore("models", {"detector-v2": "no_reflex2000_float32.tflite"})
        path = store.resolve("detector-v2")
    """

    def __init__(self, directory: Union[str, Path], artifacts: Dict[str, str]):
        self.directory = Path(directory)
        self.artifacts = dict(artifacts)

    @classmethod
    def from_config(cls, cfg: ModelStoreConfig) -> "ModelStore":
        return cls(cfg.directory, cfg.artifacts)

    def resolve(self, model_id: str) -> Path:
        """
        Return the artifact path for a model id.

        Raises:
            ModelNotFound: If the id is unknown or the file does not exist.
        """
        filename = self.artifacts.get(model_id)
        if not filename:
            raise ModelNotFound(f"Unknown model id: {model_id}")
        path = Path(filename)
        if not path.is_absolute():
            path = self.directory / path
        if not path.is_file():
            raise ModelNotFound(f"Model artifact for {model_id} not found: {path}")
        return path
