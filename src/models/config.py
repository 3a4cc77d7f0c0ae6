"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

DEFAULT_LABELS: List[str] = [
    "蟠龍方壺",
    "虎形尊",
    "獸形器座",
    "青花花鳥八角盒",
    "三彩馬",
    "金柄銅短劍",
    "三彩加藍人面鎮墓獸",
]

DEFAULT_ARTIFACTS: Dict[str, str] = {
    "detector-v2": "no_reflex2000_float32.tflite",
    "deglare-v1": "aigo_model_v1.tflite",
}


@dataclass
class ModelStoreConfig:
    """Where model artifacts live and how identifiers map to files."""
    directory: str = "models"
    artifacts: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_ARTIFACTS))

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ModelStoreConfig":
        return cls(
            directory=d.get("directory", "models"),
            artifacts=dict(d.get("artifacts") or DEFAULT_ARTIFACTS),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "directory": self.directory,
            "artifacts": dict(self.artifacts),
        }


@dataclass
class DetectorConfig:
    """Detector model configuration."""
    model_id: str = "detector-v2"
    threshold: float = 0.7
    labels: List[str] = field(default_factory=lambda: list(DEFAULT_LABELS))

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectorConfig":
        return cls(
            model_id=d.get("model_id", "detector-v2"),
            threshold=float(d.get("threshold", 0.7)),
            labels=list(d.get("labels") or DEFAULT_LABELS),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model_id": self.model_id,
            "threshold": self.threshold,
            "labels": list(self.labels),
        }


@dataclass
class DeglareConfig:
    """De-glare generator model configuration."""
    model_id: str = "deglare-v1"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DeglareConfig":
        return cls(model_id=d.get("model_id", "deglare-v1"))

    def to_dict(self) -> Dict[str, Any]:
        return {"model_id": self.model_id}


@dataclass
class CaptureConfig:
    """Capture source configuration."""
    backend: str = "file"
    path: Optional[str] = None
    device_id: Union[int, str] = 0
    resolution: Optional[List[int]] = field(default_factory=lambda: [1280, 720])
    warmup_frames: int = 5
    max_retries: int = 3

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CaptureConfig":
        return cls(
            backend=d.get("backend", "file"),
            path=d.get("path"),
            device_id=d.get("device_id", 0),
            resolution=d.get("resolution", [1280, 720]),
            warmup_frames=d.get("warmup_frames", 5),
            max_retries=d.get("max_retries", 3),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "path": self.path,
            "device_id": self.device_id,
            "resolution": self.resolution,
            "warmup_frames": self.warmup_frames,
            "max_retries": self.max_retries,
        }


@dataclass
class GalleryConfig:
    """Where de-glared images are saved."""
    enabled: bool = True
    output_dir: str = "output/deglared"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "GalleryConfig":
        return cls(
            enabled=d.get("enabled", True),
            output_dir=d.get("output_dir", "output/deglared"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "output_dir": self.output_dir,
        }


@dataclass
class WebConfig:
    """HTTP API configuration."""
    host: str = "0.0.0.0"
    port: int = 5000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(
            host=d.get("host", "0.0.0.0"),
            port=d.get("port", 5000),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"host": self.host, "port": self.port}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    models: ModelStoreConfig = field(default_factory=ModelStoreConfig)
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    deglare: DeglareConfig = field(default_factory=DeglareConfig)
    capture: CaptureConfig = field(default_factory=CaptureConfig)
    gallery: GalleryConfig = field(default_factory=GalleryConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/artifact_recognition.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            models=ModelStoreConfig.from_dict(d.get("models", {}) or {}),
            detector=DetectorConfig.from_dict(d.get("detector", {}) or {}),
            deglare=DeglareConfig.from_dict(d.get("deglare", {}) or {}),
            capture=CaptureConfig.from_dict(d.get("capture", {}) or {}),
            gallery=GalleryConfig.from_dict(d.get("gallery", {}) or {}),
            web=WebConfig.from_dict(d.get("web", {}) or {}),
            log_path=d.get("log_path", "logs/artifact_recognition.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or passing to existing code)."""
        return {
            "models": self.models.to_dict(),
            "detector": self.detector.to_dict(),
            "deglare": self.deglare.to_dict(),
            "capture": self.capture.to_dict(),
            "gallery": self.gallery.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
