"""
Artifact recognition entry point.

Captures (or loads) a photo of a museum artifact, removes glare, runs the
detector on both the original and the de-glared image, and prints the fused
artifact labels. With --serve, exposes the same pipeline over HTTP instead.

Usage:
    python src/main.py --config config/config.yaml --image photo.jpg
    python src/main.py --camera
    python src/main.py --serve --port 5000

Arguments:
    --config: Path to configuration file
    --image: Recognise a photo file
    --camera: Capture a still from the configured OpenCV camera
    --no-save: Do not save the de-glared image
    --serve: Run the HTTP API
"""

import argparse
import logging
import os
import sys
from typing import Any, Dict, Optional, Tuple

import yaml

from models.config import Config
from observation import CaptureDenied, create_source_from_config, request_capture
from ops.logging import setup_logging
from pipeline.engine import PipelineEngine
from runtime.context import build_context

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
CAPTURE_DENIED_MESSAGE = "Camera access is required to recognise an artifact."
NO_SOURCE_MESSAGE = "Provide --image, --camera, or capture.path in the config."


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        config_dir = os.path.dirname(config_path)
        base_path = os.path.join(config_dir, "default.yaml")
        base_cfg = _read_yaml(base_path) if os.path.exists(base_path) else {}

        local_overrides_path = os.path.join(config_dir, "config.yaml")
        local_cfg = _read_yaml(local_overrides_path) if os.path.exists(local_overrides_path) else {}

        merged = _deep_merge(base_cfg, local_cfg)

        # Finally apply explicit config_path if it's not one of the files above
        explicit = os.path.abspath(config_path)
        if os.path.exists(config_path) and explicit not in (
            os.path.abspath(local_overrides_path),
            os.path.abspath(base_path),
        ):
            merged = _deep_merge(merged, _read_yaml(config_path))

        return merged
    except (OSError, yaml.YAMLError) as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    # Required top-level sections
    required_sections = ['models', 'detector', 'deglare', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Validate model store
    models = config.get('models') or {}
    if not isinstance(models.get('directory'), str):
        return False, "models.directory must be a string"
    artifacts = models.get('artifacts')
    if not isinstance(artifacts, dict) or not artifacts:
        return False, "models.artifacts must be a mapping of model id to file name"
    if not all(isinstance(k, str) and isinstance(v, str) and v for k, v in artifacts.items()):
        return False, "models.artifacts entries must map string ids to file names"

    # Validate detector settings
    detector = config.get('detector') or {}
    if detector.get('model_id') not in artifacts:
        return False, "detector.model_id must name an entry in models.artifacts"
    threshold = detector.get('threshold', 0.7)
    if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
        return False, "detector.threshold must be a number"
    if not (0 <= threshold < 1):
        return False, "detector.threshold must be in [0, 1)"
    labels = detector.get('labels')
    if not isinstance(labels, list) or not labels:
        return False, "detector.labels must be a non-empty list"
    if not all(isinstance(label, str) and label for label in labels):
        return False, "detector.labels entries must be non-empty strings"

    # Validate de-glare settings
    deglare = config.get('deglare') or {}
    if deglare.get('model_id') not in artifacts:
        return False, "deglare.model_id must name an entry in models.artifacts"

    # Optional capture backend selector
    capture = config.get('capture') or {}
    backend = capture.get('backend', 'file')
    if backend not in ('file', 'opencv'):
        return False, "capture.backend must be one of: file, opencv"
    if backend == 'opencv':
        device_id = capture.get('device_id', 0)
        if isinstance(device_id, bool) or not isinstance(device_id, (int, str)):
            return False, "capture.device_id must be an integer (index) or string (URL)"
        if isinstance(device_id, int) and device_id < 0:
            return False, "capture.device_id integer must be non-negative"
        max_retries = capture.get('max_retries', 3)
        if isinstance(max_retries, bool) or not isinstance(max_retries, int) or max_retries < 1:
            return False, "capture.max_retries must be a positive integer"
        warmup_frames = capture.get('warmup_frames', 5)
        if isinstance(warmup_frames, bool) or not isinstance(warmup_frames, int) or warmup_frames < 0:
            return False, "capture.warmup_frames must be a non-negative integer"

    # Optional web settings
    web = config.get('web') or {}
    if 'port' in web:
        port = web['port']
        if isinstance(port, bool) or not isinstance(port, int) or not (0 < port < 65536):
            return False, "web.port must be an integer between 1 and 65535"

    # Validate log settings
    if config['log_level'] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    return True, None


def run_once(engine: PipelineEngine, capture_cfg: Dict[str, Any], image_path: Optional[str]) -> int:
    """
    Capture one photo, run the pipeline, and print the result.

    Returns:
        Process exit code (0 on success).
    """
    source = create_source_from_config(capture_cfg, image_path=image_path)
    try:
        image = request_capture(source)
    except CaptureDenied as e:
        logging.error(f"Capture denied: {e}")
        print(CAPTURE_DENIED_MESSAGE, file=sys.stderr)
        return 1

    result = engine.run(image)
    if not result.ok:
        print(result.error_message, file=sys.stderr)
        return 1

    for label in result.labels:
        print(label)
    return 0


def main(argv=None) -> int:
    """Main application function."""
    parser = argparse.ArgumentParser(description='Museum artifact recognition')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    source = parser.add_mutually_exclusive_group()
    source.add_argument('--image', type=str,
                        help='Recognise the artifact in this photo file')
    source.add_argument('--camera', action='store_true',
                        help='Capture a still from the configured camera')
    source.add_argument('--serve', action='store_true',
                        help='Run the HTTP API instead of a one-shot recognition')
    parser.add_argument('--port', type=int, default=None,
                        help='HTTP port for --serve (overrides web.port)')
    parser.add_argument('--no-save', action='store_true',
                        help='Do not save the de-glared image')
    args = parser.parse_args(argv)

    # Load configuration
    raw_config = load_config(args.config)

    # Validate configuration
    is_valid, error_msg = validate_config(raw_config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        return 1

    config = Config.from_dict(raw_config)

    # Setup logging
    setup_logging(config.log_path, config.log_level)
    logging.info("Starting artifact recognition")

    # Resolve the photo source before paying for model loads
    capture_cfg = config.capture.to_dict()
    if args.camera:
        capture_cfg["backend"] = "opencv"
    elif (not args.serve and args.image is None and not capture_cfg.get("path")
          and capture_cfg.get("backend") == "file"):
        logging.error("No photo source configured")
        print(NO_SOURCE_MESSAGE, file=sys.stderr)
        return 1

    # Models are loaded once here and shared by every run
    ctx = build_context(config, save_images=False if args.no_save else None)
    if not ctx.ready:
        logging.warning(f"Models not ready: {ctx.load_errors}")

    if args.serve:
        import uvicorn
        from web.app import create_app

        port = args.port or config.web.port
        logging.info(f"Web interface starting on port {port}")
        uvicorn.run(create_app(ctx), host=config.web.host, port=port, log_level="info")
        return 0

    return run_once(PipelineEngine.from_context(ctx), capture_cfg, args.image)


if __name__ == "__main__":
    sys.exit(main())
