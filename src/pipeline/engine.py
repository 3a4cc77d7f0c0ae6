"""
Pipeline engine for artifact recognition.

One run takes a captured photo through two detector passes:

    pass A: prepare -> detect (original image)
    pass B: prepare -> de-glare -> reconstruct -> prepare -> detect

and fuses both label sets. The run is linear with no retries: the first
PipelineError moves it to FAILED and the remaining stages are skipped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Protocol, Sequence, Tuple

from models.detection import DetectionSet
from models.errors import (
    InferenceError,
    ModelLoadError,
    PipelineError,
    PreprocessError,
    ReconstructError,
)
from models.image import Image
from models.tensor import Tensor
from inference.backend import InferenceBackend, ModelHandle
from detection.decoder import DEFAULT_THRESHOLD, decode
from deglare.reconstruction import reconstruct
from preprocessing.tensor_prep import prepare
from pipeline.stages.fusion import fuse


class PipelineStage(str, Enum):
    IDLE = "idle"
    PREPARING_A = "preparing_a"
    DETECTING_A = "detecting_a"
    PREPARING_DEGLARE = "preparing_deglare"
    DEGLARING = "deglaring"
    RECONSTRUCTING_IMAGE = "reconstructing_image"
    PREPARING_B = "preparing_b"
    DETECTING_B = "detecting_b"
    FUSING = "fusing"
    DONE = "done"
    FAILED = "failed"


# User-facing message per error type; most specific first
FAILURE_MESSAGES: Sequence[Tuple[type, str]] = (
    (PreprocessError, "The photo could not be prepared for recognition."),
    (ModelLoadError, "A recognition model is not loaded."),
    (InferenceError, "Model inference failed."),
    (ReconstructError, "The de-glared image could not be reconstructed."),
)
DEFAULT_FAILURE_MESSAGE = "Artifact recognition failed."


def failure_message(error: PipelineError) -> str:
    """Map a pipeline error to the single message shown to the user."""
    for error_type, message in FAILURE_MESSAGES:
        if isinstance(error, error_type):
            return message
    return DEFAULT_FAILURE_MESSAGE


class ImageSink(Protocol):
    def save(self, image: Image) -> None:
        ...


@dataclass
class PipelineConfig:
    """
    Configuration for the pipeline engine.

    Attributes:
        labels: Ordered detector label table (class channel 4 + i -> labels[i]).
        threshold: Strict confidence threshold for a class to count as detected.
    """
    labels: List[str] = field(default_factory=list)
    threshold: float = DEFAULT_THRESHOLD


@dataclass
class PipelineResult:
    """
    Outcome of one pipeline run.

    On failure, labels is empty and the partial pass results are dropped.
    """
    stage: PipelineStage
    labels: Tuple[str, ...] = ()
    pass_a: Optional[DetectionSet] = None
    pass_b: Optional[DetectionSet] = None
    failed_stage: Optional[PipelineStage] = None
    error: Optional[PipelineError] = None
    error_message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.stage == PipelineStage.DONE


class _Run:
    """Stage bookkeeping for a single run, so one engine can serve many callers."""

    def __init__(self, callbacks: List[Callable[[PipelineStage], None]]):
        self.stage = PipelineStage.IDLE
        self._callbacks = callbacks

    def enter(self, stage: PipelineStage) -> None:
        logging.debug(f"Pipeline stage: {self.stage.value} -> {stage.value}")
        self.stage = stage
        for callback in self._callbacks:
            callback(stage)


class PipelineEngine:
    """
    Runs the dual-pass detection pipeline on one image at a time.

    Model handles are created once (see runtime.context) and shared; the
    backend serializes runs per handle, so concurrent run() calls are safe.

    Example:
        engine = PipelineEngine(backend, detector, deglare, PipelineConfig(labels))
        result = engine.run(image)
        if result.ok:
            print(result.labels)
    """

    def __init__(
        self,
        backend: InferenceBackend,
        detector: Optional[ModelHandle],
        deglare: Optional[ModelHandle],
        config: PipelineConfig,
        gallery: Optional[ImageSink] = None,
    ):
        self.backend = backend
        self.detector = detector
        self.deglare = deglare
        self.config = config
        self.gallery = gallery
        self._callbacks: List[Callable[[PipelineStage], None]] = []

    @classmethod
    def from_context(cls, ctx: Any) -> "PipelineEngine":
        """Build an engine from a RuntimeContext."""
        return cls(
            backend=ctx.backend,
            detector=ctx.detector,
            deglare=ctx.deglare,
            config=PipelineConfig(
                labels=list(ctx.config.detector.labels),
                threshold=ctx.config.detector.threshold,
            ),
            gallery=ctx.gallery,
        )

    def add_callback(self, callback: Callable[[PipelineStage], None]) -> None:
        """
        Add a callback to be called on every stage transition.

        Args:
            callback: Function taking the stage being entered.
        """
        self._callbacks.append(callback)

    def run(self, image: Optional[Image]) -> PipelineResult:
        """
        Run both passes and fuse them.

        Returns a DONE result with the fused labels, or a FAILED result
        carrying the failing stage, the error and a user-facing message.
        """
        run = _Run(self._callbacks)
        try:
            return self._execute(run, image)
        except PipelineError as e:
            failed_stage = run.stage
            run.enter(PipelineStage.FAILED)
            logging.error(f"Pipeline failed at {failed_stage.value}: {e}")
            return PipelineResult(
                stage=PipelineStage.FAILED,
                failed_stage=failed_stage,
                error=e,
                error_message=failure_message(e),
            )

    def _execute(self, run: _Run, image: Optional[Image]) -> PipelineResult:
        if image is None:
            raise PreprocessError("No captured image")
        if self.detector is None:
            raise ModelLoadError("Detector model is not ready")
        if self.deglare is None:
            raise ModelLoadError("De-glare model is not ready")

        run.enter(PipelineStage.PREPARING_A)
        tensor_a = prepare(image, self.detector.input_size)
        run.enter(PipelineStage.DETECTING_A)
        pass_a = self._detect(tensor_a)
        logging.info(f"Pass A (original) labels: {pass_a.to_list()}")

        run.enter(PipelineStage.PREPARING_DEGLARE)
        deglare_input = prepare(image, self.deglare.input_size)
        run.enter(PipelineStage.DEGLARING)
        deglare_output = self.backend.run(self.deglare, deglare_input)
        run.enter(PipelineStage.RECONSTRUCTING_IMAGE)
        deglared = self._reconstruct(deglare_output)
        if self.gallery is not None:
            self.gallery.save(deglared)

        run.enter(PipelineStage.PREPARING_B)
        tensor_b = prepare(deglared, self.detector.input_size)
        run.enter(PipelineStage.DETECTING_B)
        pass_b = self._detect(tensor_b)
        logging.info(f"Pass B (de-glared) labels: {pass_b.to_list()}")

        run.enter(PipelineStage.FUSING)
        final = fuse(pass_a, pass_b)
        logging.info(f"Final labels: {final.to_list()}")

        run.enter(PipelineStage.DONE)
        return PipelineResult(
            stage=PipelineStage.DONE,
            labels=final.labels,
            pass_a=pass_a,
            pass_b=pass_b,
        )

    def _detect(self, tensor: Tensor) -> DetectionSet:
        output = self.backend.run(self.detector, tensor)
        detections = decode(output, self.config.labels, self.config.threshold)
        for det in detections:
            logging.debug(f"Detected {det.label} confidence={det.confidence:.4f}")
        return DetectionSet.from_detections(detections)

    def _reconstruct(self, output: Tensor) -> Image:
        # Generator output is (1, h, w, 3); fall back to the input size otherwise
        if output.rank == 4:
            width, height = output.shape[2], output.shape[1]
        else:
            width, height = self.deglare.input_size
        return reconstruct(output, width, height)
