"""
Error taxonomy for the recognition pipeline.

Every stage raises one of these; the pipeline engine catches PipelineError
at its boundary, records the failing stage, and halts the run.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for all errors that terminate a pipeline run."""


class PreprocessError(PipelineError):
    """Image missing, unreadable, or its RGB byte count does not match the target size."""


class ModelLoadError(PipelineError):
    """Model artifact missing, interpreter unavailable, or graph allocation failed."""


class ModelNotFound(ModelLoadError):
    """Model identifier could not be resolved to an artifact on disk."""


class InferenceError(PipelineError):
    """Input/output shape or dtype mismatch, or interpreter execution failure."""


class ReconstructError(PipelineError):
    """Generator output is too small for the requested image size, or not finite."""
