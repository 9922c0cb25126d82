"""Core infrastructure components for Trace2Spec."""

from .config import Config, get_config
from .exceptions import (
    InputLoadError,
    PipelineError,
    ServiceError,
    Trace2SpecError,
    ValidationError,
)
from .logging import bind_context, clear_context, get_logger, log_diagnostics, setup_logging, stage_context
from .types import ArtifactPath, Hash, IdSequence, StageReport, StageResult

__all__ = [
    "Config",
    "get_config",
    "InputLoadError",
    "PipelineError",
    "ServiceError",
    "Trace2SpecError",
    "ValidationError",
    "bind_context",
    "clear_context",
    "get_logger",
    "log_diagnostics",
    "setup_logging",
    "stage_context",
    "ArtifactPath",
    "Hash",
    "IdSequence",
    "StageReport",
    "StageResult",
]
