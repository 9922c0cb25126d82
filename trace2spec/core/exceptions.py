"""
Custom exception hierarchy for Trace2Spec.

All exceptions inherit from Trace2SpecError so every stage can convert failures
into a result record at its boundary. Each exception carries context for logging.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Trace2SpecError(Exception):
    """Base exception for all Trace2Spec errors."""

    message: str
    context: dict[str, Any] = field(default_factory=dict)
    cause: Exception | None = None

    def __str__(self) -> str:
        ctx = f" | context: {self.context}" if self.context else ""
        cause = f" | caused by: {self.cause}" if self.cause else ""
        return f"{self.message}{ctx}{cause}"


@dataclass
class ValidationError(Trace2SpecError):
    """Raised when an input artifact does not match its model.

    ``errors`` holds one ``location: problem`` line per offending value.
    """

    model_name: str = ""
    errors: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        target = f" for {self.model_name}" if self.model_name else ""
        details = f" ({'; '.join(self.errors)})" if self.errors else ""
        return f"Validation failed{target}: {self.message}{details}"


@dataclass
class ServiceError(Trace2SpecError):
    """Raised when a stage operation fails."""

    service_name: str = ""
    operation: str = ""

    def __str__(self) -> str:
        base = super().__str__()
        return f"[{self.service_name}.{self.operation}]: {base}"


@dataclass
class InputLoadError(ServiceError):
    """Raised when an input file is missing, unreadable or not valid JSON."""

    path: str = ""

    def __str__(self) -> str:
        return f"Cannot load '{self.path}': {self.message}"


@dataclass
class PipelineError(Trace2SpecError):
    """Raised by the orchestrator when a stage reports failure."""

    stage: str = ""
    pipeline_run_id: str = ""

    def __str__(self) -> str:
        return f"Pipeline error at stage '{self.stage}' (run: {self.pipeline_run_id}): {self.message}"
