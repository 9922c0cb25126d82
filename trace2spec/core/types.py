"""
Core type definitions for Trace2Spec.

Provides the result records returned by every stage, the per-stage execution
records collected by the pipeline, and the identifier sequence threaded through
stages in place of process-wide counters.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Type aliases
ArtifactPath = Path
Hash = str  # SHA-256 hash


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base for models exchanged as camelCase JSON with external collaborators."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class IdSequence:
    """Monotonic identifier generator scoped to a single stage invocation.

    >>> ids = IdSequence("flow")
    >>> ids.next(), ids.next()
    ('flow-1', 'flow-2')
    """

    def __init__(self, prefix: str, start: int = 1) -> None:
        self.prefix = prefix
        self._next = start

    def next(self) -> str:
        value = f"{self.prefix}-{self._next}"
        self._next += 1
        return value


class StageStatus(str, Enum):
    """Status of a pipeline stage."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class StageReport(CamelModel):
    """Result record shared by all stages.

    Fatal failures set ``success`` to False and fill ``errors``. Heuristic
    fallbacks and skipped records never fail a stage; they are reported in
    ``diagnostics``.
    """

    success: bool
    errors: list[str] = Field(default_factory=list)
    diagnostics: list[str] = Field(default_factory=list)
    duration_ms: float = Field(default=0.0)


class StageResult(BaseModel):
    """Execution record of a pipeline stage."""

    stage_name: str = Field(description="Name of the pipeline stage")
    status: StageStatus = Field(default=StageStatus.PENDING, description="Execution status")
    started_at: datetime = Field(default_factory=utcnow)
    completed_at: datetime | None = Field(default=None)
    duration_seconds: float = Field(default=0.0)
    input_hash: Hash = Field(default="", description="Hash of stage input")
    output_hash: Hash = Field(default="", description="Hash of stage output")
    artifacts: list[ArtifactPath] = Field(default_factory=list, description="Written artifacts")
    error_message: str | None = Field(default=None)
    diagnostics: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    def mark_completed(self, output_hash: Hash, artifacts: list[ArtifactPath]) -> None:
        """Mark stage as successfully completed."""
        self.status = StageStatus.COMPLETED
        self.completed_at = utcnow()
        self.output_hash = output_hash
        self.artifacts = artifacts
        self.duration_seconds = (self.completed_at - self.started_at).total_seconds()

    def mark_failed(self, error: str) -> None:
        """Mark stage as failed."""
        self.status = StageStatus.FAILED
        self.completed_at = utcnow()
        self.error_message = error
        self.duration_seconds = (self.completed_at - self.started_at).total_seconds()


class PipelineRun(BaseModel):
    """Represents a complete pipeline execution over one trace."""

    run_id: str = Field(description="Unique run identifier")
    trace_hash: Hash = Field(default="", description="SHA-256 hash of the input trace")
    started_at: datetime = Field(default_factory=utcnow)
    completed_at: datetime | None = Field(default=None)
    stages: list[StageResult] = Field(default_factory=list)
    final_status: StageStatus = Field(default=StageStatus.PENDING)

    def get_stage(self, name: str) -> StageResult | None:
        """Get a stage result by name."""
        for stage in self.stages:
            if stage.stage_name == name:
                return stage
        return None
