"""Orchestration module for Trace2Spec."""

from .pipeline import PipelineConfig, PipelineResult, Trace2SpecPipeline, run_pipeline

__all__ = [
    "PipelineConfig",
    "PipelineResult",
    "Trace2SpecPipeline",
    "run_pipeline",
]
