"""
Configuration management for Trace2Spec.

Provides centralized, type-safe configuration with environment variable overrides
and sensible defaults for every inference stage.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load .env file if it exists (looks in cwd and parent directories)
load_dotenv()

DEFAULT_IRREGULAR_PLURALS: dict[str, str] = {
    "people": "person",
    "children": "child",
    "men": "man",
    "women": "woman",
    "mice": "mouse",
    "geese": "goose",
    "feet": "foot",
    "teeth": "tooth",
}


class FlowSettings(BaseModel):
    """Screen and flow detection thresholds."""

    min_steps_for_flow: int = Field(default=2, ge=0, description="Min steps before a navigation to emit a flow")
    max_flow_duration_ms: float = Field(
        default=5 * 60 * 1000, gt=0, description="Flows spanning longer than this are dropped as idle"
    )


class EntitySettings(BaseModel):
    """Entity inference options."""

    min_occurrences: int = Field(default=1, ge=1, description="Min network observations per entity")
    infer_relationships: bool = Field(default=True, description="Infer foreign-key relationships")
    min_required_observations: int = Field(
        default=2, ge=1, description="Request shapes needed before a field can be flagged required"
    )
    ignore_endpoints: list[str] = Field(default_factory=list, description="Substring or /regex/ patterns")
    entity_name_map: dict[str, str] = Field(default_factory=dict, description="Derived name overrides")
    irregular_plurals: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_IRREGULAR_PLURALS))


class StorageConfig(BaseModel):
    """Storage configuration for artifacts."""

    base_path: Path = Field(default=Path("./output"), description="Default output directory")


class Config(BaseModel):
    """Root configuration for Trace2Spec."""

    project_name: str = Field(default="Trace2Spec", description="Project identifier")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging level"
    )
    flows: FlowSettings = Field(default_factory=FlowSettings)
    entities: EntitySettings = Field(default_factory=EntitySettings)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    model_config = {"extra": "ignore"}

    @classmethod
    def from_env(cls) -> Config:
        """Create configuration from environment variables."""
        return cls(
            log_level=os.environ.get("T2S_LOG_LEVEL", "INFO"),  # type: ignore
            flows=FlowSettings(
                min_steps_for_flow=int(os.environ.get("T2S_MIN_STEPS_FOR_FLOW", "2")),
                max_flow_duration_ms=float(os.environ.get("T2S_MAX_FLOW_DURATION_MS", "300000")),
            ),
            entities=EntitySettings(
                min_occurrences=int(os.environ.get("T2S_MIN_OCCURRENCES", "1")),
                infer_relationships=os.environ.get("T2S_INFER_RELATIONSHIPS", "true").lower() == "true",
            ),
            storage=StorageConfig(
                base_path=Path(os.environ.get("T2S_OUTPUT_PATH", "./output")),
            ),
        )


@lru_cache(maxsize=1)
def get_config() -> Config:
    """Get cached configuration instance."""
    return Config.from_env()
