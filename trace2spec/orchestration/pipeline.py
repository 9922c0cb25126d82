"""
Main pipeline orchestration for Trace2Spec.

Runs the flow, entity and rule stages in order over one trace, writing every
artifact into one output directory and recording a StageResult per stage.
Stages run sequentially without retries; the run stops at the first failure.
"""

from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from ..core.config import Config, EntitySettings, FlowSettings, get_config
from ..core.exceptions import PipelineError
from ..core.logging import bind_context, clear_context, get_logger, setup_logging, stage_context
from ..core.types import PipelineRun, StageReport, StageResult, StageStatus, utcnow
from ..services.entities import EntitiesConfig, EntitiesResult, extract_entities
from ..services.flows import FlowsConfig, FlowsResult, extract_flows
from ..services.rules import RulesConfig, RulesResult, extract_rules
from ..storage import LocalStorageBackend, StorageBackend

logger = get_logger(__name__)

SCREENS_FILE = "screens.json"
FLOWS_FILE = "flows.json"
ENTITIES_FILE = "entities.json"
RULES_FILE = "rules.json"


class PipelineConfig(BaseModel):
    """Configuration for a pipeline run."""

    trace_path: Path = Field(description="Path to the input trace")
    output_dir: Path = Field(description="Directory receiving all artifacts")
    flows: FlowSettings = Field(default_factory=FlowSettings)
    entities: EntitySettings = Field(default_factory=EntitySettings)


class PipelineResult(BaseModel):
    """Result of a complete pipeline run."""

    run_id: str
    success: bool
    started_at: datetime
    completed_at: datetime
    run: PipelineRun

    # Stage reports
    flows: FlowsResult | None = None
    entities: EntitiesResult | None = None
    rules: RulesResult | None = None

    output_directory: str = ""

    # Errors
    error: str | None = None
    failed_stage: str | None = None


class Trace2SpecPipeline:
    """High-level pipeline interface for programmatic use."""

    def __init__(self, storage: StorageBackend | None = None, config: Config | None = None) -> None:
        """Initialize the pipeline.

        Args:
            storage: Backend for reading the trace and writing artifacts.
            config: Application configuration; defaults to get_config().
        """
        self.config = config or get_config()
        self.storage = storage or LocalStorageBackend()
        setup_logging(self.config)

    async def _hash_keys(self, keys: list[str]) -> str:
        data = b"".join([(await self.storage.load_text(key)).encode("utf-8") for key in keys])
        return self.storage.compute_hash(data)

    async def _run_stage(
        self,
        run: PipelineRun,
        name: str,
        input_keys: list[str],
        execute: Callable[[], Awaitable[StageReport]],
        artifacts: list[str],
    ) -> Any:
        """Run one stage and record it on ``run``.

        Raises:
            PipelineError: If the stage reports failure.
        """
        stage = StageResult(stage_name=name, status=StageStatus.RUNNING)
        run.stages.append(stage)

        with stage_context(name):
            stage.input_hash = await self._hash_keys(input_keys)
            report = await execute()
            stage.diagnostics = list(report.diagnostics)

            if not report.success:
                error = "; ".join(report.errors) or "stage reported failure"
                stage.mark_failed(error)
                raise PipelineError(error, stage=name, pipeline_run_id=run.run_id)

            stage.mark_completed(await self._hash_keys(artifacts), [Path(a) for a in artifacts])
            logger.info(
                "Stage completed",
                duration_s=round(stage.duration_seconds, 3),
                diagnostics=len(stage.diagnostics),
            )
        return report

    async def execute(self, config: PipelineConfig) -> PipelineResult:
        """Execute flows, entities and rules over ``config.trace_path``.

        Args:
            config: Pipeline configuration

        Returns:
            PipelineResult with the stage reports and run record
        """
        run_id = str(uuid.uuid4())[:8]
        started_at = utcnow()
        run = PipelineRun(run_id=run_id, started_at=started_at, final_status=StageStatus.RUNNING)
        result = PipelineResult(
            run_id=run_id,
            success=False,
            started_at=started_at,
            completed_at=started_at,
            run=run,
            output_directory=str(config.output_dir),
        )

        trace_key = str(config.trace_path)
        screens_key = str(config.output_dir / SCREENS_FILE)
        flows_key = str(config.output_dir / FLOWS_FILE)
        entities_key = str(config.output_dir / ENTITIES_FILE)
        rules_key = str(config.output_dir / RULES_FILE)

        bind_context(run_id=run_id)
        logger.info("Starting Trace2Spec pipeline", trace=trace_key, output=str(config.output_dir))

        try:
            result.flows = await self._run_stage(
                run,
                "flows",
                [trace_key],
                lambda: extract_flows(
                    FlowsConfig(
                        trace_path=config.trace_path,
                        screens_out=Path(screens_key),
                        flows_out=Path(flows_key),
                        min_steps_for_flow=config.flows.min_steps_for_flow,
                        max_flow_duration_ms=config.flows.max_flow_duration_ms,
                    ),
                    self.storage,
                ),
                [screens_key, flows_key],
            )
            run.trace_hash = run.stages[0].input_hash

            result.entities = await self._run_stage(
                run,
                "entities",
                [trace_key],
                lambda: extract_entities(
                    EntitiesConfig(trace_path=config.trace_path, out=Path(entities_key), settings=config.entities),
                    self.storage,
                ),
                [entities_key],
            )

            result.rules = await self._run_stage(
                run,
                "rules",
                [trace_key, flows_key, entities_key],
                lambda: extract_rules(
                    RulesConfig(
                        trace_path=config.trace_path,
                        flows_path=Path(flows_key),
                        entities_path=Path(entities_key),
                        screens_path=Path(screens_key),
                        out=Path(rules_key),
                        settings=config.entities,
                    ),
                    self.storage,
                ),
                [rules_key],
            )

            run.final_status = StageStatus.COMPLETED
            result.success = True
            logger.info("Pipeline completed", stages=len(run.stages))

        except PipelineError as e:
            run.final_status = StageStatus.FAILED
            result.error = e.message
            result.failed_stage = e.stage
            logger.error("Pipeline failed", stage=e.stage, error=e.message)

        except Exception as e:
            run.final_status = StageStatus.FAILED
            result.error = str(e)
            current = run.stages[-1] if run.stages else None
            if current is not None and current.status == StageStatus.RUNNING:
                current.mark_failed(str(e))
                result.failed_stage = current.stage_name
            logger.error("Pipeline failed", error=str(e))

        finally:
            run.completed_at = utcnow()
            result.completed_at = run.completed_at
            clear_context()

        return result

    async def run(
        self,
        trace_path: Path,
        output_dir: Path | None = None,
        flow_settings: FlowSettings | None = None,
        entity_settings: EntitySettings | None = None,
    ) -> PipelineResult:
        """Run the complete pipeline.

        Args:
            trace_path: Path to the input trace
            output_dir: Artifact directory; defaults to the configured storage path
            flow_settings: Flow thresholds; defaults to the configured values
            entity_settings: Entity options; defaults to the configured values

        Returns:
            PipelineResult with all stage reports
        """
        config = PipelineConfig(
            trace_path=trace_path,
            output_dir=output_dir or self.config.storage.base_path,
            flows=flow_settings or self.config.flows,
            entities=entity_settings or self.config.entities,
        )
        return await self.execute(config)


async def run_pipeline(
    trace_path: str | Path,
    output_dir: str | Path | None = None,
    **kwargs: Any,
) -> PipelineResult:
    """Convenience function to run the pipeline.

    Args:
        trace_path: Path to the input trace
        output_dir: Artifact directory
        **kwargs: Additional configuration options

    Returns:
        PipelineResult with all stage reports
    """
    pipeline = Trace2SpecPipeline(kwargs.pop("storage", None), kwargs.pop("config", None))
    return await pipeline.run(
        trace_path=Path(trace_path),
        output_dir=Path(output_dir) if output_dir is not None else None,
        **kwargs,
    )
