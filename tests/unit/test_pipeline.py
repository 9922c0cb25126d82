"""Unit tests for pipeline orchestration."""

import json

import pytest

from trace2spec.core.config import Config, FlowSettings
from trace2spec.core.types import StageStatus
from trace2spec.orchestration import run_pipeline
from trace2spec.storage import LocalStorageBackend


@pytest.mark.asyncio
class TestPipeline:
    """Tests for the end-to-end run."""

    async def test_runs_all_stages(self, temp_dir, write_json, journey_trace):
        trace_path = write_json("trace.json", journey_trace)
        output_dir = temp_dir / "out"

        result = await run_pipeline(trace_path, output_dir, storage=LocalStorageBackend(temp_dir))

        assert result.success, result.error
        assert [stage.stage_name for stage in result.run.stages] == ["flows", "entities", "rules"]
        assert all(stage.status == StageStatus.COMPLETED for stage in result.run.stages)
        assert result.run.final_status == StageStatus.COMPLETED
        for name in ("screens.json", "flows.json", "entities.json", "rules.json"):
            assert (output_dir / name).exists()

        assert result.flows.flows_found == 2
        assert result.entities.entities_found == 2
        assert result.rules.state_machines_found == 1

    async def test_explicit_config_supplies_settings(self, temp_dir, write_json, journey_trace):
        trace_path = write_json("trace.json", journey_trace)
        config = Config(flows=FlowSettings(min_steps_for_flow=3))

        result = await run_pipeline(
            trace_path, temp_dir / "out", storage=LocalStorageBackend(temp_dir), config=config
        )

        assert result.success, result.error
        assert result.flows.flows_found == 1

    async def test_records_hashes(self, temp_dir, write_json, journey_trace):
        trace_path = write_json("trace.json", journey_trace)

        result = await run_pipeline(trace_path, temp_dir / "out", storage=LocalStorageBackend(temp_dir))

        expected = LocalStorageBackend.compute_hash(trace_path.read_text().encode("utf-8"))
        assert result.run.trace_hash == expected
        assert result.run.get_stage("entities").input_hash == expected
        rules_hash = LocalStorageBackend.compute_hash((temp_dir / "out" / "rules.json").read_text().encode("utf-8"))
        assert result.run.get_stage("rules").output_hash == rules_hash

    async def test_rules_follow_extracted_artifacts(self, temp_dir, write_json, journey_trace):
        trace_path = write_json("trace.json", journey_trace)

        await run_pipeline(trace_path, temp_dir / "out", storage=LocalStorageBackend(temp_dir))

        rules = json.loads((temp_dir / "out" / "rules.json").read_text())
        machine = rules["stateMachines"][0]
        assert machine["entity"] == "Order"
        assert machine["states"] == ["draft", "active", "archived"]
        assert machine["transitions"][0]["trigger"] == "create_success"
        names = {(rule["entity"], rule["name"]) for rule in rules["businessRules"]}
        assert ("Order", "timestamp_immutability") in names

    async def test_stops_at_first_failure(self, temp_dir):
        result = await run_pipeline(temp_dir / "missing.json", temp_dir / "out", storage=LocalStorageBackend(temp_dir))

        assert not result.success
        assert result.failed_stage == "flows"
        assert result.run.final_status == StageStatus.FAILED
        assert [stage.stage_name for stage in result.run.stages] == ["flows"]
        assert result.run.stages[0].status == StageStatus.FAILED
        assert not (temp_dir / "out").exists()

    async def test_invalid_trace_reported_by_stage(self, temp_dir, write_json):
        trace_path = write_json("trace.json", {"sessions": []})

        result = await run_pipeline(trace_path, temp_dir / "out", storage=LocalStorageBackend(temp_dir))

        assert not result.success
        assert result.failed_stage == "flows"
        assert "Validation failed" in result.error
