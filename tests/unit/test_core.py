"""Unit tests for core configuration, types and exceptions."""

from trace2spec.core.config import Config
from trace2spec.core.exceptions import InputLoadError, PipelineError, ValidationError
from trace2spec.core.types import IdSequence, PipelineRun, StageResult, StageStatus


class TestConfig:
    """Tests for environment-driven configuration."""

    def test_defaults(self, monkeypatch):
        for name in (
            "T2S_LOG_LEVEL",
            "T2S_MIN_STEPS_FOR_FLOW",
            "T2S_MAX_FLOW_DURATION_MS",
            "T2S_MIN_OCCURRENCES",
            "T2S_INFER_RELATIONSHIPS",
        ):
            monkeypatch.delenv(name, raising=False)

        config = Config.from_env()

        assert config.log_level == "INFO"
        assert config.flows.min_steps_for_flow == 2
        assert config.flows.max_flow_duration_ms == 300000
        assert config.entities.min_occurrences == 1
        assert config.entities.infer_relationships
        assert config.entities.irregular_plurals["people"] == "person"

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("T2S_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("T2S_MIN_STEPS_FOR_FLOW", "3")
        monkeypatch.setenv("T2S_MAX_FLOW_DURATION_MS", "1000")
        monkeypatch.setenv("T2S_MIN_OCCURRENCES", "2")
        monkeypatch.setenv("T2S_INFER_RELATIONSHIPS", "false")
        monkeypatch.setenv("T2S_OUTPUT_PATH", str(tmp_path))

        config = Config.from_env()

        assert config.log_level == "DEBUG"
        assert config.flows.min_steps_for_flow == 3
        assert config.flows.max_flow_duration_ms == 1000
        assert config.entities.min_occurrences == 2
        assert not config.entities.infer_relationships
        assert config.storage.base_path == tmp_path


class TestTypes:
    """Tests for identifiers and stage records."""

    def test_id_sequence(self):
        ids = IdSequence("flow")
        assert [ids.next(), ids.next(), ids.next()] == ["flow-1", "flow-2", "flow-3"]

    def test_id_sequences_are_independent(self):
        first, second = IdSequence("flow"), IdSequence("flow")
        first.next()
        assert second.next() == "flow-1"

    def test_stage_result_lifecycle(self):
        stage = StageResult(stage_name="flows", status=StageStatus.RUNNING)
        stage.mark_completed("abc", [])

        assert stage.status == StageStatus.COMPLETED
        assert stage.output_hash == "abc"
        assert stage.completed_at is not None
        assert stage.duration_seconds >= 0

    def test_stage_result_failure(self):
        stage = StageResult(stage_name="rules")
        stage.mark_failed("boom")

        assert stage.status == StageStatus.FAILED
        assert stage.error_message == "boom"

    def test_pipeline_run_get_stage(self):
        run = PipelineRun(run_id="r1", stages=[StageResult(stage_name="flows")])

        assert run.get_stage("flows").stage_name == "flows"
        assert run.get_stage("rules") is None


class TestExceptions:
    """Tests for error formatting."""

    def test_input_load_error(self):
        error = InputLoadError(message="File not found", service_name="storage", operation="load", path="t.json")
        assert str(error) == "Cannot load 't.json': File not found"

    def test_validation_error_lists_problems(self):
        error = ValidationError(message="bad trace", model_name="Trace", errors=["meta: Field required"])
        assert str(error) == "Validation failed for Trace: bad trace (meta: Field required)"

    def test_pipeline_error(self):
        error = PipelineError("boom", stage="entities", pipeline_run_id="r1")
        assert str(error) == "Pipeline error at stage 'entities' (run: r1): boom"
