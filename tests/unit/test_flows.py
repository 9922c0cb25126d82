"""Unit tests for the flow assembler."""

import json

import pytest
from conftest import make_event, make_trace, network

from trace2spec.core.types import IdSequence
from trace2spec.models.flows import FlowStepType
from trace2spec.models.trace import Trace
from trace2spec.services.flows import FlowAssembler, FlowsConfig, FlowsService, extract_flows


def clicks_then_navigate(count):
    """A session with ``count`` clicks followed by a navigation to /workspaces."""
    events = [make_event(f"c{i}", "click", 1000 * i, selector=f"#b{i}") for i in range(1, count + 1)]
    events.append(make_event("nav", "navigate", 1000 * (count + 1), toUrl="https://app.test/workspaces"))
    return Trace.model_validate(make_trace(events))


class TestFlowAssembler:
    """Tests for flow boundaries and thresholds."""

    def test_two_clicks_then_navigate(self):
        """Two clicks and a navigation form one landing-to-workspaces flow."""
        flows = FlowAssembler().assemble(clicks_then_navigate(2))

        assert len(flows) == 1
        flow = flows[0]
        assert flow.id == "flow-1"
        assert flow.from_screen == "screen-landing"
        assert flow.to_screen == "screen-workspaces"
        assert flow.name == "Landing Page → Workspaces"
        assert [step.type for step in flow.steps] == [
            FlowStepType.CLICK,
            FlowStepType.CLICK,
            FlowStepType.NAVIGATE,
        ]
        assert [step.action for step in flow.steps[:2]] == ["#b1", "#b2"]

    @pytest.mark.parametrize("count", [0, 1])
    def test_below_min_steps_emits_nothing(self, count):
        assert FlowAssembler().assemble(clicks_then_navigate(count)) == []

    def test_step_durations_and_elapsed_time(self):
        flow = FlowAssembler().assemble(clicks_then_navigate(2))[0]

        assert [step.duration for step in flow.steps] == [0, 1000, 1000]
        assert flow.avg_duration == 3000

    def test_trailing_steps_without_navigation_are_not_a_flow(self):
        trace = Trace.model_validate(make_trace([
            make_event("c1", "click", 10),
            make_event("c2", "click", 20),
            make_event("c3", "click", 30),
        ]))
        assert FlowAssembler().assemble(trace) == []

    def test_idle_flow_dropped_with_diagnostic(self):
        """Flows spanning longer than the maximum duration are discarded."""
        assembler = FlowAssembler(max_duration_ms=2500)

        assert assembler.assemble(clicks_then_navigate(2)) == []
        assert len(assembler.diagnostics) == 1
        assert "exceeds" in assembler.diagnostics[0]

    def test_discarded_run_is_not_merged_into_next(self):
        """After a short run is discarded, counting restarts at the navigation."""
        trace = Trace.model_validate(make_trace([
            make_event("c1", "click", 100),
            make_event("v1", "navigate", 200, toUrl="/orders"),
            make_event("c2", "click", 300),
            make_event("v2", "navigate", 400, toUrl="/customers"),
        ]))
        assert FlowAssembler().assemble(trace) == []

    def test_same_screen_navigation_is_a_step(self):
        trace = Trace.model_validate(make_trace([
            make_event("c1", "click", 100),
            make_event("v1", "navigate", 200, toUrl="https://app.test/?tab=2"),
            make_event("v2", "navigate", 300, toUrl="/orders"),
        ]))
        flows = FlowAssembler().assemble(trace)

        assert len(flows) == 1
        assert [step.type for step in flows[0].steps] == [
            FlowStepType.CLICK,
            FlowStepType.NAVIGATE,
            FlowStepType.NAVIGATE,
        ]

    def test_network_and_input_steps(self, journey_trace):
        flows = FlowAssembler().assemble(Trace.model_validate(journey_trace))

        assert [flow.id for flow in flows] == ["flow-1", "flow-2"]
        steps = flows[0].steps
        assert steps[1].type == FlowStepType.INPUT
        assert steps[1].action == "#title"
        assert steps[2].type == FlowStepType.NETWORK
        assert steps[2].operation == "POST /api/orders"
        assert steps[2].screen == "screen-landing"
        assert flows[1].to_screen == "screen-customers"

    def test_change_submit_and_key_down_become_input_steps(self):
        trace = Trace.model_validate(make_trace([
            make_event("e1", "change", 1),
            make_event("e2", "submit", 2, selector="form"),
            make_event("e3", "keyDown", 3),
            make_event("v1", "navigate", 4, toUrl="/done"),
        ]))
        steps = FlowAssembler().assemble(trace)[0].steps

        assert [step.type for step in steps[:3]] == [FlowStepType.INPUT] * 3
        assert [step.action for step in steps[:3]] == ["e1", "form", "e3"]

    def test_ids_continue_from_given_sequence(self):
        flows = FlowAssembler().assemble(clicks_then_navigate(2), IdSequence("flow", start=5))
        assert flows[0].id == "flow-5"

    def test_sessions_processed_independently(self):
        """Every session starts on the root screen with a fresh step run."""
        session = [
            make_event("c1", "click", 10),
            make_event("c2", "click", 20),
            make_event("v1", "navigate", 30, toUrl="/workspaces"),
        ]
        flows = FlowAssembler().assemble(Trace.model_validate(make_trace(session, session)))

        assert [flow.id for flow in flows] == ["flow-1", "flow-2"]
        assert all(flow.from_screen == "screen-landing" for flow in flows)

    def test_network_event_without_url_reported(self):
        trace = Trace.model_validate(make_trace([network("n1", 1, "GET", None)]))
        assembler = FlowAssembler()
        assembler.assemble(trace)
        assert len(assembler.diagnostics) == 1


@pytest.mark.asyncio
class TestFlowsService:
    """Tests for the flows stage entry point."""

    async def test_writes_screens_and_flows(self, temp_dir, write_json, journey_trace):
        trace_path = write_json("trace.json", journey_trace)
        config = FlowsConfig(
            trace_path=trace_path,
            screens_out=temp_dir / "out" / "screens.json",
            flows_out=temp_dir / "out" / "flows.json",
        )

        result = await extract_flows(config)

        assert result.success
        assert result.screens_found == 3
        assert result.flows_found == 2
        flows = json.loads((temp_dir / "out" / "flows.json").read_text())
        screens = json.loads((temp_dir / "out" / "screens.json").read_text())
        assert flows["flows"][0]["fromScreen"] == "screen-landing"
        assert flows["flows"][0]["avgDuration"] == 2500
        assert screens["screens"][0]["urlPattern"] == "/"
        assert "action" not in flows["flows"][0]["steps"][2]

    async def test_missing_trace_fails_without_writing(self, temp_dir, storage):
        config = FlowsConfig(
            trace_path=temp_dir / "missing.json",
            screens_out=temp_dir / "screens.json",
            flows_out=temp_dir / "flows.json",
        )

        result = await FlowsService(storage).run(config)

        assert not result.success
        assert "missing.json" in result.errors[0]
        assert not (temp_dir / "screens.json").exists()
        assert not (temp_dir / "flows.json").exists()

    async def test_invalid_trace_fails(self, temp_dir, write_json):
        trace_path = write_json("trace.json", {"sessions": []})
        config = FlowsConfig(
            trace_path=trace_path,
            screens_out=temp_dir / "screens.json",
            flows_out=temp_dir / "flows.json",
        )

        result = await extract_flows(config)

        assert not result.success
        assert result.errors
