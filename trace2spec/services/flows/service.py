"""
Flow Assembler Service.

Segments each session's event stream into user journeys bounded by navigations
and writes screens.json and flows.json.
"""

from __future__ import annotations

import time
from pathlib import Path

from pydantic import Field

from ...core.logging import get_logger, log_diagnostics
from ...core.types import CamelModel, IdSequence, StageReport
from ...core.urls import url_path
from ...models.flows import Flow, FlowsOutput, FlowStep, FlowStepType, Screen, ScreensOutput
from ...models.trace import EventType, Trace, TraceEvent
from ...storage import LocalStorageBackend, StorageBackend
from ..screens import ScreenSegmenter, screen_for_url

logger = get_logger(__name__)

DEFAULT_MIN_STEPS_FOR_FLOW = 2
DEFAULT_MAX_FLOW_DURATION_MS = 5 * 60 * 1000

_STEP_TYPES: dict[EventType, FlowStepType] = {
    EventType.VIEW: FlowStepType.VIEW,
    EventType.CLICK: FlowStepType.CLICK,
    EventType.INPUT: FlowStepType.INPUT,
    EventType.CHANGE: FlowStepType.INPUT,
    EventType.SUBMIT: FlowStepType.INPUT,
    EventType.KEY_DOWN: FlowStepType.INPUT,
    EventType.NAVIGATE: FlowStepType.NAVIGATE,
    EventType.NETWORK: FlowStepType.NETWORK,
}


class FlowsConfig(CamelModel):
    """Configuration for screen and flow extraction."""

    trace_path: Path = Field(description="Input trace file")
    screens_out: Path = Field(description="Output screens.json path")
    flows_out: Path = Field(description="Output flows.json path")
    min_steps_for_flow: int = Field(default=DEFAULT_MIN_STEPS_FOR_FLOW, ge=0)
    max_flow_duration_ms: float = Field(default=DEFAULT_MAX_FLOW_DURATION_MS, gt=0)


class FlowsResult(StageReport):
    """Result of screen and flow extraction."""

    screens_path: str
    flows_path: str
    screens_found: int = 0
    flows_found: int = 0


class FlowAssembler:
    """Groups contiguous steps between navigations into flows.

    A navigation to a different screen closes the current run of steps. The run
    becomes a flow only when at least ``min_steps`` steps preceded the
    navigation and it spans no more than ``max_duration_ms``; otherwise it is
    discarded. Either way, accumulation restarts at the navigation.
    """

    def __init__(
        self,
        min_steps: int = DEFAULT_MIN_STEPS_FOR_FLOW,
        max_duration_ms: float = DEFAULT_MAX_FLOW_DURATION_MS,
    ) -> None:
        self.min_steps = min_steps
        self.max_duration_ms = max_duration_ms
        self.diagnostics: list[str] = []

    def _build_step(self, event: TraceEvent, screen_id: str, duration: float, root_url: str) -> FlowStep:
        step = FlowStep(type=_STEP_TYPES[event.type], screen=screen_id, duration=duration)

        if step.type in (FlowStepType.CLICK, FlowStepType.INPUT):
            step.action = event.selector or event.id
        elif step.type == FlowStepType.NETWORK:
            path = url_path(event.url, root_url)
            if event.http_method and path is not None:
                step.operation = f"{event.http_method} {path}"
            else:
                self.diagnostics.append(f"Network event {event.id} has no usable method/URL; operation omitted")

        return step

    def assemble(self, trace: Trace, ids: IdSequence | None = None) -> list[Flow]:
        """Extract flows from every session, in trace order.

        Args:
            trace: The recorded trace.
            ids: Flow id sequence; a fresh ``flow-<n>`` sequence if omitted.

        Returns:
            Emitted flows with positional ids.
        """
        ids = ids or IdSequence("flow")
        root_url = trace.meta.url
        screens: dict[str, Screen] = {}
        flows: list[Flow] = []

        def resolve(url: str | None) -> Screen:
            screen = screen_for_url(url, root_url)
            return screens.setdefault(screen.id, screen)

        for session in trace.sessions:
            current = resolve(root_url)
            steps: list[FlowStep] = []
            flow_start = session.start_time
            previous_ts: float | None = None

            for event in session.events:
                duration = event.timestamp - previous_ts if previous_ts is not None else 0
                previous_ts = event.timestamp
                step = self._build_step(event, current.id, duration, root_url)

                if event.type != EventType.NAVIGATE or not event.to_url:
                    steps.append(step)
                    continue

                destination = resolve(event.to_url)
                if destination.id == current.id:
                    steps.append(step)
                    continue

                elapsed = event.timestamp - flow_start
                if len(steps) < self.min_steps:
                    logger.debug("Flow below step threshold discarded", steps=len(steps), session=session.id)
                elif elapsed > self.max_duration_ms:
                    self.diagnostics.append(
                        f"Dropped idle flow {current.id} -> {destination.id} in session {session.id} "
                        f"({elapsed:.0f} ms exceeds {self.max_duration_ms:.0f} ms)"
                    )
                else:
                    flows.append(
                        Flow(
                            id=ids.next(),
                            name=f"{current.label} → {destination.label}",
                            from_screen=current.id,
                            to_screen=destination.id,
                            steps=[*steps, step],
                            avg_duration=elapsed,
                        )
                    )

                steps = []
                flow_start = event.timestamp
                current = destination

        return flows


class FlowsService:
    """Service producing screens.json and flows.json from a trace file."""

    def __init__(self, storage: StorageBackend | None = None) -> None:
        """Initialize the flows service.

        Args:
            storage: Backend used to read the trace and write outputs.
        """
        self.storage = storage or LocalStorageBackend()

    async def run(self, config: FlowsConfig) -> FlowsResult:
        """Extract screens and flows.

        Never raises: load and write failures are reported through the result.
        """
        start_time = time.perf_counter()
        screens_path, flows_path = str(config.screens_out), str(config.flows_out)

        try:
            logger.info("Extracting screens and flows", trace=str(config.trace_path))
            trace = await self.storage.load_model(str(config.trace_path), Trace)

            segmenter = ScreenSegmenter()
            screens = segmenter.segment(trace)

            assembler = FlowAssembler(config.min_steps_for_flow, config.max_flow_duration_ms)
            flows = assembler.assemble(trace)

            await self.storage.store_model(screens_path, ScreensOutput(screens=screens))
            await self.storage.store_model(flows_path, FlowsOutput(flows=flows))

            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info("Flows extracted", screens=len(screens), flows=len(flows), duration_ms=duration_ms)

            diagnostics = segmenter.diagnostics + assembler.diagnostics
            log_diagnostics(logger, diagnostics)

            return FlowsResult(
                success=True,
                screens_path=screens_path,
                flows_path=flows_path,
                screens_found=len(screens),
                flows_found=len(flows),
                diagnostics=diagnostics,
                duration_ms=duration_ms,
            )

        except Exception as e:
            logger.error("Flow extraction failed", error=str(e))
            return FlowsResult(
                success=False,
                screens_path=screens_path,
                flows_path=flows_path,
                errors=[str(e)],
                duration_ms=(time.perf_counter() - start_time) * 1000,
            )


async def extract_flows(config: FlowsConfig, storage: StorageBackend | None = None) -> FlowsResult:
    """Convenience function to run screen and flow extraction."""
    return await FlowsService(storage).run(config)
