"""Flow assembly."""

from .service import FlowAssembler, FlowsConfig, FlowsResult, FlowsService, extract_flows

__all__ = ["FlowAssembler", "FlowsConfig", "FlowsResult", "FlowsService", "extract_flows"]
