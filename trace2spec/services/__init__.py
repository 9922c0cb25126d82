"""Inference stages: screens, flows, entities and rules."""

from .entities import EntitiesConfig, EntitiesResult, EntitiesService, extract_entities
from .flows import FlowsConfig, FlowsResult, FlowsService, extract_flows
from .rules import RulesConfig, RulesResult, RulesService, extract_rules
from .screens import ScreenSegmenter

__all__ = [
    "EntitiesConfig",
    "EntitiesResult",
    "EntitiesService",
    "extract_entities",
    "FlowsConfig",
    "FlowsResult",
    "FlowsService",
    "extract_flows",
    "RulesConfig",
    "RulesResult",
    "RulesService",
    "extract_rules",
    "ScreenSegmenter",
]
