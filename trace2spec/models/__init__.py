"""
Trace2Spec Data Models.

This module contains the Pydantic models used throughout the pipeline: the input
trace contract and the screens, flows, entities and rules the stages produce.
"""

from .entities import (
    EntitiesMetadata,
    EntitiesOutput,
    Entity,
    EntityField,
    EntityMetadata,
    EntityOperation,
    EntityRelationship,
    EntityTimestamps,
    FieldSource,
    FieldType,
    OperationKind,
    RelationshipType,
)
from .flows import Flow, FlowsOutput, FlowStep, FlowStepType, Screen, ScreensOutput
from .rules import (
    BusinessRule,
    FunctionalRules,
    PermissionRule,
    RuleSource,
    RulesMetadata,
    StateMachine,
    StateTransition,
    ValidationRule,
)
from .trace import (
    ArrayShape,
    EventType,
    NetworkShape,
    ObjectShape,
    PrimitiveShape,
    Trace,
    TraceEvent,
    TraceMeta,
    TraceSession,
    infer_shape,
    parse_shape,
    shape_to_raw,
)

__all__ = [
    # Trace models
    "ArrayShape",
    "EventType",
    "NetworkShape",
    "ObjectShape",
    "PrimitiveShape",
    "Trace",
    "TraceEvent",
    "TraceMeta",
    "TraceSession",
    "infer_shape",
    "parse_shape",
    "shape_to_raw",
    # Screen and flow models
    "Flow",
    "FlowsOutput",
    "FlowStep",
    "FlowStepType",
    "Screen",
    "ScreensOutput",
    # Entity models
    "EntitiesMetadata",
    "EntitiesOutput",
    "Entity",
    "EntityField",
    "EntityMetadata",
    "EntityOperation",
    "EntityRelationship",
    "EntityTimestamps",
    "FieldSource",
    "FieldType",
    "OperationKind",
    "RelationshipType",
    # Rule models
    "BusinessRule",
    "FunctionalRules",
    "PermissionRule",
    "RuleSource",
    "RulesMetadata",
    "StateMachine",
    "StateTransition",
    "ValidationRule",
]
