"""
Business rule models.

State machines, validation rules, permission rules and general business rules
inferred from entities, flows and the raw trace. Every rule carries a provenance
tag describing how it was justified.
"""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from ..core.types import CamelModel


class RuleSource(str, Enum):
    """Provenance of an inferred rule."""

    HEURISTIC = "heuristic"
    INFERRED = "inferred"
    API_422 = "api_422"
    API_403 = "api_403"
    INLINE_ERROR = "inline_error"


class StateTransition(CamelModel):
    """A lifecycle transition of an entity."""

    from_state: str = Field(alias="from")
    to_state: str = Field(alias="to")
    trigger: str
    conditions: list[str] | None = None


class StateMachine(CamelModel):
    """Lifecycle of an entity's status-like field."""

    entity: str
    states: list[str]
    initial: str
    transitions: list[StateTransition] = Field(default_factory=list)


class ValidationRule(CamelModel):
    """Validation constraint on an entity field."""

    entity: str
    field: str
    rule: str = Field(description='e.g. "required", "max:500", "email"')
    message: str | None = None
    source: RuleSource


class PermissionRule(CamelModel):
    """Authorization requirement for an entity action."""

    entity: str
    action: str
    roles: list[str] = Field(default_factory=list)
    conditions: list[str] | None = None
    source: RuleSource


class BusinessRule(CamelModel):
    """General constraint on an entity."""

    entity: str
    name: str
    description: str
    condition: str
    action: str
    source: RuleSource


class RulesMetadata(CamelModel):
    """Extraction summary written alongside rules."""

    extracted_at: str
    total_state_machines: int
    total_validation_rules: int
    total_permission_rules: int
    total_business_rules: int


class FunctionalRules(CamelModel):
    """Contents of rules.json."""

    state_machines: list[StateMachine] = Field(default_factory=list)
    validation_rules: list[ValidationRule] = Field(default_factory=list)
    permission_rules: list[PermissionRule] = Field(default_factory=list)
    business_rules: list[BusinessRule] = Field(default_factory=list)
    metadata: RulesMetadata | None = None
