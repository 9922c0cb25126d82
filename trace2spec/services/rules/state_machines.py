"""
State machine inference.

Builds an entity lifecycle from its status-like field and from the network
operations performed in flows whose name mentions the entity.
"""

from __future__ import annotations

import re

from ...core.logging import get_logger
from ...models.entities import Entity, EntityField
from ...models.flows import Flow, FlowStepType
from ...models.rules import StateMachine, StateTransition

logger = get_logger(__name__)

STATE_FIELD_NAMES = ("status", "state", "phase", "stage")
LIFECYCLE_STATES = ("draft", "pending", "active", "completed", "archived", "deleted")
INITIAL_STATE_HINTS = ("draft", "pending", "new", "created", "initial")
DEFAULT_STATES = ("draft", "active", "archived")
DELETED_STATE = "deleted"

_WORD_SPLIT = re.compile(r"[\s→\-]+")


def find_state_field(entity: Entity) -> EntityField | None:
    """The entity's first field named status, state, phase or stage."""
    for entity_field in entity.fields:
        if entity_field.name.lower() in STATE_FIELD_NAMES:
            return entity_field
    return None


def related_flows(entity: Entity, flows: list[Flow]) -> list[Flow]:
    """Flows whose name mentions the entity."""
    return [flow for flow in flows if flow.mentions(entity.name)]


def initial_state(states: list[str]) -> str:
    """First state that sounds like a starting state, else the first state."""
    return next((state for state in states if state.lower() in INITIAL_STATE_HINTS), states[0])


class StateMachineInferer:
    """Infers one state machine per entity exposing a status-like field."""

    def __init__(self) -> None:
        self.diagnostics: list[str] = []

    def _states_from_flows(self, flows: list[Flow]) -> list[str]:
        states: list[str] = []
        for flow in flows:
            for word in _WORD_SPLIT.split(flow.name):
                lower = word.lower()
                if lower in LIFECYCLE_STATES and lower not in states:
                    states.append(lower)
        return states

    def _transitions(self, flows: list[Flow], states: list[str]) -> list[StateTransition]:
        found: dict[tuple[str, str], StateTransition] = {}

        def add(from_state: str, to_state: str, trigger: str, conditions: list[str] | None = None) -> None:
            if from_state != to_state and (from_state, to_state) not in found:
                found[(from_state, to_state)] = StateTransition(
                    from_state=from_state, to_state=to_state, trigger=trigger, conditions=conditions
                )

        for flow in flows:
            for step in flow.steps:
                if step.type != FlowStepType.NETWORK:
                    continue
                method = step.http_method
                if method == "POST":
                    add("draft", "active", "create_success", ["POST request succeeded"])
                elif method in ("PATCH", "PUT"):
                    if flow.mentions("archive"):
                        add("active", "archived", "archive")
                    elif flow.mentions("approve"):
                        add("pending", "active", "approve")
                elif method == "DELETE":
                    for state in states:
                        if state != DELETED_STATE:
                            add(state, DELETED_STATE, "delete")

        return list(found.values())

    def infer(self, entity: Entity, flows: list[Flow]) -> StateMachine | None:
        """Infer the state machine of ``entity``, or None without a status-like field."""
        state_field = find_state_field(entity)
        if state_field is None:
            return None

        mentioning = related_flows(entity, flows)
        states = list(dict.fromkeys(state_field.enum or []))
        if not states:
            states = self._states_from_flows(mentioning)
        if not states:
            states = list(DEFAULT_STATES)
            self.diagnostics.append(
                f"No lifecycle states found for {entity.name}.{state_field.name}; "
                f"assumed {', '.join(DEFAULT_STATES)}"
            )

        initial = initial_state(states)

        # endpoints use the field's own spelling; unknown ones become new states
        spelling = {state.lower(): state for state in states}

        def resolve(state: str, trigger: str) -> str:
            key = state.lower()
            if key not in spelling:
                spelling[key] = state
                states.append(state)
                if key != DELETED_STATE:
                    self.diagnostics.append(
                        f"Added state {state} to {entity.name}.{state_field.name} for transition {trigger}"
                    )
            return spelling[key]

        transitions: dict[tuple[str, str], StateTransition] = {}
        for transition in self._transitions(mentioning, states):
            from_state = resolve(transition.from_state, transition.trigger)
            to_state = resolve(transition.to_state, transition.trigger)
            if (from_state, to_state) not in transitions:
                transitions[(from_state, to_state)] = transition.model_copy(
                    update={"from_state": from_state, "to_state": to_state}
                )

        logger.debug("State machine inferred", entity=entity.name, states=len(states), transitions=len(transitions))
        return StateMachine(
            entity=entity.name,
            states=states,
            initial=initial,
            transitions=list(transitions.values()),
        )
