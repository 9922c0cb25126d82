"""
Rule Extractor Service.

Infers state machines, validation rules, permission rules and business rules from
entities, flows and the raw trace, and writes rules.json. The four extractors
run independently over the same inputs; their outputs are concatenated without
cross-validation.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import Field

from ...core.config import EntitySettings
from ...core.logging import get_logger, log_diagnostics
from ...core.types import CamelModel, StageReport, utcnow
from ...models.entities import EntitiesOutput, Entity, FieldType, OperationKind
from ...models.flows import Flow, FlowsOutput, Screen, ScreensOutput
from ...models.rules import (
    BusinessRule,
    FunctionalRules,
    PermissionRule,
    RuleSource,
    RulesMetadata,
    StateMachine,
    ValidationRule,
)
from ...models.trace import Trace, TraceEvent
from ...storage import LocalStorageBackend, StorageBackend
from ..entities.paths import entity_name_for_path, normalize_path
from ..entities.service import classify_operation, top_level_properties
from .state_machines import StateMachineInferer, find_state_field

logger = get_logger(__name__)

REQUIRED_FIELD_NAMES = ("id", "name", "email")
DEFAULT_MAX_LENGTH = 500

CRUD_ROLES: dict[OperationKind, list[str]] = {
    OperationKind.CREATE: ["authenticated"],
    OperationKind.UPDATE: ["owner", "admin"],
    OperationKind.DELETE: ["admin"],
}
FLOW_ACTION_ROLES: dict[str, list[str]] = {
    "approve": ["manager", "admin"],
    "archive": ["owner", "admin"],
}


class RulesConfig(CamelModel):
    """Configuration for rule extraction."""

    trace_path: Path = Field(description="Input trace file")
    flows_path: Path = Field(description="flows.json (may also carry screens)")
    entities_path: Path = Field(description="entities.json")
    screens_path: Path | None = Field(default=None, description="Optional screens.json")
    out: Path = Field(description="Output rules.json path")
    settings: EntitySettings = Field(
        default_factory=EntitySettings, description="Naming settings used to map requests to entities"
    )


class RulesResult(StageReport):
    """Result of rule extraction."""

    output_path: str
    state_machines_found: int = 0
    validation_rules_found: int = 0
    permission_rules_found: int = 0
    business_rules_found: int = 0


@dataclass
class RulesInputs:
    """Everything the extractors read."""

    trace: Trace
    entities: list[Entity]
    flows: list[Flow] = field(default_factory=list)
    screens: list[Screen] = field(default_factory=list)


class RuleExtractor:
    """Runs the four rule extractors over one set of inputs."""

    def __init__(self, settings: EntitySettings | None = None) -> None:
        self.settings = settings or EntitySettings()
        self.diagnostics: list[str] = []

    def _entity_for_event(self, event: TraceEvent, inputs: RulesInputs) -> tuple[Entity, str] | None:
        """Map a network event to a known entity and its normalized path."""
        path = normalize_path(event.url, inputs.trace.meta.url)
        if path is None:
            return None
        name = entity_name_for_path(path, self.settings.irregular_plurals, self.settings.entity_name_map)
        entity = next((e for e in inputs.entities if e.name == name), None)
        if entity is None:
            return None
        return entity, path

    def extract_state_machines(self, inputs: RulesInputs) -> list[StateMachine]:
        inferer = StateMachineInferer()
        machines = [
            machine
            for machine in (inferer.infer(entity, inputs.flows) for entity in inputs.entities)
            if machine is not None
        ]
        self.diagnostics.extend(inferer.diagnostics)
        return machines

    def extract_validation_rules(self, inputs: RulesInputs) -> list[ValidationRule]:
        """Field-level validation from naming, types, resolver constraints and 422 responses."""
        rules: list[ValidationRule] = []

        for entity in inputs.entities:
            for entity_field in entity.fields:
                name = entity_field.name
                lower = name.lower()

                if entity_field.required or lower in REQUIRED_FIELD_NAMES:
                    rules.append(ValidationRule(
                        entity=entity.name,
                        field=name,
                        rule="required",
                        message=f"{name} is required",
                        source=RuleSource.INFERRED if entity_field.required else RuleSource.HEURISTIC,
                    ))

                if entity_field.type == FieldType.STRING:
                    if "email" in lower:
                        rules.append(ValidationRule(
                            entity=entity.name,
                            field=name,
                            rule="email",
                            message=f"{name} must be a valid email address",
                            source=RuleSource.HEURISTIC,
                        ))
                    rules.append(ValidationRule(
                        entity=entity.name,
                        field=name,
                        rule=f"max:{DEFAULT_MAX_LENGTH}",
                        message=f"{name} must not exceed {DEFAULT_MAX_LENGTH} characters",
                        source=RuleSource.HEURISTIC,
                    ))

                if entity_field.type == FieldType.NUMBER:
                    rules.append(ValidationRule(
                        entity=entity.name,
                        field=name,
                        rule="min:0",
                        message=f"{name} must be at least 0",
                        source=RuleSource.HEURISTIC,
                    ))

                emitted = {rule.rule for rule in rules if rule.entity == entity.name and rule.field == name}
                for constraint in entity_field.constraints or []:
                    if constraint in emitted:
                        continue
                    rules.append(ValidationRule(
                        entity=entity.name,
                        field=name,
                        rule=constraint,
                        message=f"{name} must satisfy {constraint}",
                        source=RuleSource.INFERRED,
                    ))

        seen: set[tuple[str, str]] = set()
        for event in inputs.trace.network_events():
            if event.status != 422:
                continue
            match = self._entity_for_event(event, inputs)
            if match is None:
                self.diagnostics.append(f"HTTP 422 on {event.url} does not map to a known entity; skipped")
                continue
            entity, path = match
            for name in top_level_properties(event.request_shape):
                if name.startswith(("_", "$")) or (entity.name, name) in seen:
                    continue
                seen.add((entity.name, name))
                rules.append(ValidationRule(
                    entity=entity.name,
                    field=name,
                    rule="server_validation",
                    message=f"{name} was rejected by {event.http_method} {path} (HTTP 422)",
                    source=RuleSource.API_422,
                ))

        return rules

    def extract_permission_rules(self, inputs: RulesInputs) -> list[PermissionRule]:
        """Role requirements from exposed operations, flow keywords and 403 responses."""
        rules: list[PermissionRule] = []

        for entity in inputs.entities:
            for kind, roles in CRUD_ROLES.items():
                if entity.has_operation(kind):
                    rules.append(PermissionRule(
                        entity=entity.name,
                        action=kind.value,
                        roles=list(roles),
                        source=RuleSource.HEURISTIC,
                    ))

            for action, roles in FLOW_ACTION_ROLES.items():
                if any(flow.mentions(entity.name) and flow.mentions(action) for flow in inputs.flows):
                    rules.append(PermissionRule(
                        entity=entity.name,
                        action=action,
                        roles=list(roles),
                        source=RuleSource.INFERRED,
                    ))

        seen: set[tuple[str, str]] = set()
        for event in inputs.trace.network_events():
            if event.status != 403 or not event.http_method:
                continue
            match = self._entity_for_event(event, inputs)
            if match is None:
                self.diagnostics.append(f"HTTP 403 on {event.url} does not map to a known entity; skipped")
                continue
            entity, path = match
            action = classify_operation(event.http_method, path).value
            if (entity.name, action) in seen:
                continue
            seen.add((entity.name, action))
            rules.append(PermissionRule(
                entity=entity.name,
                action=action,
                roles=["authorized"],
                conditions=[f"{event.http_method} {path} returned HTTP 403"],
                source=RuleSource.API_403,
            ))

        return rules

    def extract_business_rules(self, inputs: RulesInputs) -> list[BusinessRule]:
        rules: list[BusinessRule] = []

        for entity in inputs.entities:
            if find_state_field(entity) is not None:
                rules.append(BusinessRule(
                    entity=entity.name,
                    name="workflow_progression",
                    description=f"{entity.name} must follow defined workflow states",
                    condition="state transition requested",
                    action="validate transition is allowed",
                    source=RuleSource.INFERRED,
                ))

            timestamps = entity.metadata.timestamps
            if timestamps and (timestamps.created_at or timestamps.updated_at):
                created_at = timestamps.created_at or "createdAt"
                rules.append(BusinessRule(
                    entity=entity.name,
                    name="timestamp_immutability",
                    description=f"{created_at} cannot be modified after creation",
                    condition=f"update request includes {created_at}",
                    action="reject update",
                    source=RuleSource.HEURISTIC,
                ))

        return rules

    def check_screen_references(self, inputs: RulesInputs) -> None:
        """Report flows whose endpoints are missing from the supplied screens."""
        if not inputs.screens:
            return
        known = {screen.id for screen in inputs.screens}
        for flow in inputs.flows:
            for screen_id in dict.fromkeys((flow.from_screen, flow.to_screen)):
                if screen_id not in known:
                    self.diagnostics.append(f"Flow {flow.id} references unknown screen {screen_id}")

    def extract(self, inputs: RulesInputs) -> FunctionalRules:
        """Run all extractors and collect their output."""
        self.check_screen_references(inputs)
        state_machines = self.extract_state_machines(inputs)
        validation_rules = self.extract_validation_rules(inputs)
        permission_rules = self.extract_permission_rules(inputs)
        business_rules = self.extract_business_rules(inputs)

        return FunctionalRules(
            state_machines=state_machines,
            validation_rules=validation_rules,
            permission_rules=permission_rules,
            business_rules=business_rules,
            metadata=RulesMetadata(
                extracted_at=utcnow().isoformat(),
                total_state_machines=len(state_machines),
                total_validation_rules=len(validation_rules),
                total_permission_rules=len(permission_rules),
                total_business_rules=len(business_rules),
            ),
        )


class RulesService:
    """Service producing rules.json from a trace, flows and entities."""

    def __init__(self, storage: StorageBackend | None = None) -> None:
        """Initialize the rules service.

        Args:
            storage: Backend used to read inputs and write outputs.
        """
        self.storage = storage or LocalStorageBackend()

    async def _load_inputs(self, config: RulesConfig) -> RulesInputs:
        trace = await self.storage.load_model(str(config.trace_path), Trace)

        # flows.json may also carry a "screens" list
        flows_data = await self.storage.load_json(str(config.flows_path))
        flows = FlowsOutput.model_validate(flows_data).flows
        screens = ScreensOutput.model_validate(flows_data).screens
        if config.screens_path is not None:
            screens = (await self.storage.load_model(str(config.screens_path), ScreensOutput)).screens

        entities = (await self.storage.load_model(str(config.entities_path), EntitiesOutput)).entities

        return RulesInputs(trace=trace, entities=entities, flows=flows, screens=screens)

    async def run(self, config: RulesConfig) -> RulesResult:
        """Extract rules.

        Never raises: load and write failures are reported through the result.
        """
        start_time = time.perf_counter()
        output_path = str(config.out)

        try:
            logger.info(
                "Extracting business rules",
                trace=str(config.trace_path),
                flows=str(config.flows_path),
                entities=str(config.entities_path),
            )
            inputs = await self._load_inputs(config)

            extractor = RuleExtractor(config.settings)
            rules = extractor.extract(inputs)
            await self.storage.store_model(output_path, rules)

            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                "Rules extracted",
                state_machines=len(rules.state_machines),
                validation_rules=len(rules.validation_rules),
                permission_rules=len(rules.permission_rules),
                business_rules=len(rules.business_rules),
                duration_ms=duration_ms,
            )

            log_diagnostics(logger, extractor.diagnostics)

            return RulesResult(
                success=True,
                output_path=output_path,
                state_machines_found=len(rules.state_machines),
                validation_rules_found=len(rules.validation_rules),
                permission_rules_found=len(rules.permission_rules),
                business_rules_found=len(rules.business_rules),
                diagnostics=extractor.diagnostics,
                duration_ms=duration_ms,
            )

        except Exception as e:
            logger.error("Rule extraction failed", error=str(e))
            return RulesResult(
                success=False,
                output_path=output_path,
                errors=[str(e)],
                duration_ms=(time.perf_counter() - start_time) * 1000,
            )


async def extract_rules(config: RulesConfig, storage: StorageBackend | None = None) -> RulesResult:
    """Convenience function to run rule extraction."""
    return await RulesService(storage).run(config)
