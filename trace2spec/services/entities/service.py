"""
Entity Resolver Service.

Clusters network events by resource path into data entities, merges the fields
observed across request and response shapes, and classifies each distinct
(method, path) pair as a CRUD operation.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import Field

from ...core.config import EntitySettings
from ...core.logging import get_logger, log_diagnostics
from ...core.types import CamelModel, StageReport, utcnow
from ...core.urls import query_param_names
from ...models.entities import (
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
from ...models.trace import ArrayShape, NetworkShape, ObjectShape, PrimitiveShape, Trace, TraceEvent
from ...storage import LocalStorageBackend, StorageBackend
from .paths import (
    entity_name_for_path,
    is_param_segment,
    matches_pattern,
    normalize_path,
    resource_root,
)

logger = get_logger(__name__)

SUPPORTED_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")

# leaf type name -> (field type, format, constraint)
_LEAF_TYPES: dict[str, tuple[FieldType, str | None, str | None]] = {
    "string": (FieldType.STRING, None, None),
    "number": (FieldType.NUMBER, None, None),
    "integer": (FieldType.NUMBER, None, None),
    "float": (FieldType.NUMBER, None, None),
    "bigint": (FieldType.NUMBER, None, None),
    "boolean": (FieldType.BOOLEAN, None, None),
    "date": (FieldType.DATE, "date", None),
    "date-time": (FieldType.DATE_TIME, "date-time", None),
    "datetime": (FieldType.DATE_TIME, "date-time", None),
    "email": (FieldType.STRING, None, "email"),
    "url": (FieldType.STRING, None, "url"),
    "uri": (FieldType.STRING, None, "url"),
    "uuid": (FieldType.STRING, None, "uuid"),
    "array": (FieldType.ARRAY, None, None),
    "object": (FieldType.OBJECT, None, None),
    "enum": (FieldType.ENUM, None, None),
}

_FOREIGN_KEY = re.compile(r"^(?P<target>.+?)(?:_id|Id|ID)$")


class EntitiesConfig(CamelModel):
    """Configuration for entity extraction."""

    trace_path: Path = Field(description="Input trace file")
    out: Path = Field(description="Output entities.json path")
    settings: EntitySettings = Field(default_factory=EntitySettings)


class EntitiesResult(StageReport):
    """Result of entity extraction."""

    output_path: str
    entities_found: int = 0
    operations_found: int = 0


def classify_field_type(shape: NetworkShape | None) -> tuple[FieldType, str | None, str | None]:
    """Map a field's shape to ``(type, format, constraint)``."""
    if isinstance(shape, ArrayShape):
        return FieldType.ARRAY, None, None
    if isinstance(shape, ObjectShape):
        return FieldType.OBJECT, None, None
    if isinstance(shape, PrimitiveShape):
        return _LEAF_TYPES.get(shape.name.lower(), (FieldType.UNKNOWN, None, None))
    return FieldType.UNKNOWN, None, None


def top_level_properties(shape: NetworkShape | None) -> dict[str, NetworkShape]:
    """Fields described by a payload shape; list payloads describe their items."""
    if isinstance(shape, ObjectShape):
        return shape.properties
    if isinstance(shape, ArrayShape):
        return top_level_properties(shape.item)
    return {}


def classify_operation(method: str, path: str) -> OperationKind:
    """Infer the CRUD kind of a request from its method and normalized path."""
    segments = [segment for segment in path.split("/") if segment]
    if method == "GET":
        if segments and is_param_segment(segments[-1]):
            return OperationKind.READ
        return OperationKind.LIST
    if method == "POST":
        return OperationKind.CREATE
    if method in ("PUT", "PATCH"):
        return OperationKind.UPDATE
    if method == "DELETE":
        return OperationKind.DELETE
    return OperationKind.LIST


def humanize(name: str) -> str:
    """``UserProfile`` to ``User Profile``."""
    return re.sub(r"(?<=[a-z0-9])(?=[A-Z])", " ", name)


@dataclass
class _EntityAccumulator:
    """Mutable per-entity state while scanning the trace."""

    name: str
    root: str
    base_url: str
    fields: dict[str, EntityField] = field(default_factory=dict)
    operations: dict[str, EntityOperation] = field(default_factory=dict)
    request_counts: dict[str, int] = field(default_factory=dict)
    request_shapes: int = 0
    occurrences: int = 0
    conflicts: set[str] = field(default_factory=set)


class EntityResolver:
    """Infers entities and CRUD operations from a trace's network events."""

    def __init__(self, settings: EntitySettings | None = None) -> None:
        self.settings = settings or EntitySettings()
        self.diagnostics: list[str] = []

    def _observe_field(
        self,
        acc: _EntityAccumulator,
        name: str,
        shape: NetworkShape,
        source: FieldSource,
    ) -> None:
        field_type, fmt, constraint = classify_field_type(shape)
        existing = acc.fields.get(name)

        if existing is None:
            acc.fields[name] = EntityField(
                name=name,
                type=field_type,
                format=fmt,
                source=source,
                constraints=[constraint] if constraint else None,
            )
            return

        if existing.source != source:
            existing.source = FieldSource.INFERRED

        if existing.type == FieldType.UNKNOWN and field_type != FieldType.UNKNOWN:
            existing.type = field_type
            existing.format = fmt
        elif field_type not in (FieldType.UNKNOWN, existing.type) and name not in acc.conflicts:
            acc.conflicts.add(name)
            self.diagnostics.append(
                f"{acc.name}.{name} observed as both {existing.type.value} and {field_type.value}; "
                f"keeping {existing.type.value}"
            )

        if constraint:
            constraints = existing.constraints or []
            if constraint not in constraints:
                existing.constraints = [*constraints, constraint]

    def _observe_shape(
        self,
        acc: _EntityAccumulator,
        shape: NetworkShape | None,
        source: FieldSource,
    ) -> list[str]:
        properties = top_level_properties(shape)
        names: list[str] = []
        for name, value in properties.items():
            if name.startswith("_") or name.startswith("$"):
                continue
            self._observe_field(acc, name, value, source)
            names.append(name)

        if source == FieldSource.REQUEST and properties:
            acc.request_shapes += 1
            for name in names:
                acc.request_counts[name] = acc.request_counts.get(name, 0) + 1
        return names

    def _observe_operation(
        self,
        acc: _EntityAccumulator,
        event: TraceEvent,
        method: str,
        path: str,
        request_fields: list[str],
        response_fields: list[str],
    ) -> None:
        key = f"{method}:{path}"
        operation = acc.operations.get(key)
        if operation is None:
            operation = EntityOperation(kind=classify_operation(method, path), method=method, path=path)
            acc.operations[key] = operation

        for attr, names in (
            ("request_fields", request_fields),
            ("response_fields", response_fields),
            ("query_params", query_param_names(event.url)),
        ):
            merged = list(getattr(operation, attr) or [])
            for name in names:
                if name not in merged:
                    merged.append(name)
            setattr(operation, attr, merged or None)

    def _accumulate(self, trace: Trace) -> dict[str, _EntityAccumulator]:
        accumulators: dict[str, _EntityAccumulator] = {}
        root_url = trace.meta.url
        settings = self.settings

        for event in trace.network_events():
            method = event.http_method
            if not method or not event.url:
                self.diagnostics.append(f"Network event {event.id} lacks a method or URL; skipped")
                continue
            if method not in SUPPORTED_METHODS:
                self.diagnostics.append(f"Network event {event.id} uses unsupported method {method}; skipped")
                continue
            if settings.ignore_endpoints and matches_pattern(event.url, settings.ignore_endpoints):
                continue

            path = normalize_path(event.url, root_url)
            if path is None:
                self.diagnostics.append(f"Network event {event.id} has an unparseable URL; skipped")
                continue

            name = entity_name_for_path(path, settings.irregular_plurals, settings.entity_name_map)
            root = resource_root(path)
            if name is None or root is None:
                self.diagnostics.append(f"No resource segment in {path}; event {event.id} skipped")
                continue

            acc = accumulators.get(name)
            if acc is None:
                acc = _EntityAccumulator(name=name, root=root, base_url=path)
                accumulators[name] = acc
            acc.occurrences += 1

            request_fields = self._observe_shape(acc, event.request_shape, FieldSource.REQUEST)
            response_fields = self._observe_shape(acc, event.response_shape, FieldSource.RESPONSE)
            self._observe_operation(acc, event, method, path, request_fields, response_fields)

        return accumulators

    def _finalize(self, acc: _EntityAccumulator) -> Entity:
        fields = acc.fields

        if acc.request_shapes >= self.settings.min_required_observations:
            for name, count in acc.request_counts.items():
                if count == acc.request_shapes:
                    fields[name].required = True

        primary_key = next((key for key in ("id", "_id") if key in fields), None)
        created_at = next((key for key in ("createdAt", "created_at") if key in fields), None)
        updated_at = next((key for key in ("updatedAt", "updated_at") if key in fields), None)
        timestamps = (
            EntityTimestamps(created_at=created_at, updated_at=updated_at) if created_at or updated_at else None
        )

        segments = acc.base_url.split("/")
        resource_path = "/".join(segments[: segments.index(acc.root) + 1]) if acc.root in segments else None

        return Entity(
            name=acc.name,
            label=humanize(acc.name),
            plural_name=acc.root,
            fields=list(fields.values()),
            operations=list(acc.operations.values()),
            metadata=EntityMetadata(
                base_url=acc.base_url,
                resource_path=resource_path,
                primary_key=primary_key,
                timestamps=timestamps,
            ),
        )

    def _infer_relationships(self, entities: list[Entity]) -> None:
        by_key = {entity.name.lower(): entity.name for entity in entities}
        by_plural = {(entity.plural_name or "").lower(): entity.name for entity in entities}

        for entity in entities:
            relationships: list[EntityRelationship] = []
            for entity_field in entity.fields:
                target: str | None = None
                kind = RelationshipType.MANY_TO_ONE
                match = _FOREIGN_KEY.match(entity_field.name)
                if match and entity_field.name not in ("id", "_id"):
                    target = by_key.get(re.sub(r"[-_]", "", match.group("target")).lower())
                elif entity_field.type == FieldType.ARRAY:
                    target = by_plural.get(entity_field.name.lower())
                    kind = RelationshipType.ONE_TO_MANY

                if target and target != entity.name:
                    relationships.append(
                        EntityRelationship(
                            type=kind,
                            entity=target,
                            foreign_key=entity_field.name if kind == RelationshipType.MANY_TO_ONE else None,
                        )
                    )
            entity.relationships = relationships or None

    def resolve(self, trace: Trace) -> list[Entity]:
        """Infer entities from every network event of ``trace``.

        Args:
            trace: The recorded trace.

        Returns:
            Entities in order of first observation.
        """
        entities: list[Entity] = []
        for acc in self._accumulate(trace).values():
            if acc.occurrences < self.settings.min_occurrences:
                self.diagnostics.append(
                    f"{acc.name} observed {acc.occurrences} time(s), below min_occurrences; dropped"
                )
                continue
            entity = self._finalize(acc)
            if entity.metadata.primary_key is None:
                self.diagnostics.append(f"No primary key detected for {entity.name}")
            entities.append(entity)

        if self.settings.infer_relationships:
            self._infer_relationships(entities)

        logger.debug("Entities resolved", entities=len(entities))
        return entities


class EntitiesService:
    """Service producing entities.json from a trace file."""

    def __init__(self, storage: StorageBackend | None = None) -> None:
        """Initialize the entities service.

        Args:
            storage: Backend used to read the trace and write outputs.
        """
        self.storage = storage or LocalStorageBackend()

    async def run(self, config: EntitiesConfig) -> EntitiesResult:
        """Extract entities and operations.

        Never raises: load and write failures are reported through the result.
        """
        start_time = time.perf_counter()
        output_path = str(config.out)

        try:
            logger.info("Extracting entities and operations", trace=str(config.trace_path))
            trace = await self.storage.load_model(str(config.trace_path), Trace)

            resolver = EntityResolver(config.settings)
            entities = resolver.resolve(trace)
            total_operations = sum(len(entity.operations) for entity in entities)

            output = EntitiesOutput(
                entities=entities,
                metadata=EntitiesMetadata(
                    extracted_at=utcnow().isoformat(),
                    total_entities=len(entities),
                    total_operations=total_operations,
                ),
            )
            await self.storage.store_model(output_path, output)

            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                "Entities extracted",
                entities=len(entities),
                operations=total_operations,
                duration_ms=duration_ms,
            )

            log_diagnostics(logger, resolver.diagnostics)

            return EntitiesResult(
                success=True,
                output_path=output_path,
                entities_found=len(entities),
                operations_found=total_operations,
                diagnostics=resolver.diagnostics,
                duration_ms=duration_ms,
            )

        except Exception as e:
            logger.error("Entity extraction failed", error=str(e))
            return EntitiesResult(
                success=False,
                output_path=output_path,
                errors=[str(e)],
                duration_ms=(time.perf_counter() - start_time) * 1000,
            )


async def extract_entities(config: EntitiesConfig, storage: StorageBackend | None = None) -> EntitiesResult:
    """Convenience function to run entity extraction."""
    return await EntitiesService(storage).run(config)
