"""
Entity models.

Entities are data models inferred from network traffic against a common resource
path, with the fields and CRUD operations observed for them.
"""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from ..core.types import CamelModel


class FieldType(str, Enum):
    """Field data types."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    DATE_TIME = "date-time"
    ARRAY = "array"
    OBJECT = "object"
    ENUM = "enum"
    UNKNOWN = "unknown"


class FieldSource(str, Enum):
    """Where a field was observed."""

    REQUEST = "request"
    RESPONSE = "response"
    FORM = "form"
    TABLE = "table"
    INFERRED = "inferred"


class OperationKind(str, Enum):
    """CRUD operation kinds."""

    LIST = "list"
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    SEARCH = "search"
    EXPORT = "export"


class RelationshipType(str, Enum):
    """Entity relationship cardinalities."""

    ONE_TO_ONE = "one-to-one"
    ONE_TO_MANY = "one-to-many"
    MANY_TO_ONE = "many-to-one"
    MANY_TO_MANY = "many-to-many"


class EntityField(CamelModel):
    """Entity field definition."""

    name: str
    type: FieldType = FieldType.UNKNOWN
    format: str | None = None
    required: bool = False
    source: FieldSource = FieldSource.RESPONSE
    constraints: list[str] | None = None
    enum: list[str] | None = None
    description: str | None = None


class EntityOperation(CamelModel):
    """An API operation on an entity."""

    kind: OperationKind
    method: str
    path: str
    request_fields: list[str] | None = None
    response_fields: list[str] | None = None
    query_params: list[str] | None = None

    @property
    def key(self) -> str:
        return f"{self.method}:{self.path}"


class EntityRelationship(CamelModel):
    """A relationship to another entity."""

    type: RelationshipType
    entity: str
    foreign_key: str | None = None


class EntityTimestamps(CamelModel):
    """Names of the detected timestamp fields."""

    created_at: str | None = None
    updated_at: str | None = None


class EntityMetadata(CamelModel):
    """Derived entity metadata."""

    base_url: str | None = None
    resource_path: str | None = None
    primary_key: str | None = None
    timestamps: EntityTimestamps | None = None


class Entity(CamelModel):
    """An inferred data model."""

    name: str
    label: str
    plural_name: str | None = None
    fields: list[EntityField] = Field(default_factory=list)
    operations: list[EntityOperation] = Field(default_factory=list)
    relationships: list[EntityRelationship] | None = None
    metadata: EntityMetadata = Field(default_factory=EntityMetadata)

    def get_field(self, name: str) -> EntityField | None:
        for field in self.fields:
            if field.name == name:
                return field
        return None

    def has_operation(self, kind: OperationKind) -> bool:
        return any(op.kind == kind for op in self.operations)


class EntitiesMetadata(CamelModel):
    """Extraction summary written alongside entities."""

    extracted_at: str
    total_entities: int
    total_operations: int


class EntitiesOutput(CamelModel):
    """Contents of entities.json."""

    entities: list[Entity] = Field(default_factory=list)
    metadata: EntitiesMetadata | None = None
