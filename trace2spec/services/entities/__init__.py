"""Entity resolution."""

from .paths import entity_name_for_path, normalize_path, singularize
from .service import (
    EntitiesConfig,
    EntitiesResult,
    EntitiesService,
    EntityResolver,
    classify_operation,
    extract_entities,
)

__all__ = [
    "EntitiesConfig",
    "EntitiesResult",
    "EntitiesService",
    "EntityResolver",
    "classify_operation",
    "entity_name_for_path",
    "extract_entities",
    "normalize_path",
    "singularize",
]
