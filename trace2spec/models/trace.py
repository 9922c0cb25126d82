"""
Trace data models.

A trace is the recorder's output: sessions of time-ordered UI, navigation and
network events. Network events carry shapes, type-only descriptions of their JSON
payloads that never contain actual values.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterator, Literal, Union

from pydantic import Field, field_serializer, field_validator

from ..core.types import CamelModel


class EventType(str, Enum):
    """Types of recorded events."""

    CLICK = "click"
    INPUT = "input"
    CHANGE = "change"
    SUBMIT = "submit"
    KEY_DOWN = "keyDown"
    NAVIGATE = "navigate"
    NETWORK = "network"
    VIEW = "view"


class PrimitiveShape(CamelModel):
    """Leaf of a shape: a type name such as ``string`` or ``number``."""

    kind: Literal["primitive"] = "primitive"
    name: str


class ArrayShape(CamelModel):
    """Array whose elements share the ``item`` shape (None when recorded empty)."""

    kind: Literal["array"] = "array"
    item: NetworkShape | None = None


class ObjectShape(CamelModel):
    """Object mapping field names to shapes."""

    kind: Literal["object"] = "object"
    properties: dict[str, NetworkShape] = Field(default_factory=dict)


NetworkShape = Union[PrimitiveShape, ArrayShape, ObjectShape]

ArrayShape.model_rebuild()
ObjectShape.model_rebuild()


def parse_shape(raw: Any) -> NetworkShape | None:
    """Convert the recorder's raw shape (str | list | dict) into a tagged shape."""
    if raw is None:
        return None
    if isinstance(raw, (PrimitiveShape, ArrayShape, ObjectShape)):
        return raw
    if isinstance(raw, str):
        return PrimitiveShape(name=raw)
    if isinstance(raw, list):
        return ArrayShape(item=parse_shape(raw[0]) if raw else None)
    if isinstance(raw, dict):
        return ObjectShape(
            properties={
                str(key): parse_shape(value) if value is not None else PrimitiveShape(name="null")
                for key, value in raw.items()
            }
        )
    return PrimitiveShape(name="unknown")


def shape_to_raw(shape: NetworkShape | None) -> Any:
    """Inverse of :func:`parse_shape`."""
    if shape is None:
        return None
    if isinstance(shape, PrimitiveShape):
        return shape.name
    if isinstance(shape, ArrayShape):
        return [] if shape.item is None else [shape_to_raw(shape.item)]
    return {key: shape_to_raw(value) for key, value in shape.properties.items()}


def infer_shape(data: Any) -> NetworkShape:
    """Describe a JSON payload by type only, the way the recorder does.

    Arrays are described by their first element; nulls become ``null`` leaves.
    """
    if data is None:
        return ObjectShape()
    if isinstance(data, list):
        return ArrayShape(item=infer_shape(data[0]) if data else None)
    if isinstance(data, dict):
        properties: dict[str, NetworkShape] = {}
        for key, value in data.items():
            if value is None:
                properties[key] = PrimitiveShape(name="null")
            else:
                properties[key] = infer_shape(value)
        return ObjectShape(properties=properties)
    if isinstance(data, bool):
        return PrimitiveShape(name="boolean")
    if isinstance(data, (int, float)):
        return PrimitiveShape(name="number")
    if isinstance(data, str):
        return PrimitiveShape(name="string")
    return PrimitiveShape(name="unknown")


class TraceEvent(CamelModel):
    """A single recorded event."""

    id: str = Field(description="Event identifier")
    type: EventType = Field(description="Event type tag")
    timestamp: float = Field(description="Epoch milliseconds")
    screen_id: str | None = Field(default=None)

    # UI events
    selector: str | None = Field(default=None)
    label: str | None = Field(default=None)
    value: str | None = Field(default=None)

    # Network events
    method: str | None = Field(default=None)
    url: str | None = Field(default=None)
    status: int | None = Field(default=None)
    request_shape: NetworkShape | None = Field(default=None)
    response_shape: NetworkShape | None = Field(default=None)

    # Navigation events
    from_url: str | None = Field(default=None)
    to_url: str | None = Field(default=None)

    @field_validator("request_shape", "response_shape", mode="before")
    @classmethod
    def _parse_shape(cls, value: Any) -> NetworkShape | None:
        return parse_shape(value)

    @field_serializer("request_shape", "response_shape")
    def _serialize_shape(self, value: NetworkShape | None) -> Any:
        return shape_to_raw(value)

    @property
    def http_method(self) -> str | None:
        """Upper-cased HTTP method, if any."""
        return self.method.upper() if self.method else None


class TraceSession(CamelModel):
    """A sequence of related events."""

    id: str
    start_time: float
    end_time: float | None = None
    events: list[TraceEvent] = Field(default_factory=list)


class TraceMeta(CamelModel):
    """Recording metadata."""

    url: str = Field(description="Root URL the recording started from")
    recorded_at: str = Field(default="")
    viewport: tuple[int, int] | None = Field(default=None)
    user_agent: str | None = Field(default=None)
    duration: float | None = Field(default=None)


class Trace(CamelModel):
    """Complete recorded trace."""

    meta: TraceMeta
    sessions: list[TraceSession] = Field(default_factory=list)

    def network_events(self) -> Iterator[TraceEvent]:
        """Iterate network events across sessions, in input order."""
        for session in self.sessions:
            for event in session.events:
                if event.type == EventType.NETWORK:
                    yield event

    @property
    def total_events(self) -> int:
        return sum(len(session.events) for session in self.sessions)
