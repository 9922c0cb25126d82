"""Unit tests for the trace models."""

from conftest import make_event, make_trace, network

from trace2spec.models.trace import (
    ArrayShape,
    EventType,
    ObjectShape,
    PrimitiveShape,
    Trace,
    infer_shape,
    parse_shape,
    shape_to_raw,
)


class TestNetworkShape:
    """Tests for the recursive payload shape."""

    def test_parse_primitive(self):
        """A type name becomes a primitive leaf."""
        assert parse_shape("string") == PrimitiveShape(name="string")

    def test_parse_nested_object(self):
        """Objects and arrays nest recursively."""
        shape = parse_shape({"id": "number", "tags": ["string"], "owner": {"email": "email"}})

        assert isinstance(shape, ObjectShape)
        assert shape.properties["id"] == PrimitiveShape(name="number")
        assert isinstance(shape.properties["tags"], ArrayShape)
        assert shape.properties["tags"].item == PrimitiveShape(name="string")
        assert shape.properties["owner"].properties["email"].name == "email"

    def test_parse_empty_array_has_no_item(self):
        shape = parse_shape([])
        assert isinstance(shape, ArrayShape)
        assert shape.item is None

    def test_none_stays_none(self):
        assert parse_shape(None) is None
        assert shape_to_raw(None) is None

    def test_serializes_back_to_recorder_form(self):
        """Shapes serialize to the raw recorder structure."""
        raw = {"id": "number", "items": [{"sku": "string"}], "notes": []}
        assert shape_to_raw(parse_shape(raw)) == raw

    def test_infer_shape_from_payload(self):
        """Payloads are described by type only, never by value."""
        shape = infer_shape({"id": 7, "name": "Desk", "active": True, "tags": ["a"], "parent": None})

        assert shape_to_raw(shape) == {
            "id": "number",
            "name": "string",
            "active": "boolean",
            "tags": ["string"],
            "parent": "null",
        }


class TestTrace:
    """Tests for trace loading."""

    def test_validates_camel_case_input(self):
        """The recorder's camelCase document loads into the model."""
        raw = make_trace([
            make_event("c1", "click", 10, selector="#go", screenId="s1"),
            make_event("v1", "navigate", 20, fromUrl="https://app.test/", toUrl="https://app.test/orders"),
            network("n1", 30, "post", "https://app.test/api/orders", request={"title": "string"}),
        ])

        trace = Trace.model_validate(raw)
        events = trace.sessions[0].events

        assert trace.meta.url == "https://app.test/"
        assert trace.meta.viewport == (1280, 800)
        assert events[0].type == EventType.CLICK
        assert events[0].screen_id == "s1"
        assert events[1].to_url == "https://app.test/orders"
        assert events[2].http_method == "POST"
        assert isinstance(events[2].request_shape, ObjectShape)

    def test_key_down_event_type(self):
        raw = make_trace([make_event("k1", "keyDown", 5)])
        assert Trace.model_validate(raw).sessions[0].events[0].type == EventType.KEY_DOWN

    def test_network_events_in_input_order(self, widget_events):
        """network_events walks sessions and events in input order."""
        raw = make_trace([make_event("c1", "click", 1)] + widget_events[:2], widget_events[2:])
        trace = Trace.model_validate(raw)

        assert [event.id for event in trace.network_events()] == ["n1", "n2", "n3", "n4", "n5"]
        assert trace.total_events == 6

    def test_dump_uses_wire_names(self):
        """Dumping by alias restores camelCase keys and raw shapes."""
        raw = make_trace([network("n1", 30, "GET", "https://app.test/api/orders", response=[{"id": "number"}])])
        dumped = Trace.model_validate(raw).model_dump(by_alias=True, exclude_none=True)

        event = dumped["sessions"][0]["events"][0]
        assert dumped["meta"]["recordedAt"] == "2024-01-01T00:00:00Z"
        assert dumped["sessions"][0]["startTime"] == 0
        assert event["responseShape"] == [{"id": "number"}]
        assert "requestShape" not in event
