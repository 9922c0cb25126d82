"""Test configuration for Trace2Spec."""

import json
import tempfile
from pathlib import Path

import pytest

ROOT_URL = "https://app.test/"


def make_event(event_id, event_type, timestamp, **fields):
    """Build a raw (camelCase) trace event dictionary."""
    return {"id": event_id, "type": event_type, "timestamp": timestamp, **fields}


def network(event_id, timestamp, method, url, status=200, request=None, response=None):
    """Build a raw network event."""
    event = make_event(event_id, "network", timestamp, method=method, url=url, status=status)
    if request is not None:
        event["requestShape"] = request
    if response is not None:
        event["responseShape"] = response
    return event


def make_trace(*sessions, url=ROOT_URL):
    """Build a raw trace from lists of raw events, one list per session."""
    return {
        "meta": {"url": url, "recordedAt": "2024-01-01T00:00:00Z", "viewport": [1280, 800]},
        "sessions": [
            {"id": f"session-{index}", "startTime": 0, "events": list(events)}
            for index, events in enumerate(sessions, start=1)
        ],
    }


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests.

    Yields:
        Path: A Path object pointing to the temporary directory.
            The directory is automatically cleaned up after the test.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def storage(temp_dir):
    """Create a storage backend rooted at the temporary directory.

    Returns:
        LocalStorageBackend: A local storage backend instance configured
            to use the temporary directory.
    """
    from trace2spec.storage import LocalStorageBackend
    return LocalStorageBackend(temp_dir)


@pytest.fixture
def widget_events():
    """The five CRUD requests of a widget resource."""
    body = {"name": "string", "price": "number"}
    record = {"id": "number", "name": "string", "price": "number", "createdAt": "date-time"}
    return [
        network("n1", 1000, "GET", "https://app.test/api/widgets", response=[record]),
        network("n2", 2000, "POST", "https://app.test/api/widgets", status=201, request=body, response=record),
        network("n3", 3000, "GET", "https://app.test/api/widgets/42", response=record),
        network("n4", 4000, "PATCH", "https://app.test/api/widgets/42", request=body, response=record),
        network("n5", 5000, "DELETE", "https://app.test/api/widgets/42", status=204),
    ]


@pytest.fixture
def widget_trace(widget_events):
    """Raw trace holding only the widget CRUD requests."""
    return make_trace(widget_events)


@pytest.fixture
def journey_trace():
    """Raw trace with UI events, navigations and network calls in two sessions."""
    first = [
        make_event("c1", "click", 1000, selector="#new-order"),
        make_event("i1", "input", 1500, selector="#title", value="Desk"),
        network(
            "n1", 2000, "POST", "https://app.test/api/orders", status=201,
            request={"title": "string", "status": "string", "customerId": "number"},
            response={"id": "number", "title": "string", "status": "string", "customerId": "number",
                      "createdAt": "date-time"},
        ),
        make_event("v1", "navigate", 2500, toUrl="https://app.test/orders/1"),
        make_event("c2", "click", 3000, selector="#archive"),
        network(
            "n2", 3500, "PATCH", "https://app.test/api/orders/1",
            request={"title": "string", "status": "string", "customerId": "number"},
            response={"id": "number", "status": "string"},
        ),
        network("n3", 3600, "GET", "https://app.test/api/customers/7", response={"id": "number", "email": "email"}),
    ]
    second = [
        make_event("c3", "click", 500, selector="#customers"),
        make_event("c4", "click", 700, selector="#customers-list"),
        make_event("v2", "navigate", 900, toUrl="/customers"),
        network("n4", 1000, "GET", "https://app.test/api/customers?page=2", response=[{"id": "number"}]),
    ]
    return make_trace(first, second)


@pytest.fixture
def write_json(temp_dir):
    """Write a JSON document under the temporary directory and return its path."""

    def _write(name, data):
        path = temp_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write
