"""
Screen and flow models.

Screens are distinct application views keyed by URL path; flows are the bounded
user journeys between two navigations.
"""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from ..core.types import CamelModel


class Screen(CamelModel):
    """A distinct application view."""

    id: str = Field(description="Deterministic id derived from the URL path")
    url_pattern: str = Field(description="Normalized URL path")
    label: str = Field(description="Human-readable breadcrumb")
    primary_actions: list[str] = Field(default_factory=list, description="Click event ids seen on this screen")

    def add_action(self, action_id: str) -> None:
        if action_id not in self.primary_actions:
            self.primary_actions.append(action_id)


class FlowStepType(str, Enum):
    """Types of flow steps."""

    VIEW = "view"
    CLICK = "click"
    INPUT = "input"
    NAVIGATE = "navigate"
    NETWORK = "network"


class FlowStep(CamelModel):
    """Individual step in a user flow."""

    type: FlowStepType
    screen: str | None = Field(default=None, description="Screen id")
    action: str | None = Field(default=None, description="Element selector or event id")
    operation: str | None = Field(default=None, description="Network operation, e.g. 'POST /api/orders'")
    duration: float = Field(default=0.0, description="Milliseconds since the previous event")

    @property
    def http_method(self) -> str | None:
        """HTTP method of a network step's operation."""
        if not self.operation:
            return None
        return self.operation.split(" ", 1)[0].upper()


class Flow(CamelModel):
    """A user journey between two screens."""

    id: str
    name: str
    from_screen: str
    to_screen: str
    steps: list[FlowStep] = Field(default_factory=list)
    avg_duration: float = Field(default=0.0, description="Elapsed milliseconds")

    def mentions(self, word: str) -> bool:
        """Case-insensitive substring match on the flow name."""
        return word.lower() in self.name.lower()


class ScreensOutput(CamelModel):
    """Contents of screens.json."""

    screens: list[Screen] = Field(default_factory=list)


class FlowsOutput(CamelModel):
    """Contents of flows.json."""

    flows: list[Flow] = Field(default_factory=list)
