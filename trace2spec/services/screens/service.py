"""
Screen Segmenter.

Partitions trace events into application screens keyed by URL path. Screen
identity is a pure function of the path, so visits from different sessions
aggregate onto the same screen.
"""

from __future__ import annotations

import re

from ...core.logging import get_logger
from ...core.urls import url_path
from ...models.flows import Screen
from ...models.trace import EventType, Trace

logger = get_logger(__name__)

LANDING_SCREEN_ID = "screen-landing"
UNKNOWN_SCREEN_ID = "screen-unknown"

_NON_SLUG = re.compile(r"[^a-z0-9-]", re.IGNORECASE)


def screen_id_for_path(path: str | None) -> str:
    """Derive a screen id from a URL path.

    >>> screen_id_for_path("/workspaces/settings")
    'screen-workspaces-settings'
    """
    if path is None:
        return UNKNOWN_SCREEN_ID
    if path in ("", "/"):
        return LANDING_SCREEN_ID
    clean = _NON_SLUG.sub("", path.strip("/").replace("/", "-"))
    return f"screen-{clean or 'root'}"


def screen_label_for_path(path: str | None) -> str:
    """Derive a breadcrumb label from a URL path.

    >>> screen_label_for_path("/user-settings/billing")
    'User Settings → Billing'
    """
    if path is None:
        return "Unknown Screen"
    if path in ("", "/"):
        return "Landing Page"
    parts = [
        " ".join(word[:1].upper() + word[1:] for word in segment.split("-"))
        for segment in path.split("/")
        if segment
    ]
    return " → ".join(parts)


def screen_for_url(url: str | None, base: str | None = None) -> Screen:
    """Build a fresh screen for ``url`` (resolved against ``base``)."""
    path = url_path(url, base)
    return Screen(
        id=screen_id_for_path(path),
        url_pattern=path if path is not None else "",
        label=screen_label_for_path(path),
    )


class ScreenSegmenter:
    """Extracts the distinct screens visited in a trace.

    Each session starts on the trace's root URL; every ``navigate`` event moves
    the session to its destination before the event is attributed. Click event
    ids are recorded on the screen active when they occurred.
    """

    def __init__(self) -> None:
        self.diagnostics: list[str] = []

    def segment(self, trace: Trace) -> list[Screen]:
        """Return screens in order of first visit.

        Args:
            trace: The recorded trace.

        Returns:
            One screen per distinct screen id.
        """
        screens: dict[str, Screen] = {}
        root_url = trace.meta.url

        for session in trace.sessions:
            current_url = root_url

            for event in session.events:
                if event.type == EventType.NAVIGATE and event.to_url:
                    current_url = event.to_url

                screen = screen_for_url(current_url, root_url)
                if screen.id == UNKNOWN_SCREEN_ID and screen.id not in screens:
                    self.diagnostics.append(
                        f"Unparseable URL '{current_url}' in session {session.id}; attributed to {UNKNOWN_SCREEN_ID}"
                    )
                screen = screens.setdefault(screen.id, screen)

                if event.type == EventType.CLICK:
                    screen.add_action(event.id)

        logger.debug("Screens segmented", screens=len(screens), sessions=len(trace.sessions))
        return list(screens.values())
