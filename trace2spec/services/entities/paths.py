"""
Resource path normalization and entity naming.

Both the entity resolver and the rule extractor map request URLs to entity names
through these functions, so a URL always resolves to the same entity.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from ...core.urls import url_path

PARAM_MARKER = ":id"

_NUMERIC = re.compile(r"^\d+$")
_UUID = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)
_VERSION = re.compile(r"^v\d+$", re.IGNORECASE)


def is_param_segment(segment: str) -> bool:
    """True for placeholder segments such as ``:id`` or ``{id}``."""
    return segment.startswith(":") or (segment.startswith("{") and segment.endswith("}"))


def normalize_path(url: str | None, base: str | None = None) -> str | None:
    """Return the URL path with numeric and UUID segments replaced by ``:id``.

    Query strings and fragments are dropped. Returns None when the URL cannot
    be parsed.

    >>> normalize_path("https://app.test/api/orders/42?expand=items")
    '/api/orders/:id'
    """
    path = url_path(url, base)
    if path is None:
        return None
    segments = [
        PARAM_MARKER if _NUMERIC.match(segment) or _UUID.match(segment) else segment
        for segment in path.split("/")
    ]
    normalized = "/".join(segments)
    if len(normalized) > 1:
        normalized = normalized.rstrip("/")
    return normalized or "/"


def resource_segments(path: str) -> list[str]:
    """Path segments after stripping a leading ``api`` and ``v<N>`` prefix."""
    segments = [segment for segment in path.split("/") if segment]
    if segments and segments[0].lower() == "api":
        segments = segments[1:]
    if segments and _VERSION.match(segments[0]):
        segments = segments[1:]
    return segments


def resource_root(path: str) -> str | None:
    """First non-parameter resource segment of a normalized path."""
    for segment in resource_segments(path):
        if not is_param_segment(segment):
            return segment
    return None


def singularize(word: str, irregular: Mapping[str, str] | None = None) -> str:
    """Heuristic singular form of a plural resource name.

    An irregular-plural table is consulted first; otherwise ``-ies`` becomes
    ``-y``, ``-ses`` loses its last two letters and a trailing ``s`` not
    preceded by ``s`` is dropped. Known false positives (``status`` becomes
    ``statu``) are kept.
    """
    lower = word.lower()
    if irregular and lower in irregular:
        return irregular[lower]
    if lower.endswith("ies"):
        return word[:-3] + "y"
    if lower.endswith("ses"):
        return word[:-2]
    if lower.endswith("s") and not lower.endswith("ss"):
        return word[:-1]
    return word


def pascal_case(word: str) -> str:
    """``user-profile`` / ``user_profile`` to ``UserProfile``."""
    return "".join(part[:1].upper() + part[1:].lower() for part in re.split(r"[-_]", word) if part)


def entity_name_for_path(
    path: str,
    irregular: Mapping[str, str] | None = None,
    name_map: Mapping[str, str] | None = None,
) -> str | None:
    """Derive the entity name for a normalized path.

    >>> entity_name_for_path("/api/v1/categories/:id")
    'Category'
    """
    root = resource_root(path)
    if root is None:
        return None
    name = pascal_case(singularize(root, irregular))
    if not name:
        return None
    if name_map:
        name = name_map.get(name, name_map.get(root, name))
    return name


def matches_pattern(url: str, patterns: list[str]) -> bool:
    """True when ``url`` matches a ``/regex/`` or contains a plain substring pattern."""
    for pattern in patterns:
        if len(pattern) > 1 and pattern.startswith("/") and pattern.endswith("/"):
            if re.search(pattern[1:-1], url):
                return True
        elif pattern in url:
            return True
    return False
