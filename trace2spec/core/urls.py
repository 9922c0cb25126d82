"""URL helpers shared by the inference stages."""

from __future__ import annotations

import re
from urllib.parse import parse_qsl, urljoin, urlsplit

# first segment of a relative reference: path characters only, no colon or whitespace
_RELATIVE_REFERENCE = re.compile(r"^[A-Za-z0-9._~%!$&'()*+,;=@-]+(?:[/?#]|$)")


def url_path(url: str | None, base: str | None = None) -> str | None:
    """Return the path component of ``url``, or None if it cannot be parsed.

    Absolute URLs are used as-is. Path-absolute ("/orders/1") and relative
    ("orders/1") references are resolved against ``base``, or against the root
    when no base is given. Anything else is treated as unparseable.
    """
    if not isinstance(url, str) or not url.strip():
        return None
    url = url.strip()
    try:
        parts = urlsplit(url)
        if not parts.scheme:
            if not url.startswith("/") and not _RELATIVE_REFERENCE.match(url):
                return None
            parts = urlsplit(urljoin(base or "/", url))
    except ValueError:
        return None
    return parts.path or "/"


def query_param_names(url: str | None) -> list[str]:
    """Return the distinct query parameter names of ``url`` in order of appearance."""
    if not isinstance(url, str):
        return []
    try:
        query = urlsplit(url).query
    except ValueError:
        return []
    names: list[str] = []
    for name, _ in parse_qsl(query, keep_blank_values=True):
        if name not in names:
            names.append(name)
    return names
