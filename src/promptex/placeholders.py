"""Template placeholders: ``{{name}}`` tokens inside prompt bodies.

A token is two opening braces, optional whitespace, a name made of ASCII
letters, digits and underscores, optional whitespace and two closing
braces. Anything else that looks brace-like is plain text; there is no
escaping.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

PLACEHOLDER_RE = re.compile(r"\{\{\s*([A-Za-z0-9_]+)\s*\}\}")


def extract_placeholders(text: str) -> list[str]:
    """Return placeholder names, deduplicated, in first-occurrence order."""
    names: list[str] = []
    for match in PLACEHOLDER_RE.finditer(text):
        name = match.group(1)
        if name not in names:
            names.append(name)
    return names


def has_placeholders(text: str) -> bool:
    return PLACEHOLDER_RE.search(text) is not None


def placeholder_spans(text: str) -> list[tuple[int, int, str]]:
    """(start, end, name) for every token, in text order. Used for highlighting."""
    return [(m.start(), m.end(), m.group(1)) for m in PLACEHOLDER_RE.finditer(text)]


def replace_placeholders(text: str, values: Mapping[str, str]) -> str:
    """Substitute every token; names missing from ``values`` become ``""``.

    Matches are found against the original text in a single pass, so a
    substituted value is never rescanned for tokens.
    """
    return PLACEHOLDER_RE.sub(lambda m: str(values.get(m.group(1), "")), text)
