"""Prompt <-> markdown document codec.

A full document is a frontmatter header, a human-readable summary, a
``---`` delimiter line and the raw body::

    ---
    title: "Code Review Assistant"
    id: 0b5c7a4e-...
    category: Coding
    favorite: false
    created: 2026-02-18T09:30:00Z
    modified: 2026-02-18T09:30:00Z
    tags: ["code-review", "development"]
    ---

    # Code Review Assistant

    - **Category:** 💻 Coding
    ...

    ---

    <body>

The body is everything after the delimiter that follows the header
block, so a body may itself contain ``---`` lines.
"""

from __future__ import annotations

import json
import logging
import re
import uuid
from datetime import datetime
from pathlib import Path

import frontmatter

from promptex.errors import DocumentError
from promptex.models import (
    Prompt,
    PromptCategory,
    format_timestamp,
    parse_timestamp,
    utc_now,
)

logger = logging.getLogger(__name__)

_HANDLER = frontmatter.YAMLHandler()

_FIELD_RE = re.compile(
    r"^(title|id|category|favorite|created|modified|tags)[ \t]*:[ \t]*(.*?)[ \t]*$",
    re.MULTILINE,
)


# ── Encoding ──────────────────────────────────────────────────


def encode(prompt: Prompt, now: datetime | None = None) -> str:
    """Render the full document. ``now`` anchors the relative times."""
    now = now or utc_now()
    header = (
        f"---\n"
        f"title: {json.dumps(prompt.title, ensure_ascii=False)}\n"
        f"id: {prompt.id}\n"
        f"category: {prompt.category.value}\n"
        f"favorite: {'true' if prompt.is_favorite else 'false'}\n"
        f"created: {format_timestamp(prompt.created_at)}\n"
        f"modified: {format_timestamp(prompt.modified_at)}\n"
        f"tags: {json.dumps(prompt.tags, ensure_ascii=False)}\n"
        f"---\n"
    )
    return header + _render_summary(prompt, now) + "\n---\n\n" + prompt.body + "\n"


def encode_simple(prompt: Prompt) -> str:
    """Title heading plus body, no metadata."""
    return f"# {_one_line(prompt.title)}\n\n{prompt.body}\n"


def _render_summary(prompt: Prompt, now: datetime) -> str:
    chips = " ".join(f"`{_one_line(tag)}`" for tag in prompt.tags) or "none"
    favorite = "⭐ Yes" if prompt.is_favorite else "No"
    return (
        f"\n# {_one_line(prompt.title)}\n\n"
        f"- **Category:** {prompt.category.icon} {prompt.category.value}\n"
        f"- **Created:** {format_relative(prompt.created_at, now)} ago\n"
        f"- **Modified:** {format_relative(prompt.modified_at, now)} ago\n"
        f"- **Favorite:** {favorite}\n"
        f"- **Tags:** {chips}\n"
    )


def _one_line(text: str) -> str:
    return " ".join(text.split())


def format_relative(moment: datetime, now: datetime) -> str:
    """Coarse age of ``moment`` relative to ``now``: "< 1 min", "3 hours", ..."""
    seconds = (now - moment).total_seconds()
    if seconds < 60:
        return "< 1 min"
    if seconds < 3600:
        return f"{int(seconds // 60)} min"
    for unit, size, limit in _RELATIVE_UNITS:
        if limit is None or seconds < limit:
            count = int(seconds // size)
            return f"{count} {unit}{'' if count == 1 else 's'}"
    return ""


# (unit, seconds per unit, upper bound in seconds); 30-day months, 365-day years
_RELATIVE_UNITS = (
    ("hour", 3600, 86400),
    ("day", 86400, 2592000),
    ("month", 2592000, 31536000),
    ("year", 31536000, None),
)


# ── Decoding ──────────────────────────────────────────────────


def split_document(text: str) -> tuple[str, str]:
    """Split a full document into (header, body). Raises DocumentError."""
    text = text.lstrip("\ufeff")
    if not _HANDLER.detect(text):
        raise DocumentError("document does not start with a frontmatter block")
    try:
        header, rest = _HANDLER.split(text)
    except ValueError as e:
        raise DocumentError("unterminated frontmatter block") from e
    parts = _HANDLER.FM_BOUNDARY.split(rest, 1)
    if len(parts) < 2:
        raise DocumentError("missing delimiter before body")
    return header, parts[1].strip()


def read_body(text: str) -> str:
    """Body-only loading path; the other fields come from the index."""
    return split_document(text)[1]


def decode(text: str) -> Prompt | None:
    """Parse a full document. Returns None if title, id or category is unusable."""
    try:
        header, body = split_document(text)
    except DocumentError as e:
        logger.debug("Not a prompt document: %s", e)
        return None

    fields: dict[str, str] = {}
    for match in _FIELD_RE.finditer(header):
        fields.setdefault(match.group(1), match.group(2))

    title = _unquote(fields.get("title", "")).strip()
    if not title:
        logger.debug("Document has no title")
        return None
    try:
        prompt_id = str(uuid.UUID(_unquote(fields.get("id", ""))))
    except ValueError:
        logger.debug("Document %r has an invalid id", title)
        return None
    category = PromptCategory.parse(_unquote(fields.get("category", "")))
    if category is None:
        logger.debug("Document %r has an unknown category %r", title, fields.get("category"))
        return None

    return Prompt(
        title=title,
        body=body,
        category=category,
        tags=_parse_tags(fields.get("tags", "")),
        is_favorite=_unquote(fields.get("favorite", "")) == "true",
        id=prompt_id,
        created_at=_timestamp_or_now(fields.get("created"), "created", prompt_id),
        modified_at=_timestamp_or_now(fields.get("modified"), "modified", prompt_id),
    )


def load_document(path: Path) -> Prompt | None:
    """Read and decode one document file; None on I/O or format errors."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Cannot read %s: %s", path, e)
        return None
    return decode(text)


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        if value[0] == '"':
            try:
                loaded = json.loads(value)
            except ValueError:
                return value[1:-1]
            if isinstance(loaded, str):
                return loaded
        return value[1:-1]
    return value


def _parse_tags(value: str) -> list[str]:
    value = value.strip()
    if not (value.startswith("[") and value.endswith("]")):
        return []
    try:
        loaded = json.loads(value)
    except ValueError:
        loaded = None
    if isinstance(loaded, list):
        return [str(tag) for tag in loaded if str(tag)]
    inner = value[1:-1]
    tags = [_unquote(part) for part in inner.split(",")]
    return [tag for tag in tags if tag]


def _timestamp_or_now(value: str | None, key: str, prompt_id: str) -> datetime:
    moment = parse_timestamp(value) if value else None
    if moment is None:
        logger.warning("Prompt %s: %s timestamp %r unreadable, using now", prompt_id, key, value)
        return utc_now()
    return moment
