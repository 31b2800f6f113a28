"""Deterministic document file names."""

from __future__ import annotations

import re

_UNSAFE_RE = re.compile(r'[:/\\?%*|"<>]')


def sanitize(name: str) -> str:
    """Replace characters that are unsafe in file names with ``_``."""
    return _UNSAFE_RE.sub("_", name)


def document_name(title: str, prompt_id: str) -> str:
    """``<title>_<first 8 chars of id>.md``, sanitized.

    The same (title, id) pair always yields the same name, so a record's
    document can be found without a separate lookup table.
    """
    return sanitize(f"{title}_{prompt_id[:8]}") + ".md"
