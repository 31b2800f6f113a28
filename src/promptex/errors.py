"""Exception types shared by the storage layer."""

from __future__ import annotations


class PromptExError(Exception):
    """Base class for PromptEx errors."""


class DocumentError(PromptExError, ValueError):
    """A prompt document does not have the expected frontmatter shape."""
