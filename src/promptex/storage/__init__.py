"""Prompt storage — markdown documents with frontmatter + a metadata index.

Layout:
    ~/.promptex/
    ├── metadata.json                  # Index: one entry per prompt, no bodies
    └── prompts/
        └── <title>_<id8>.md           # Full document: frontmatter + summary + body
    ./resources/
        └── <title>_<id8>.md           # Title + body only, rewritten on every save
"""

from promptex.storage.store import LoadSource, PromptStore, SaveReport

__all__ = ["LoadSource", "PromptStore", "SaveReport"]
