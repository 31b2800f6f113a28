"""Metadata index: one JSON entry per prompt, for startup without a full decode."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from promptex.errors import DocumentError
from promptex.models import IndexEntry, Prompt
from promptex.storage.codec import read_body
from promptex.storage.fileio import write_text_atomic
from promptex.storage.naming import document_name

logger = logging.getLogger(__name__)


class MetadataIndex:
    """The ``metadata.json`` side table next to the documents directory."""

    def __init__(self, path: Path, documents_dir: Path) -> None:
        self.path = path
        self.documents_dir = documents_dir

    def exists(self) -> bool:
        return self.path.is_file()

    def save(self, prompts: list[Prompt]) -> None:
        """Overwrite the index with the current projection. Raises OSError."""
        entries = [IndexEntry.from_prompt(p).to_dict() for p in prompts]
        write_text_atomic(self.path, json.dumps(entries, ensure_ascii=False, indent=2) + "\n")
        logger.debug("Saved index with %d entries to %s", len(entries), self.path)

    def load(self) -> list[Prompt] | None:
        """Rebuild prompts from index entries plus document bodies.

        Returns None if the index file is missing or is not a JSON list.
        Entries whose document is missing or malformed are dropped.
        """
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            logger.info("No index at %s", self.path)
            return None
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Index %s unreadable: %s", self.path, e)
            return None
        if not isinstance(raw, list):
            logger.warning("Index %s is not a list, ignoring it", self.path)
            return None

        prompts: list[Prompt] = []
        seen: set[str] = set()
        for item in raw:
            try:
                entry = IndexEntry.from_dict(item)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Dropping malformed index entry %r: %s", item, e)
                continue
            if entry.id in seen:
                logger.warning("Dropping duplicate index entry %s", entry.id)
                continue
            doc_path = self._document_for(entry)
            try:
                body = read_body(doc_path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, DocumentError) as e:
                logger.warning("Dropping index entry %s (%s): %s", entry.id, doc_path.name, e)
                continue
            try:
                prompts.append(entry.to_prompt(body))
            except ValueError as e:
                logger.warning("Dropping index entry %s: %s", entry.id, e)
                continue
            seen.add(entry.id)
        logger.info("Loaded %d/%d prompts from index", len(prompts), len(raw))
        return prompts

    def _document_for(self, entry: IndexEntry) -> Path:
        """The entry's document, or an older one with the same id suffix."""
        path = self.documents_dir / document_name(entry.title, entry.id)
        try:
            path.stat()
        except OSError:
            pass
        else:
            return path
        older = sorted(self.documents_dir.glob(f"*_{entry.id[:8]}.md"))
        if older:
            logger.info("Document for %s missing, using %s", entry.id, older[0].name)
            return older[0]
        return path

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
