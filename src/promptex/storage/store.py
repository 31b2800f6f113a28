"""Prompt persistence: markdown documents + metadata index.

Documents under ``documents_dir`` are the source of truth. Every save
also writes a title+body copy to ``resources_dir`` and rebuilds the
index so the next startup can skip decoding every document.

Load order: index → scan documents (rebuilding the index) → seed samples.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from promptex.models import Prompt, PromptCategory
from promptex.storage.codec import encode, encode_simple, load_document
from promptex.storage.fileio import write_text_atomic
from promptex.storage.index import MetadataIndex
from promptex.storage.naming import document_name

if TYPE_CHECKING:
    from promptex.config import PromptExConfig

logger = logging.getLogger(__name__)


class LoadSource(enum.Enum):
    """Which load strategy produced the current prompt set."""

    INDEX = "index"
    SCAN = "scan"
    SEED = "seed"


@dataclass
class SaveReport:
    """Outcome of one save pass. Failures are (path, error message) pairs."""

    written: list[Path] = field(default_factory=list)
    failures: list[tuple[Path, str]] = field(default_factory=list)
    removed: list[Path] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def sample_prompts() -> list[Prompt]:
    """Prompts installed when there is nothing to load."""
    return [
        Prompt(
            title="Code Review Assistant",
            body=(
                "Please review this code and provide suggestions for improvement, "
                "focusing on readability, performance, and best practices:\n\n{{code}}"
            ),
            category=PromptCategory.CODING,
            tags=["code-review", "development"],
        ),
        Prompt(
            title="Creative Writing Helper",
            body=(
                "Help me write a creative story about {{topic}}. Please include vivid "
                "descriptions, engaging dialogue, and a compelling plot structure."
            ),
            category=PromptCategory.CREATIVE,
            tags=["writing", "storytelling"],
        ),
        Prompt(
            title="Random Idea",
            body=(
                "What if we could create an app that combines voice notes with AI "
                "to automatically organize thoughts?"
            ),
            category=PromptCategory.IDEAS,
            tags=["brainstorming", "app-idea"],
        ),
    ]


class PromptStore:
    """Read/write access to the on-disk prompt library."""

    def __init__(self, documents_dir: Path, resources_dir: Path, index_path: Path) -> None:
        self.documents_dir = documents_dir
        self.resources_dir = resources_dir
        self.index = MetadataIndex(index_path, documents_dir)
        self.load_source: LoadSource | None = None

    @classmethod
    def from_config(cls, config: PromptExConfig) -> PromptStore:
        return cls(config.documents_dir, config.resources_dir, config.index_path)

    # ── Load ──────────────────────────────────────────────────

    def load(self) -> list[Prompt]:
        """Run the index → scan → seed sequence and return the adopted prompts."""
        prompts = self.index.load()
        if prompts is not None:
            self.load_source = LoadSource.INDEX
            return prompts

        prompts = self.scan()
        if prompts:
            logger.info("Recovered %d prompts from %s, rebuilding index", len(prompts), self.documents_dir)
            try:
                self.index.save(prompts)
            except OSError as e:
                logger.warning("Could not rebuild index %s: %s", self.index.path, e)
            self.load_source = LoadSource.SCAN
            return prompts

        logger.info("No prompts found, installing samples")
        prompts = sample_prompts()
        report = self.save(prompts)
        if not report.ok:
            logger.warning("Sample prompts saved with %d failures", len(report.failures))
        self.load_source = LoadSource.SEED
        return prompts

    def scan(self) -> list[Prompt]:
        """Decode every document in ``documents_dir``, skipping unusable files."""
        if not self.documents_dir.is_dir():
            return []
        prompts: list[Prompt] = []
        seen: set[str] = set()
        for path in sorted(self.documents_dir.glob("*.md")):
            prompt = load_document(path)
            if prompt is None:
                logger.warning("Skipping unreadable document %s", path.name)
                continue
            if prompt.id in seen:
                logger.warning("Skipping %s: duplicate id %s", path.name, prompt.id)
                continue
            seen.add(prompt.id)
            prompts.append(prompt)
        return prompts

    # ── Save ──────────────────────────────────────────────────

    def save(self, prompts: list[Prompt]) -> SaveReport:
        """Write every document and its simplified copy, the index, then clean up.

        A failed write is logged and recorded; the remaining files are still
        written. Existing documents of a prompt whose new document could not
        be written are kept.
        """
        report = SaveReport()
        unwritten: set[str] = set()
        for prompt in prompts:
            name = document_name(prompt.title, prompt.id)
            if not self._write(self.documents_dir / name, encode(prompt), report):
                unwritten.add(prompt.id)
            self._write(self.resources_dir / name, encode_simple(prompt), report)

        try:
            self.index.save(prompts)
            report.written.append(self.index.path)
        except OSError as e:
            logger.error("Failed to save index %s: %s", self.index.path, e)
            report.failures.append((self.index.path, str(e)))

        report.removed = self.cleanup_orphans(prompts, report, keep_ids=unwritten)
        if report.ok:
            logger.debug("Saved %d prompts", len(prompts))
        return report

    def _write(self, path: Path, content: str, report: SaveReport) -> bool:
        try:
            write_text_atomic(path, content)
        except OSError as e:
            logger.error("Failed to write %s: %s", path, e)
            report.failures.append((path, str(e)))
            return False
        report.written.append(path)
        return True

    def cleanup_orphans(
        self,
        prompts: list[Prompt],
        report: SaveReport | None = None,
        keep_ids: set[str] | frozenset[str] = frozenset(),
    ) -> list[Path]:
        """Delete documents in ``documents_dir`` that no live prompt maps to.

        Documents ending in the id suffix of a prompt in ``keep_ids`` stay.
        The resources directory is left alone; it is a derived copy.
        """
        if not self.documents_dir.is_dir():
            return []
        expected = {document_name(p.title, p.id) for p in prompts}
        kept_suffixes = tuple(f"_{pid[:8]}.md" for pid in keep_ids)
        removed: list[Path] = []
        for path in self.documents_dir.glob("*.md"):
            if path.name in expected or path.name.endswith(kept_suffixes):
                continue
            try:
                path.unlink()
            except OSError as e:
                logger.warning("Could not remove orphan %s: %s", path, e)
                if report is not None:
                    report.failures.append((path, str(e)))
                continue
            logger.info("Removed orphan document %s", path.name)
            removed.append(path)
        return removed

    def document_path(self, prompt: Prompt) -> Path:
        return self.documents_dir / document_name(prompt.title, prompt.id)

    def resource_path(self, prompt: Prompt) -> Path:
        return self.resources_dir / document_name(prompt.title, prompt.id)
