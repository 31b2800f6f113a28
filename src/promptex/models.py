"""Prompt record, category set and the index projection."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


def utc_now() -> datetime:
    """Current UTC time truncated to whole seconds (the persisted precision)."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def dedupe_tags(tags) -> list[str]:
    seen: list[str] = []
    for tag in tags:
        if tag not in seen:
            seen.append(tag)
    return seen


class PromptCategory(Enum):
    """Closed set of categories. Values are the persisted names."""

    GENERAL = "General"
    CODING = "Coding"
    WRITING = "Writing"
    ANALYSIS = "Analysis"
    CREATIVE = "Creative"
    IDEAS = "Random Ideas"

    @property
    def icon(self) -> str:
        return _ICONS[self]

    @classmethod
    def parse(cls, value: str) -> PromptCategory | None:
        """Exact match on the persisted name; anything else is rejected."""
        try:
            return cls(value.strip())
        except ValueError:
            return None

    @classmethod
    def lookup(cls, value: str) -> PromptCategory | None:
        """Case-insensitive match on name or value, for user input."""
        key = value.strip().lower()
        for category in cls:
            if key in (category.value.lower(), category.name.lower()):
                return category
        return None


_ICONS = {
    PromptCategory.GENERAL: "📄",
    PromptCategory.CODING: "💻",
    PromptCategory.WRITING: "✏️",
    PromptCategory.ANALYSIS: "📊",
    PromptCategory.CREATIVE: "🎨",
    PromptCategory.IDEAS: "💡",
}


@dataclass
class Prompt:
    """A single persisted prompt or idea."""

    title: str
    body: str = ""
    category: PromptCategory = PromptCategory.GENERAL
    tags: list[str] = field(default_factory=list)
    is_favorite: bool = False
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=utc_now)
    modified_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.title or not self.title.strip():
            raise ValueError("Prompt title must not be empty")
        self.title = self.title.strip()
        self.tags = dedupe_tags(self.tags)
        if self.modified_at is None or self.modified_at < self.created_at:
            self.modified_at = self.created_at

    def touch(self) -> None:
        """Refresh ``modified_at``; never moves it before ``created_at``."""
        self.modified_at = max(utc_now(), self.created_at)

    def update_body(self, body: str) -> None:
        if body == self.body:
            return
        self.body = body
        self.touch()

    def add_tag(self, tag: str) -> None:
        if tag in self.tags:
            return
        self.tags.append(tag)
        self.touch()

    def remove_tag(self, tag: str) -> None:
        self.tags = [t for t in self.tags if t != tag]
        self.touch()


@dataclass
class IndexEntry:
    """Metadata index row: a Prompt without its body."""

    id: str
    title: str
    category: PromptCategory
    is_favorite: bool
    created_at: datetime
    modified_at: datetime
    tags: list[str] = field(default_factory=list)

    @classmethod
    def from_prompt(cls, prompt: Prompt) -> IndexEntry:
        return cls(
            id=prompt.id,
            title=prompt.title,
            category=prompt.category,
            is_favorite=prompt.is_favorite,
            created_at=prompt.created_at,
            modified_at=prompt.modified_at,
            tags=list(prompt.tags),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category.value,
            "isFavorite": self.is_favorite,
            "createdAt": format_timestamp(self.created_at),
            "modifiedAt": format_timestamp(self.modified_at),
            "tags": list(self.tags),
        }

    @classmethod
    def from_dict(cls, data: dict) -> IndexEntry:
        """Build an entry from its JSON form. Raises ValueError/KeyError if malformed."""
        if not isinstance(data, dict):
            raise ValueError(f"index entry is not an object: {data!r}")
        entry_id = str(uuid.UUID(str(data["id"])))
        title = str(data["title"])
        category = PromptCategory.parse(str(data["category"]))
        if category is None:
            raise ValueError(f"unknown category {data['category']!r}")
        created = parse_timestamp(str(data["createdAt"]))
        modified = parse_timestamp(str(data["modifiedAt"]))
        if created is None or modified is None:
            raise ValueError(f"bad timestamps in index entry {entry_id}")
        tags = data.get("tags", [])
        if not isinstance(tags, list):
            raise ValueError(f"tags must be a list in index entry {entry_id}")
        return cls(
            id=entry_id,
            title=title,
            category=category,
            is_favorite=data.get("isFavorite") is True,
            created_at=created,
            modified_at=modified,
            tags=[str(t) for t in tags],
        )

    def to_prompt(self, body: str) -> Prompt:
        return Prompt(
            title=self.title,
            body=body,
            category=self.category,
            tags=list(self.tags),
            is_favorite=self.is_favorite,
            id=self.id,
            created_at=self.created_at,
            modified_at=self.modified_at,
        )


# ── Timestamps ────────────────────────────────────────────────


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with a trailing ``Z``."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_timestamp(value: str) -> datetime | None:
    """Parse an ISO-8601 timestamp. Naive values are taken as UTC."""
    value = value.strip().strip('"').strip("'")
    if not value:
        return None
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    try:
        moment = datetime.fromisoformat(value)
    except ValueError:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).replace(microsecond=0)
