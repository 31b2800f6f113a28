"""PromptManager — the interface the UI layer talks to.

Holds the session's prompt list (the in-memory source of truth), pushes
every mutation through the store, and reports changes on an
EventChannel. Filter state is changed through explicit setters that say
whether anything changed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from promptex import events
from promptex.events import EventChannel, PromptEvent
from promptex.models import Prompt, PromptCategory
from promptex.placeholders import replace_placeholders
from promptex.storage import PromptStore, SaveReport

logger = logging.getLogger(__name__)

CONVERTED_TAG = "converted-from-idea"
QUICK_ADD_TAG = "quick-add"
IDEA_TAG = "idea"
TITLE_MAX_CHARS = 50

IDEA_PROMPT_TEMPLATE = """\
Please help me with the following idea/task:

{body}

Could you provide detailed guidance, suggestions, or implementation steps?"""


def generate_title(text: str) -> str:
    """First line of ``text``, cut to TITLE_MAX_CHARS."""
    text = text.strip()
    first_line = text.splitlines()[0].strip() if text else ""
    return (first_line or text)[:TITLE_MAX_CHARS]


class PromptManager:
    """CRUD, conversion and filtering over the prompt library."""

    def __init__(
        self,
        store: PromptStore,
        channel: EventChannel | None = None,
        *,
        autoload: bool = True,
    ) -> None:
        self.store = store
        self.events = channel or EventChannel()
        self._prompts: list[Prompt] = []
        self.search_text = ""
        self.category_filter: PromptCategory | None = None
        self.favorites_only = False
        self.last_save_report: SaveReport | None = None
        if autoload:
            self.reload()

    def reload(self) -> None:
        """Replace the in-memory list with what the store loads."""
        self._prompts = self.store.load()
        logger.info("Loaded %d prompts (%s)", len(self._prompts), self.store.load_source)

    # ── Queries ───────────────────────────────────────────────

    def list_prompts(self) -> list[Prompt]:
        """All prompts, most recently modified first."""
        return sorted(self._prompts, key=lambda p: p.modified_at, reverse=True)

    def get(self, prompt_id: str) -> Prompt | None:
        for prompt in self._prompts:
            if prompt.id == prompt_id:
                return prompt
        return None

    def find(self, id_prefix: str) -> list[Prompt]:
        """Prompts whose id starts with ``id_prefix``."""
        id_prefix = id_prefix.lower()
        return [p for p in self._prompts if p.id.startswith(id_prefix)]

    # ── Mutations ─────────────────────────────────────────────

    def add(
        self,
        title: str,
        body: str = "",
        category: PromptCategory = PromptCategory.GENERAL,
        tags: Iterable[str] = (),
        *,
        is_favorite: bool = False,
    ) -> Prompt:
        """Create and persist a prompt. Raises ValueError for a blank title."""
        prompt = Prompt(
            title=title.strip(),
            body=body,
            category=category,
            tags=list(tags),
            is_favorite=is_favorite,
        )
        return self.add_prompt(prompt)

    def add_prompt(self, prompt: Prompt) -> Prompt:
        if self.get(prompt.id) is not None:
            raise ValueError(f"Prompt {prompt.id} already exists")
        self._prompts.append(prompt)
        self._save()
        self.events.emit(PromptEvent(events.PROMPT_CREATED, prompt.id))
        logger.info("Added prompt %s (%s)", prompt.id, prompt.title)
        return prompt

    def update(self, prompt: Prompt) -> Prompt | None:
        """Replace the stored prompt with the same id. Unknown id → None.

        Raises ValueError if the title was edited to blank.
        """
        title = prompt.title.strip()
        if not title:
            raise ValueError("Prompt title must not be empty")
        for i, existing in enumerate(self._prompts):
            if existing.id == prompt.id:
                break
        else:
            logger.warning("Prompt %s not found for update", prompt.id)
            return None
        prompt.title = title
        prompt.touch()
        self._prompts[i] = prompt
        self._save()
        self.events.emit(PromptEvent(events.PROMPT_UPDATED, prompt.id))
        return prompt

    def delete(self, prompt_id: str) -> bool:
        prompt = self.get(prompt_id)
        if prompt is None:
            logger.warning("Prompt %s not found for deletion", prompt_id)
            return False
        self._prompts.remove(prompt)
        self._save()
        self.events.emit(PromptEvent(events.PROMPT_DELETED, prompt_id))
        logger.info("Deleted prompt %s (%s)", prompt_id, prompt.title)
        return True

    def toggle_favorite(self, prompt_id: str) -> Prompt | None:
        prompt = self.get(prompt_id)
        if prompt is None:
            logger.warning("Prompt %s not found for favorite toggle", prompt_id)
            return None
        prompt.is_favorite = not prompt.is_favorite
        prompt.touch()
        self._save()
        self.events.emit(PromptEvent(events.FAVORITE_TOGGLED, prompt_id, prompt.is_favorite))
        return prompt

    def convert_to_prompt(self, idea: Prompt) -> Prompt:
        """Wrap an idea in the instructional template. The result is not saved."""
        return Prompt(
            title=f"Prompt: {idea.title}",
            body=IDEA_PROMPT_TEMPLATE.format(body=idea.body),
            category=PromptCategory.GENERAL,
            tags=[*idea.tags, CONVERTED_TAG],
        )

    def convert_and_add(self, idea: Prompt) -> Prompt:
        return self.add_prompt(self.convert_to_prompt(idea))

    def quick_capture(self, text: str, *, as_idea: bool = False) -> Prompt | None:
        """Save free text as a prompt (or idea) titled by its first line."""
        text = text.strip()
        if not text:
            return None
        if as_idea:
            category, tags = PromptCategory.IDEAS, [QUICK_ADD_TAG, IDEA_TAG]
        else:
            category, tags = PromptCategory.GENERAL, [QUICK_ADD_TAG]
        return self.add(generate_title(text), text, category, tags)

    def render(self, prompt_id: str, values: Mapping[str, str]) -> str | None:
        """Body of the prompt with placeholders filled in."""
        prompt = self.get(prompt_id)
        if prompt is None:
            return None
        self.events.emit(PromptEvent(events.ACTIVITY, prompt_id))
        return replace_placeholders(prompt.body, values)

    def _save(self) -> None:
        report = self.store.save(self._prompts)
        self.last_save_report = report
        if not report.ok:
            logger.warning("Save finished with %d failures", len(report.failures))
            self.events.emit(PromptEvent(events.SAVE_FAILED, payload=report))

    # ── Filtering ─────────────────────────────────────────────

    def set_search_text(self, text: str) -> bool:
        if text == self.search_text:
            return False
        self.search_text = text
        self._filter_changed()
        return True

    def set_category_filter(self, category: PromptCategory | None) -> bool:
        if category == self.category_filter:
            return False
        self.category_filter = category
        self._filter_changed()
        return True

    def set_favorites_only(self, enabled: bool) -> bool:
        if enabled == self.favorites_only:
            return False
        self.favorites_only = enabled
        self._filter_changed()
        return True

    def _filter_changed(self) -> None:
        self.events.emit(PromptEvent(events.FILTER_CHANGED))

    def filtered(self) -> list[Prompt]:
        """``list_prompts()`` narrowed by the current filter state."""
        query = self.search_text.strip().casefold()
        result = []
        for prompt in self.list_prompts():
            if self.favorites_only and not prompt.is_favorite:
                continue
            if self.category_filter is not None and prompt.category != self.category_filter:
                continue
            if query and not (
                query in prompt.title.casefold()
                or query in prompt.body.casefold()
                or any(query in tag.casefold() for tag in prompt.tags)
            ):
                continue
            result.append(prompt)
        return result
