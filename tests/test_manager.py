"""Tests for the PromptManager collaborator interface."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from promptex import events
from promptex.events import EventChannel, PromptEvent
from promptex.manager import CONVERTED_TAG, PromptManager, generate_title
from promptex.models import Prompt, PromptCategory
from promptex.storage import LoadSource, PromptStore

OLD = datetime(2020, 1, 1, tzinfo=timezone.utc)


def _store(root: Path) -> PromptStore:
    return PromptStore(root / "data" / "prompts", root / "resources", root / "data" / "metadata.json")


@pytest.fixture
def store(tmp_path: Path) -> PromptStore:
    s = _store(tmp_path)
    s.save([])  # empty index: start without sample data
    return s


@pytest.fixture
def received() -> list[PromptEvent]:
    return []


@pytest.fixture
def manager(store: PromptStore, received: list[PromptEvent]) -> PromptManager:
    channel = EventChannel()
    channel.subscribe(received.append)
    return PromptManager(store, channel)


def _reloaded(tmp_path: Path) -> PromptManager:
    return PromptManager(_store(tmp_path))


class TestLoad:
    def test_fresh_install_is_seeded(self, tmp_path: Path):
        manager = PromptManager(_store(tmp_path))
        assert manager.store.load_source is LoadSource.SEED
        assert len(manager.list_prompts()) == 3

    def test_starts_empty_from_empty_index(self, manager: PromptManager):
        assert manager.list_prompts() == []

    def test_autoload_off(self, store: PromptStore):
        manager = PromptManager(store, autoload=False)
        assert manager.list_prompts() == []
        assert store.load_source is None


class TestAdd:
    def test_persisted(self, manager: PromptManager, tmp_path: Path):
        prompt = manager.add("Hello", "Hi {{name}}", PromptCategory.WRITING, ["greet", "greet"])
        assert prompt.tags == ["greet"]
        assert manager.store.document_path(prompt).exists()
        assert _reloaded(tmp_path).get(prompt.id) == prompt

    def test_blank_title_rejected(self, manager: PromptManager):
        with pytest.raises(ValueError):
            manager.add("   ", "body")
        assert manager.list_prompts() == []

    def test_duplicate_id_rejected(self, manager: PromptManager):
        prompt = manager.add("Once")
        with pytest.raises(ValueError):
            manager.add_prompt(prompt)

    def test_event(self, manager: PromptManager, received: list[PromptEvent]):
        prompt = manager.add("Hello")
        assert received[-1] == PromptEvent(events.PROMPT_CREATED, prompt.id)


class TestList:
    def test_most_recent_first(self, manager: PromptManager):
        for title, age in [("old", 0), ("new", 2), ("mid", 1)]:
            stamp = OLD + timedelta(days=age)
            manager.add_prompt(Prompt(title=title, created_at=stamp, modified_at=stamp))
        assert [p.title for p in manager.list_prompts()] == ["new", "mid", "old"]

    def test_find_by_prefix(self, manager: PromptManager):
        prompt = manager.add("Hello")
        assert manager.find(prompt.id[:8]) == [prompt]
        assert manager.find(prompt.id[:8].upper()) == [prompt]
        assert manager.find("zzzz") == []


class TestUpdate:
    def test_refreshes_modified(self, manager: PromptManager):
        prompt = manager.add_prompt(Prompt(title="T", body="b", created_at=OLD))
        prompt.body = "changed"
        updated = manager.update(prompt)
        assert updated.modified_at > OLD
        assert updated.created_at == OLD

    def test_rename_moves_document(self, manager: PromptManager, tmp_path: Path):
        prompt = manager.add("Before", "b")
        old_path = manager.store.document_path(prompt)
        prompt.title = "After"
        manager.update(prompt)
        assert not old_path.exists()
        assert manager.store.document_path(prompt).exists()
        assert _reloaded(tmp_path).get(prompt.id).title == "After"

    def test_padded_title_trimmed(self, manager: PromptManager, tmp_path: Path):
        prompt = manager.add("Before", "b")
        prompt.title = "  After  "
        manager.update(prompt)
        assert prompt.title == "After"
        assert _reloaded(tmp_path).get(prompt.id).title == "After"

    def test_blank_title_rejected(self, manager: PromptManager):
        prompt = manager.add("Before", "b")
        edited = Prompt(title="Before", id=prompt.id, body="b")
        edited.title = "   "
        with pytest.raises(ValueError):
            manager.update(edited)
        assert manager.get(prompt.id).title == "Before"

    def test_unknown_id(self, manager: PromptManager):
        assert manager.update(Prompt(title="ghost")) is None


class TestDelete:
    def test_removes_document_and_entry(self, manager: PromptManager, tmp_path: Path):
        keep = manager.add("Keep")
        gone = manager.add("Gone")
        path = manager.store.document_path(gone)
        assert manager.delete(gone.id)
        assert not path.exists()
        reloaded = _reloaded(tmp_path)
        assert reloaded.get(gone.id) is None
        assert reloaded.get(keep.id) is not None

    def test_unknown_id(self, manager: PromptManager):
        assert manager.delete("nope") is False

    def test_delete_everything_does_not_reseed(self, manager: PromptManager, tmp_path: Path):
        prompt = manager.add("Only")
        manager.delete(prompt.id)
        assert _reloaded(tmp_path).list_prompts() == []


class TestToggleFavorite:
    def test_flips_and_persists(self, manager: PromptManager, tmp_path: Path, received):
        prompt = manager.add_prompt(Prompt(title="Fav", created_at=OLD))
        manager.toggle_favorite(prompt.id)
        assert prompt.is_favorite is True
        assert prompt.modified_at > OLD
        assert _reloaded(tmp_path).get(prompt.id).is_favorite is True
        assert received[-1].kind == events.FAVORITE_TOGGLED
        manager.toggle_favorite(prompt.id)
        assert _reloaded(tmp_path).get(prompt.id).is_favorite is False

    def test_unknown_id(self, manager: PromptManager):
        assert manager.toggle_favorite("nope") is None


class TestConvert:
    def test_template(self, manager: PromptManager):
        idea = manager.quick_capture("Voice notes app", as_idea=True)
        prompt = manager.convert_to_prompt(idea)
        assert prompt.title == "Prompt: Voice notes app"
        assert prompt.body.startswith("Please help me with the following idea/task:\n\nVoice notes app\n\n")
        assert prompt.body.endswith("implementation steps?")
        assert prompt.category is PromptCategory.GENERAL
        assert prompt.tags == ["quick-add", "idea", CONVERTED_TAG]
        assert prompt.id != idea.id
        assert manager.get(prompt.id) is None

    def test_convert_and_add(self, manager: PromptManager):
        idea = manager.add("Idea", "x", PromptCategory.IDEAS)
        prompt = manager.convert_and_add(idea)
        assert manager.get(prompt.id) is prompt
        assert manager.get(idea.id) is idea


class TestQuickCapture:
    def test_prompt(self, manager: PromptManager):
        prompt = manager.quick_capture("  Summarize this\nsecond line  ")
        assert prompt.title == "Summarize this"
        assert prompt.body == "Summarize this\nsecond line"
        assert prompt.category is PromptCategory.GENERAL
        assert prompt.tags == ["quick-add"]

    def test_idea(self, manager: PromptManager):
        prompt = manager.quick_capture("An idea", as_idea=True)
        assert prompt.category is PromptCategory.IDEAS
        assert prompt.tags == ["quick-add", "idea"]

    def test_blank(self, manager: PromptManager):
        assert manager.quick_capture("  \n ") is None
        assert manager.list_prompts() == []

    def test_generate_title_truncates(self):
        assert generate_title("x" * 80) == "x" * 50


class TestRender:
    def test_fills_placeholders(self, manager: PromptManager, received):
        prompt = manager.add("Greet", "Hi {{name}}, {{name}}! {{other}}")
        assert manager.render(prompt.id, {"name": "Sam"}) == "Hi Sam, Sam! "
        assert received[-1].kind == events.ACTIVITY

    def test_unknown_id(self, manager: PromptManager):
        assert manager.render("nope", {}) is None


class TestFilters:
    @pytest.fixture
    def populated(self, manager: PromptManager) -> PromptManager:
        manager.add("Code Review", "Review code", PromptCategory.CODING, ["dev"])
        manager.add("Story", "Write a story", PromptCategory.CREATIVE, ["fiction"], is_favorite=True)
        manager.add("Notes", "meeting notes", PromptCategory.GENERAL, ["DEV-ops"])
        return manager

    def test_setters_report_change(self, populated: PromptManager, received):
        received.clear()
        assert populated.set_search_text("dev") is True
        assert populated.set_search_text("dev") is False
        assert populated.set_category_filter(PromptCategory.CODING) is True
        assert populated.set_category_filter(PromptCategory.CODING) is False
        assert populated.set_favorites_only(True) is True
        assert populated.set_favorites_only(True) is False
        assert [e.kind for e in received] == [events.FILTER_CHANGED] * 3

    def test_search_title_body_and_tags(self, populated: PromptManager):
        populated.set_search_text("DEV")
        assert {p.title for p in populated.filtered()} == {"Code Review", "Notes"}
        populated.set_search_text("story")
        assert [p.title for p in populated.filtered()] == ["Story"]

    def test_category_and_favorites(self, populated: PromptManager):
        populated.set_category_filter(PromptCategory.CODING)
        assert [p.title for p in populated.filtered()] == ["Code Review"]
        populated.set_category_filter(None)
        populated.set_favorites_only(True)
        assert [p.title for p in populated.filtered()] == ["Story"]


class TestSaveFailure:
    def test_reported_not_raised(self, manager: PromptManager, received, tmp_path: Path):
        blocker = tmp_path / "blocked"
        blocker.write_text("file", encoding="utf-8")
        manager.store.resources_dir = blocker / "res"
        prompt = manager.add("Still here", "b")
        assert manager.get(prompt.id) is prompt
        assert not manager.last_save_report.ok
        failed = [e for e in received if e.kind == events.SAVE_FAILED]
        assert failed and failed[0].payload is manager.last_save_report
        assert manager.store.document_path(prompt).exists()


class TestEventChannel:
    def test_unsubscribe(self):
        channel = EventChannel()
        seen: list[PromptEvent] = []
        unsubscribe = channel.subscribe(seen.append)
        channel.emit(PromptEvent(events.ACTIVITY))
        unsubscribe()
        unsubscribe()
        channel.emit(PromptEvent(events.ACTIVITY))
        assert len(seen) == 1

    def test_failing_listener_does_not_block_others(self, caplog):
        channel = EventChannel()
        seen: list[PromptEvent] = []

        def boom(event: PromptEvent) -> None:
            raise RuntimeError("boom")

        channel.subscribe(boom)
        channel.subscribe(seen.append)
        channel.emit(PromptEvent(events.PROMPT_DELETED, "x"))
        assert len(seen) == 1
        assert "Listener failed" in caplog.text
