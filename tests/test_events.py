"""Tests for the create/rename event queue."""

import pytest

from foldertag.events import FAILED, IGNORED, EventQueue
from foldertag.reconcile import MODIFIED, UNCHANGED, ReconciliationEngine
from foldertag.types import EVENT_RENAME, FormattingPolicy, VaultEvent


@pytest.fixture
def queue_for(config, make_store):
    def make(docs, depth="1", mappings=()):
        config.settings.policy = FormattingPolicy(depth=depth)
        for directory, tags in mappings:
            config.mappings.add(directory, tags)
        store = make_store(docs)
        engine = ReconciliationEngine(store, config)
        return EventQueue(engine, store, config), store
    return make


class TestCreate:
    def test_create_tags_document(self, queue_for):
        queue, store = queue_for({"a/b/n.md": {}}, mappings=[("a", ["alpha"])])
        queue.created("a/b/n.md")
        [outcome] = queue.drain()
        assert outcome.outcome == MODIFIED
        assert store.tags("a/b/n.md") == ["b", "alpha"]

    def test_new_directory_inherits_once(self, queue_for, config):
        queue, store = queue_for(
            {"proj/new/n1.md": {}, "proj/new/n2.md": {}}, mappings=[("proj", ["work"])],
        )
        queue.created("proj/new/n1.md")
        queue.created("proj/new/n2.md")
        queue.drain()
        assert [m.directory for m in config.mappings] == ["proj", "proj/new"]
        assert config.mappings[1].tags == ["work"]
        assert store.tags("proj/new/n2.md") == ["new", "work"]

    def test_inherited_mapping_is_independent(self, queue_for, config):
        queue, _ = queue_for({"proj/new/n.md": {}}, mappings=[("proj", ["work"])])
        queue.created("proj/new/n.md")
        queue.drain()
        config.mappings[0].tags.append("later")
        assert config.mappings[1].tags == ["work"]

    def test_existing_mapping_not_replaced(self, queue_for, config):
        queue, _ = queue_for(
            {"proj/new/n.md": {}}, mappings=[("proj", ["work"]), ("proj/new", ["own"])],
        )
        queue.created("proj/new/n.md")
        queue.drain()
        assert config.mappings.to_list() == [
            {"directory": "proj", "tags": ["work"]},
            {"directory": "proj/new", "tags": ["own"]},
        ]

    def test_non_document_ignored(self, queue_for):
        queue, store = queue_for({})
        queue.created("a/picture.png")
        [outcome] = queue.drain()
        assert outcome.outcome == IGNORED
        assert store.writes == []


class TestRename:
    def test_move_between_folders(self, queue_for):
        queue, store = queue_for({"a/c/note.md": {"tags": ["b", "x"]}, "a/b/other.md": {}})
        queue.renamed("a/b/note.md", "a/c/note.md")
        [outcome] = queue.drain()
        assert outcome.outcome == MODIFIED
        assert store.tags("a/c/note.md") == ["x", "c"]

    def test_same_path_unchanged(self, queue_for):
        queue, store = queue_for({"a/n.md": {}})
        queue.renamed("a/n.md", "a/n.md")
        assert queue.drain()[0].outcome == UNCHANGED
        assert store.writes == []

    def test_folder_rename_updates_mappings(self, queue_for, config):
        queue, store = queue_for(
            {"work/new/x/n.md": {"tags": ["x", "t"]}},
            mappings=[("work/old", ["t"]), ("work/old/x", ["deep"]), ("other", ["o"])],
        )
        queue.renamed("work/old/x/n.md", "work/new/x/n.md")
        queue.drain()
        assert [m.directory for m in config.mappings] == ["work/new", "work/new/x", "other"]
        assert store.tags("work/new/x/n.md") == ["x", "t", "deep"]

    def test_note_move_between_existing_folders_keeps_mappings(self, queue_for, config):
        queue, _ = queue_for(
            {"b/n.md": {}, "a/still-here.md": {}}, mappings=[("a", ["alpha"])],
        )
        queue.renamed("a/n.md", "b/n.md")
        queue.drain()
        assert config.mappings.to_list() == [{"directory": "a", "tags": ["alpha"]}]

    def test_file_rename_in_place(self, queue_for, config):
        queue, store = queue_for({"a/new.md": {"tags": ["a"]}}, mappings=[("a", ["alpha"])])
        queue.renamed("a/old.md", "a/new.md")
        queue.drain()
        assert config.mappings.to_list() == [{"directory": "a", "tags": ["alpha"]}]
        assert store.tags("a/new.md") == ["a", "alpha"]


class TestQueue:
    def test_failure_does_not_stop_queue(self, queue_for):
        queue, store = queue_for({"a/n1.md": {}, "a/n2.md": {}})
        store.fail_on.add("a/n1.md")
        queue.created("a/n1.md")
        queue.created("a/n2.md")
        outcomes = queue.drain()
        assert [o.outcome for o in outcomes] == [FAILED, MODIFIED]
        assert "disk error" in outcomes[0].error
        assert len(queue) == 0

    def test_fifo_order(self, queue_for):
        queue, store = queue_for({"a/n.md": {}, "b/m.md": {}})
        queue.created("b/m.md")
        queue.created("a/n.md")
        assert [o.event.path for o in queue.drain()] == ["b/m.md", "a/n.md"]

    def test_rejects_unknown_kind(self, queue_for):
        queue, _ = queue_for({})
        with pytest.raises(ValueError):
            queue.put(VaultEvent("delete", "a/n.md"))

    def test_rename_needs_old_path(self, queue_for):
        queue, _ = queue_for({})
        with pytest.raises(ValueError):
            queue.put(VaultEvent(EVENT_RENAME, "a/n.md"))
