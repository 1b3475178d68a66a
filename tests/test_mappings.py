"""Tests for DirectoryMappingStore."""

import pytest

from foldertag.mappings import DirectoryMappingStore, common_rename_root
from foldertag.types import DirectoryMapping


@pytest.fixture
def store():
    return DirectoryMappingStore([
        DirectoryMapping("projects", ["work"]),
        DirectoryMapping("projects/php-aws-sdk", ["php", "aws"]),
        DirectoryMapping("", ["orphan"]),
        DirectoryMapping("archive", []),
    ])


class TestLookup:
    def test_exact(self, store):
        assert store.lookup("archive") == []
        assert store.lookup("projects") == ["work"]

    def test_ancestors_union_in_store_order(self, store):
        assert store.lookup("projects/php-aws-sdk/src") == ["work", "php", "aws"]

    def test_prefix_is_not_ancestor(self, store):
        """'projects-old' must not match the 'projects' mapping."""
        assert store.lookup("projects-old") == []

    def test_empty_directory_mapping_ignored(self, store):
        assert "orphan" not in store.lookup("")
        assert "orphan" not in store.lookup("anything")

    def test_unrelated(self, store):
        assert store.lookup("misc") == []

    def test_normalizes_argument(self, store):
        assert store.lookup("/projects/") == ["work"]


class TestQueries:
    def test_has_exact_mapping(self, store):
        assert store.has_exact_mapping("projects")
        assert not store.has_exact_mapping("projects/other")
        assert not store.has_exact_mapping("")

    def test_nearest_ancestor_is_strict(self, store):
        assert store.find_nearest_ancestor_mapping("projects") is None

    def test_nearest_ancestor_first_in_store_order(self, store):
        found = store.find_nearest_ancestor_mapping("projects/php-aws-sdk/src")
        assert found.directory == "projects"

    def test_nearest_ancestor_needs_tags(self, store):
        assert store.find_nearest_ancestor_mapping("archive/2020") is None

    def test_mappings_under(self, store):
        dirs = [m.directory for m in store.mappings_under("projects")]
        assert dirs == ["projects", "projects/php-aws-sdk"]


class TestRenamePropagate:
    def test_exact_and_descendant(self):
        store = DirectoryMappingStore([
            DirectoryMapping("a/old", ["t"]),
            DirectoryMapping("a/old/child", ["c"]),
            DirectoryMapping("a/older", ["o"]),
        ])
        assert store.rename_propagate("a/old", "a/new") is True
        assert store[0] == DirectoryMapping("a/new", ["t"])
        assert store[1].directory == "a/new/child"
        assert store[2].directory == "a/older"

    def test_same_directory_is_noop(self):
        store = DirectoryMappingStore([DirectoryMapping("a", ["t"])])
        assert store.rename_propagate("a", "a") is False
        assert store[0].directory == "a"

    def test_reports_no_change(self):
        store = DirectoryMappingStore([DirectoryMapping("a", ["t"])])
        assert store.rename_propagate("b", "c") is False

    def test_move_to_other_parent(self):
        store = DirectoryMappingStore([DirectoryMapping("x/y/z", ["t"])])
        store.rename_propagate("x/y", "q")
        assert store[0].directory == "q/z"


class TestInheritance:
    def test_inherits_ancestor_tags(self):
        store = DirectoryMappingStore([DirectoryMapping("clients", ["client", "billable"])])
        created = store.inherit_for_new_directory("clients/acme")
        assert created == DirectoryMapping("clients/acme", ["client", "billable"])
        assert len(store) == 2

    def test_copy_is_independent(self):
        store = DirectoryMappingStore([DirectoryMapping("clients", ["client"])])
        created = store.inherit_for_new_directory("clients/acme")
        created.tags.append("acme")
        assert store[0].tags == ["client"]

    def test_idempotent(self):
        store = DirectoryMappingStore([DirectoryMapping("clients", ["client"])])
        store.inherit_for_new_directory("clients/acme")
        assert store.inherit_for_new_directory("clients/acme") is None
        assert len(store) == 2

    def test_no_ancestor(self):
        store = DirectoryMappingStore([DirectoryMapping("clients", ["client"])])
        assert store.inherit_for_new_directory("other") is None
        assert store.inherit_for_new_directory("") is None
        assert len(store) == 1


class TestEditing:
    def test_add_same_directory_replaces(self):
        store = DirectoryMappingStore()
        store.add("a", ["one"])
        store.add("/a/", ["two"])
        assert len(store) == 1
        assert store[0].tags == ["two"]

    def test_tags_deduplicated_and_trimmed(self):
        store = DirectoryMappingStore()
        m = store.add("a", [" x", "y", "x", ""])
        assert m.tags == ["x", "y"]

    def test_update_by_index(self):
        store = DirectoryMappingStore([DirectoryMapping("a", ["t"])])
        store.update(0, directory="b", tags=["u"])
        assert store[0] == DirectoryMapping("b", ["u"])

    def test_update_onto_existing_directory_last_write_wins(self):
        store = DirectoryMappingStore([DirectoryMapping("a", ["1"]), DirectoryMapping("b", ["2"])])
        store.update(1, directory="a")
        assert store.to_list() == [{"directory": "a", "tags": ["2"]}]

    def test_update_out_of_range(self):
        with pytest.raises(IndexError):
            DirectoryMappingStore().update(0, tags=["x"])

    def test_remove(self):
        store = DirectoryMappingStore([DirectoryMapping("a", ["1"]), DirectoryMapping("b", ["2"])])
        removed = store.remove(0)
        assert removed.directory == "a"
        assert [m.directory for m in store] == ["b"]

    def test_round_trip_list(self):
        data = [{"directory": "a", "tags": ["x"]}, {"directory": "b/c", "tags": "p, q"}]
        store = DirectoryMappingStore.from_list(data)
        assert store.to_list() == [
            {"directory": "a", "tags": ["x"]},
            {"directory": "b/c", "tags": ["p", "q"]},
        ]


class TestCommonRenameRoot:
    def test_folder_rename(self):
        assert common_rename_root("a/old/x/n.md", "a/new/x/n.md") == ("a/old", "a/new")

    def test_file_rename(self):
        assert common_rename_root("a/b/n.md", "a/b/m.md") == ("", "")

    def test_move_to_root(self):
        assert common_rename_root("a/n.md", "n.md") == ("a", "")
