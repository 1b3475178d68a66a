"""Tests for folder tag derivation and path helpers."""

import pytest

from foldertag.derive import derive_folder_tags
from foldertag.types import (
    FOLDER_DEPTHS,
    FormattingPolicy,
    directory_of,
    directory_segments,
    normalize_path,
)


def policy(depth, prefix="", suffix=""):
    return FormattingPolicy(depth=depth, prefix=prefix, suffix=suffix)


# ---------------------------------------------------------------------------
# normalize_path
# ---------------------------------------------------------------------------


class TestNormalizePath:
    def test_plain(self):
        assert normalize_path("a/b/note.md") == "a/b/note.md"

    def test_strips_separators(self):
        assert normalize_path("/a/b/") == "a/b"

    def test_collapses_runs(self):
        assert normalize_path("a//b///note.md") == "a/b/note.md"

    def test_backslashes(self):
        assert normalize_path("a\\b\\note.md") == "a/b/note.md"

    def test_dot_segments_dropped(self):
        assert normalize_path("./a/./note.md") == "a/note.md"

    def test_non_breaking_space(self):
        assert normalize_path("my\u00a0notes/n.md") == "my notes/n.md"

    def test_root(self):
        assert normalize_path("") == ""
        assert normalize_path("/") == ""

    def test_directory_of(self):
        assert directory_of("a/b/note.md") == "a/b"
        assert directory_of("note.md") == ""
        assert directory_segments("a/b/note.md") == ["a", "b"]


# ---------------------------------------------------------------------------
# derive_folder_tags
# ---------------------------------------------------------------------------


class TestDeriveFolderTags:
    @pytest.mark.parametrize("depth", FOLDER_DEPTHS)
    def test_root_document_has_no_tags(self, depth):
        assert derive_folder_tags("note.md", policy(depth, "p-", "-s")) == []

    @pytest.mark.parametrize("depth", FOLDER_DEPTHS)
    def test_deterministic(self, depth):
        p = policy(depth)
        assert derive_folder_tags("a/b/c/n.md", p) == derive_folder_tags("a/b/c/n.md", p)

    def test_last1(self):
        assert derive_folder_tags("main/sub/leaf/note.md", policy("1")) == ["leaf"]

    def test_last2_split(self):
        assert derive_folder_tags("main/sub/leaf/note.md", policy("2split")) == ["leaf", "sub"]

    def test_last2_joined(self):
        assert derive_folder_tags("main/sub/leaf/note.md", policy("2single")) == ["sub/leaf"]

    def test_full_path(self):
        assert derive_folder_tags("main/sub/leaf/note.md", policy("full")) == ["main/sub/leaf"]

    def test_all_split_root_to_leaf(self):
        assert derive_folder_tags("main/sub/leaf/note.md", policy("allsplit")) == ["main", "sub", "leaf"]

    @pytest.mark.parametrize("depth", ["2split", "2single", "allsplit", "full"])
    def test_single_segment_matches_last1(self, depth):
        expected = derive_folder_tags("only/note.md", policy("1", "#", "!"))
        assert derive_folder_tags("only/note.md", policy(depth, "#", "!")) == expected

    def test_prefix_suffix_wrap_each_tag(self):
        tags = derive_folder_tags("a/b/n.md", policy("2split", "f-", "-x"))
        assert tags == ["f-b-x", "f-a-x"]

    def test_prefix_suffix_wrap_joined_once(self):
        tags = derive_folder_tags("a/b/n.md", policy("2single", "f-", "-x"))
        assert tags == ["f-a/b-x"]

    def test_unnormalized_input(self):
        assert derive_folder_tags("/a//b/n.md", policy("allsplit")) == ["a", "b"]

    def test_unknown_depth_rejected(self):
        with pytest.raises(ValueError, match="Unknown folder depth"):
            FormattingPolicy(depth="3")
