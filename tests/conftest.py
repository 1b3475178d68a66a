"""
Shared pytest fixtures for foldertag tests.

Provides a temporary vault on disk and an in-memory document store so
engine tests don't need files.
"""

import copy
from pathlib import Path
from typing import Any, Optional

import pytest
import yaml

from foldertag.api import FolderTagger
from foldertag.config import FolderTagConfig
from foldertag.types import directory_of, normalize_path
from foldertag.vault import MalformedFrontmatter


class InMemoryStore:
    """
    Dict-backed document store for engine tests.

    Frontmatter values that are not dicts behave like a malformed block.
    Paths listed in fail_on raise OSError on access.
    """

    def __init__(self, docs: Optional[dict[str, Any]] = None):
        self.docs: dict[str, Any] = {normalize_path(k): v for k, v in (docs or {}).items()}
        self.writes: list[str] = []
        self.fail_on: set[str] = set()

    def list_documents(self) -> list[str]:
        return sorted(self.docs)

    def read_frontmatter(self, path: str) -> dict[str, Any]:
        data = self.docs[normalize_path(path)]
        if not isinstance(data, dict):
            raise MalformedFrontmatter("not a mapping")
        return data

    def process_frontmatter(self, path: str, fn) -> bool:
        path = normalize_path(path)
        if path in self.fail_on:
            raise OSError(f"disk error reading {path}")
        data = self.read_frontmatter(path)
        working = copy.deepcopy(data)
        fn(working)
        if working == data:
            return False
        self.docs[path] = working
        self.writes.append(path)
        return True

    def directory_exists(self, dir_path: str) -> bool:
        dir_path = normalize_path(dir_path)
        return any(
            directory_of(p) == dir_path or directory_of(p).startswith(dir_path + "/")
            for p in self.docs
        )

    def rename(self, old_path: str, new_path: str) -> None:
        self.docs[normalize_path(new_path)] = self.docs.pop(normalize_path(old_path))

    def tags(self, path: str):
        return self.docs[normalize_path(path)].get("tags")


def _write_note(vault: Path, rel: str, frontmatter: Optional[dict] = None, body: str = "Body text.\n") -> Path:
    path = vault / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    text = body
    if frontmatter is not None:
        text = "---\n" + yaml.safe_dump(frontmatter, sort_keys=False) + "---\n" + body
    path.write_text(text, encoding="utf-8")
    return path


def _read_note_frontmatter(vault: Path, rel: str) -> dict:
    text = (vault / rel).read_text(encoding="utf-8")
    if not text.startswith("---"):
        return {}
    return yaml.safe_load(text.split("---", 2)[1]) or {}


@pytest.fixture
def make_store():
    """Factory for an InMemoryStore holding the given documents."""
    def make(docs: Optional[dict[str, Any]] = None) -> InMemoryStore:
        return InMemoryStore(docs)
    return make


@pytest.fixture
def config(tmp_path):
    """A default config saved under a temporary directory."""
    return FolderTagConfig(path=tmp_path / "config")


@pytest.fixture
def vault(tmp_path):
    """An empty vault directory."""
    root = tmp_path / "vault"
    root.mkdir()
    return root


@pytest.fixture
def tagger(vault):
    """A FolderTagger over the temporary vault."""
    return FolderTagger(vault)


@pytest.fixture
def write_note(vault):
    """Create a note in the vault: write_note(rel, frontmatter=None, body=...)."""
    def write(rel: str, frontmatter: Optional[dict] = None, body: str = "Body text.\n") -> Path:
        return _write_note(vault, rel, frontmatter, body)
    return write


@pytest.fixture
def read_note_frontmatter(vault):
    """Parse a vault note's frontmatter straight from disk."""
    def read(rel: str) -> dict:
        return _read_note_frontmatter(vault, rel)
    return read
