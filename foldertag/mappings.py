"""
Directory → tags overrides.

A DirectoryMappingStore is an ordered, in-memory table of DirectoryMapping
entries. Order matters: lookups union tags in store order and the nearest
ancestor search returns the first hit. Mapping identity is positional, so
edits and removals go by index, mirroring the settings list the user sees.

The store does not persist itself; FolderTagger saves the owning config
after every mutation.
"""

import logging
from typing import Iterable, Iterator, Optional

from .types import (
    SEPARATOR,
    DirectoryMapping,
    dedupe,
    directory_segments,
    is_within,
    normalize_path,
)

logger = logging.getLogger(__name__)


class DirectoryMappingStore:
    """Ordered table of directory mappings with ancestor-aware lookup."""

    def __init__(self, mappings: Optional[Iterable[DirectoryMapping]] = None):
        self._mappings: list[DirectoryMapping] = []
        for mapping in mappings or ():
            self._append(mapping)

    # -------------------------------------------------------------------------
    # Container protocol
    # -------------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._mappings)

    def __iter__(self) -> Iterator[DirectoryMapping]:
        return iter(self._mappings)

    def __getitem__(self, index: int) -> DirectoryMapping:
        return self._mappings[index]

    def __repr__(self) -> str:
        return f"DirectoryMappingStore({self._mappings!r})"

    def to_list(self) -> list[dict]:
        """Plain data for the config file."""
        return [m.to_dict() for m in self._mappings]

    @classmethod
    def from_list(cls, data: Iterable[dict]) -> "DirectoryMappingStore":
        return cls(DirectoryMapping.from_dict(d) for d in data)

    def copy(self) -> "DirectoryMappingStore":
        return DirectoryMappingStore(
            DirectoryMapping(m.directory, list(m.tags)) for m in self._mappings
        )

    def _append(self, mapping: DirectoryMapping) -> DirectoryMapping:
        # A second entry for the same directory replaces the first (last
        # write wins); unset directories may repeat.
        if mapping.directory:
            for i, existing in enumerate(self._mappings):
                if existing.directory == mapping.directory:
                    self._mappings[i] = mapping
                    return mapping
        self._mappings.append(mapping)
        return mapping

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def lookup(self, dir_path: str) -> list[str]:
        """
        Tags from every mapping at dir_path or above it.

        All matching ancestors contribute, in store order. Mappings with an
        empty directory are ignored.
        """
        dir_path = normalize_path(dir_path)
        tags: list[str] = []
        for mapping in self._mappings:
            if is_within(dir_path, mapping.directory):
                tags.extend(mapping.tags)
        return tags

    def has_exact_mapping(self, dir_path: str) -> bool:
        dir_path = normalize_path(dir_path)
        if not dir_path:
            return False
        return any(m.directory == dir_path for m in self._mappings)

    def find_nearest_ancestor_mapping(self, dir_path: str) -> Optional[DirectoryMapping]:
        """First mapping, in store order, strictly above dir_path with tags.

        An exact match is never returned.
        """
        dir_path = normalize_path(dir_path)
        for mapping in self._mappings:
            if not mapping.tags or mapping.directory == dir_path:
                continue
            if is_within(dir_path, mapping.directory):
                return mapping
        return None

    def mappings_under(self, dir_path: str) -> list[DirectoryMapping]:
        """Mappings whose directory is dir_path or a descendant of it."""
        dir_path = normalize_path(dir_path)
        return [m for m in self._mappings if m.directory and is_within(m.directory, dir_path)]

    def index_of(self, dir_path: str) -> Optional[int]:
        dir_path = normalize_path(dir_path)
        for i, mapping in enumerate(self._mappings):
            if mapping.directory == dir_path:
                return i
        return None

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add(self, directory: str, tags: Iterable[str] = ()) -> DirectoryMapping:
        """Add a mapping (or replace the tags of an existing one)."""
        return self._append(DirectoryMapping(directory=directory, tags=list(tags)))

    def update(
        self,
        index: int,
        *,
        directory: Optional[str] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> DirectoryMapping:
        """
        Edit the mapping at index in place.

        Raises:
            IndexError: If index is out of range
        """
        mapping = self._mappings[self._check_index(index)]
        if directory is not None:
            mapping.directory = normalize_path(directory)
        if tags is not None:
            mapping.tags = dedupe(t.strip() for t in tags if t.strip())
        if directory is not None and mapping.directory:
            # Editing into an existing directory: last write wins
            for i, other in enumerate(self._mappings):
                if i != index and other.directory == mapping.directory:
                    del self._mappings[i]
                    break
        return mapping

    def remove(self, index: int) -> DirectoryMapping:
        """
        Remove and return the mapping at index.

        Raises:
            IndexError: If index is out of range
        """
        return self._mappings.pop(self._check_index(index))

    def clear(self) -> None:
        self._mappings.clear()

    def _check_index(self, index: int) -> int:
        if not 0 <= index < len(self._mappings):
            raise IndexError(f"No directory mapping at index {index}")
        return index

    def rename_propagate(self, old_dir: str, new_dir: str) -> bool:
        """
        Follow a directory rename.

        Every mapping at old_dir or below it has the old_dir prefix replaced
        with new_dir; the rest of the path is kept.

        Returns:
            True if any mapping changed
        """
        old_dir = normalize_path(old_dir)
        new_dir = normalize_path(new_dir)
        if not old_dir or old_dir == new_dir:
            return False

        changed = False
        for mapping in self._mappings:
            if not is_within(mapping.directory, old_dir):
                continue
            remainder = mapping.directory[len(old_dir):]
            renamed = normalize_path(new_dir + remainder) if remainder else new_dir
            logger.info("Mapping %s -> %s", mapping.directory, renamed)
            mapping.directory = renamed
            changed = True
        return changed

    def inherit_for_new_directory(self, dir_path: str) -> Optional[DirectoryMapping]:
        """
        Give a newly seen directory its own copy of its ancestor's tags.

        Does nothing if dir_path already has an exact mapping or no ancestor
        mapping carries tags, so repeated calls are safe.

        Returns:
            The created mapping, or None
        """
        dir_path = normalize_path(dir_path)
        if not dir_path or self.has_exact_mapping(dir_path):
            return None
        ancestor = self.find_nearest_ancestor_mapping(dir_path)
        if ancestor is None:
            return None
        logger.info("Inheriting tags %s from %s for %s", ancestor.tags, ancestor.directory, dir_path)
        return self._append(DirectoryMapping(directory=dir_path, tags=list(ancestor.tags)))


def common_rename_root(old_path: str, new_path: str) -> tuple[str, str]:
    """
    Reduce a rename to the directories that actually changed.

    Only directory segments are compared. Trailing folders shared by both
    paths (those below the renamed one) are stripped. For
    "a/old/x/n.md" -> "a/new/x/n.md" this returns ("a/old", "a/new");
    a plain file rename returns ("", "").
    """
    old_parts = directory_segments(normalize_path(old_path))
    new_parts = directory_segments(normalize_path(new_path))
    while old_parts and new_parts and old_parts[-1] == new_parts[-1]:
        old_parts.pop()
        new_parts.pop()
    return SEPARATOR.join(old_parts), SEPARATOR.join(new_parts)
