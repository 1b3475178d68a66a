"""
Public API for folder tagging.

FolderTagger ties a vault, its configuration and the tagging engine
together. The CLI is a thin layer over it.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional

from .bulk import BulkOperationDriver, BulkResult
from .config import (
    FolderTagConfig,
    get_config_dir,
    load_or_create_config,
    save_config,
    update_config,
)
from .events import EventOutcome, EventQueue
from .protocol import DocumentStoreProtocol
from .reconcile import ReconciliationEngine
from .resolver import TagSetResolver
from .types import DirectoryMapping, normalize_path
from .vault import VaultStore

logger = logging.getLogger(__name__)


class FolderTagger:
    """
    Folder-derived tags for a vault of notes.

    Settings changes are saved immediately but do not retag existing
    notes; call reapply_all() for that. Mapping edits can retag the notes
    they cover as part of the edit.

    Example:
        ft = FolderTagger("~/notes")
        ft.set_folder_depth("allsplit")
        ft.reapply_all()
    """

    def __init__(
        self,
        vault_path: Optional[str | Path] = None,
        *,
        config_dir: Optional[Path] = None,
        config: Optional[FolderTagConfig] = None,
        store: Optional[DocumentStoreProtocol] = None,
    ) -> None:
        """
        Open a vault.

        Args:
            vault_path: Root folder of the notes (required unless store is given)
            config_dir: Where foldertag.toml lives (default: <vault>/.foldertag)
            config: Pre-loaded config (skips filesystem config discovery)
            store: Injected document store (skips the filesystem vault)
        """
        if store is None:
            if vault_path is None:
                raise ValueError("vault_path is required when no store is given")
            store = VaultStore(Path(vault_path))
        self._store = store

        if config is None:
            if config_dir is None:
                if vault_path is None:
                    raise ValueError("config_dir is required when no vault_path is given")
                config_dir = get_config_dir(Path(vault_path).expanduser())
            config = load_or_create_config(Path(config_dir))
        self._config = config

        self._engine = ReconciliationEngine(self._store, self._config)
        self._bulk = BulkOperationDriver(self._engine, self._store, self._config)
        self._events = EventQueue(self._engine, self._store, self._config)

    @property
    def config(self) -> FolderTagConfig:
        return self._config

    @property
    def store(self) -> DocumentStoreProtocol:
        return self._store

    @property
    def engine(self) -> ReconciliationEngine:
        return self._engine

    @property
    def events(self) -> EventQueue:
        return self._events

    def _save(self) -> None:
        save_config(self._config)

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def resolver(self) -> TagSetResolver:
        return TagSetResolver(self._config.settings)

    def resolve(self, path: str) -> list[str]:
        return self.resolver().resolve(path)

    # -------------------------------------------------------------------------
    # Formatting settings
    # -------------------------------------------------------------------------

    def set_folder_depth(self, depth: str) -> None:
        """Raises ValueError for an unknown depth."""
        update_config(self._config, folder_depth=depth)

    def set_tag_prefix(self, prefix: str) -> None:
        update_config(self._config, tag_prefix=prefix)

    def set_tag_suffix(self, suffix: str) -> None:
        update_config(self._config, tag_suffix=suffix)

    # -------------------------------------------------------------------------
    # Directory mappings
    # -------------------------------------------------------------------------

    def list_mappings(self) -> list[DirectoryMapping]:
        return list(self._config.mappings)

    def add_mapping(
        self, directory: str, tags: Iterable[str], *, apply: bool = False,
    ) -> tuple[DirectoryMapping, Optional[BulkResult]]:
        """
        Add a directory mapping; optionally tag the notes it covers now.

        Returns:
            (mapping, result of the tagging pass or None)
        """
        self._config.remember_previous()
        mapping = self._config.mappings.add(directory, tags)
        self._save()
        logger.info("Mapping added: %s -> %s", mapping.directory, mapping.tags)
        result = self._bulk.apply_tags_for_mapping(mapping) if apply else None
        return mapping, result

    def update_mapping(
        self,
        index: int,
        *,
        directory: Optional[str] = None,
        tags: Optional[Iterable[str]] = None,
        retag: bool = True,
    ) -> tuple[DirectoryMapping, list[BulkResult]]:
        """
        Edit a mapping's directory and/or tags.

        With retag, notes under the old directory lose the old tags and notes
        under the new directory get the new ones.

        Raises:
            IndexError: If there is no mapping at index
        """
        current = self._config.mappings[self._checked(index)]
        old = DirectoryMapping(current.directory, list(current.tags))

        self._config.remember_previous()
        mapping = self._config.mappings.update(index, directory=directory, tags=tags)
        if not retag:
            self._config.release_from_previous(old.directory)
        self._save()
        logger.info("Mapping %d updated: %s -> %s", index, mapping.directory, mapping.tags)

        results: list[BulkResult] = []
        if not retag:
            return mapping, results
        if old.directory == mapping.directory:
            results.append(self._bulk.update_tags_for_mapping(mapping.directory, old.tags, mapping.tags))
        else:
            results.append(self._bulk.remove_tags_for_mapping(old))
            results.append(self._bulk.apply_tags_for_mapping(mapping))
        return mapping, results

    def remove_mapping(
        self, index: int, *, remove_tags: bool = True,
    ) -> tuple[DirectoryMapping, Optional[BulkResult]]:
        """
        Delete a mapping, first removing its tags from the notes it covers.

        Raises:
            IndexError: If there is no mapping at index
        """
        mapping = self._config.mappings[self._checked(index)]
        result = self._bulk.remove_tags_for_mapping(mapping) if remove_tags else None

        self._config.remember_previous()
        self._config.mappings.remove(index)
        if not remove_tags:
            self._config.release_from_previous(mapping.directory)
        self._save()
        logger.info("Mapping removed: %s", mapping.directory)
        return mapping, result

    def _checked(self, index: int) -> int:
        if not 0 <= index < len(self._config.mappings):
            raise IndexError(f"No directory mapping at index {index}")
        return index

    # -------------------------------------------------------------------------
    # Host events
    # -------------------------------------------------------------------------

    def on_create(self, paths: Iterable[str]) -> list[EventOutcome]:
        for path in paths:
            self._events.created(path)
        return self._events.drain()

    def on_rename(self, old_path: str, new_path: str) -> list[EventOutcome]:
        self._events.renamed(old_path, new_path)
        return self._events.drain()

    def move(self, old_path: str, new_path: str) -> list[EventOutcome]:
        """Move a note on disk, then reconcile it as a rename."""
        old_path = normalize_path(old_path)
        new_path = normalize_path(new_path)
        self._store.rename(old_path, new_path)
        return self.on_rename(old_path, new_path)

    # -------------------------------------------------------------------------
    # Batch commands
    # -------------------------------------------------------------------------

    def reapply_all(self) -> BulkResult:
        return self._bulk.reapply_all()

    def remove_all_tags(self) -> BulkResult:
        return self._bulk.remove_all()

    def remove_custom_tags(self) -> BulkResult:
        return self._bulk.remove_custom_all()

    def complete_reset(self) -> BulkResult:
        return self._bulk.complete_reset()
