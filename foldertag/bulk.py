"""
Batch operations over every document in the store.

Each document is its own transaction: a failure is logged and recorded,
and the batch moves on. A crash part-way leaves earlier documents updated
and later ones untouched; running the same batch again finishes the job.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from .config import FolderTagConfig, save_config
from .protocol import DocumentStoreProtocol
from .reconcile import MODIFIED, SKIPPED, ReconciliationEngine
from .types import DirectoryMapping, directory_of, is_within, normalize_path, utc_now

logger = logging.getLogger(__name__)


@dataclass
class BulkResult:
    """Counts from one batch run."""
    operation: str
    started: str = field(default_factory=utc_now)
    total: int = 0
    processed: int = 0
    modified: int = 0
    skipped: int = 0
    failed: list[tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict:
        return {
            "operation": self.operation,
            "started": self.started,
            "total": self.total,
            "processed": self.processed,
            "modified": self.modified,
            "skipped": self.skipped,
            "failed": [{"path": p, "error": e} for p, e in self.failed],
        }


class BulkOperationDriver:
    """Runs one engine action across many documents."""

    def __init__(
        self,
        engine: ReconciliationEngine,
        store: DocumentStoreProtocol,
        config: FolderTagConfig,
    ):
        self._engine = engine
        self._store = store
        self._config = config

    def run(
        self,
        operation: str,
        action: Callable[[str], str],
        paths: Optional[Iterable[str]] = None,
    ) -> BulkResult:
        """
        Apply action to each path (default: every document).

        processed counts documents handled without error, modified those
        actually rewritten, skipped those with unusable frontmatter.
        """
        if paths is None:
            paths = self._store.list_documents()
        paths = list(paths)
        result = BulkResult(operation=operation, total=len(paths))
        logger.info("%s started: %d documents", operation, len(paths))

        for path in paths:
            try:
                outcome = action(path)
            except Exception as e:
                logger.warning("Failed to process %s: %s", path, e)
                result.failed.append((path, str(e)))
                continue
            result.processed += 1
            if outcome == MODIFIED:
                result.modified += 1
            elif outcome == SKIPPED:
                result.skipped += 1

        logger.info(
            "%s finished: %d processed, %d modified, %d skipped, %d failed",
            operation, result.processed, result.modified, result.skipped, len(result.failed),
        )
        return result

    def _documents_under(self, directory: str) -> list[str]:
        directory = normalize_path(directory)
        return [
            p for p in self._store.list_documents()
            if is_within(directory_of(normalize_path(p)), directory)
        ]

    # -------------------------------------------------------------------------
    # Whole-vault batches
    # -------------------------------------------------------------------------

    def reapply_all(self) -> BulkResult:
        """
        Bring every document in line with the current settings.

        A clean run means no document still carries tags from the settings
        that preceded the last change, so that snapshot is dropped.
        """
        result = self.run("reapply", self._engine.rerun)
        if result.ok and self._config.previous is not None:
            self._config.forget_previous()
            save_config(self._config)
        return result

    def remove_all(self) -> BulkResult:
        """Remove folder-derived and custom tags from every document."""
        return self.run("remove-tags", self._engine.remove_resolved)

    def remove_custom_all(self) -> BulkResult:
        """Remove custom mapping tags from every document, keep folder tags."""
        return self.run("remove-custom", self._engine.remove_custom)

    def complete_reset(self) -> BulkResult:
        """
        Remove all derived tags, then delete every directory mapping.

        The tags are removed first, while the mappings still resolve them.
        """
        result = self.run("reset", self._engine.remove_resolved)
        self._config.mappings.clear()
        self._config.forget_previous()
        save_config(self._config)
        logger.info("All directory mappings cleared")
        return result

    # -------------------------------------------------------------------------
    # Mapping-scoped batches
    # -------------------------------------------------------------------------

    def apply_tags_for_mapping(self, mapping: DirectoryMapping) -> BulkResult:
        """Add a mapping's tags to documents at or below its directory."""
        if not mapping.directory or not mapping.tags:
            return BulkResult(operation="apply-mapping")
        tags = list(mapping.tags)
        return self.run(
            "apply-mapping",
            lambda path: self._engine.apply_tags_for_mapping(path, tags),
            self._documents_under(mapping.directory),
        )

    def remove_tags_for_mapping(self, mapping: DirectoryMapping) -> BulkResult:
        """Remove a mapping's tags from documents at or below its directory."""
        if not mapping.directory or not mapping.tags:
            return BulkResult(operation="remove-mapping")
        tags = list(mapping.tags)
        return self.run(
            "remove-mapping",
            lambda path: self._engine.remove_tags_for_mapping(path, tags),
            self._documents_under(mapping.directory),
        )

    def update_tags_for_mapping(
        self, directory: str, old_tags: Iterable[str], new_tags: Iterable[str],
    ) -> BulkResult:
        """Swap a mapping's old tags for its new ones under its directory."""
        old_tags = list(old_tags)
        new_tags = list(new_tags)
        if not normalize_path(directory) or old_tags == new_tags:
            return BulkResult(operation="update-mapping")
        return self.run(
            "update-mapping",
            lambda path: self._engine.update_tags_for_mapping(path, old_tags, new_tags),
            self._documents_under(directory),
        )
