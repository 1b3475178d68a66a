"""
Host events: documents created and renamed.

Events are queued and handled strictly one at a time, each to completion
(including its document write) before the next is taken. That ordering is
what keeps a rename's mapping update visible to the reconciliation that
follows it.
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Optional

from .config import FolderTagConfig, save_config
from .mappings import common_rename_root
from .protocol import DocumentStoreProtocol
from .reconcile import UNCHANGED, ReconciliationEngine
from .types import (
    EVENT_CREATE,
    EVENT_RENAME,
    DirectoryMapping,
    VaultEvent,
    directory_of,
    is_document,
    normalize_path,
)

logger = logging.getLogger(__name__)

IGNORED = "ignored"
FAILED = "failed"


@dataclass
class EventOutcome:
    """What handling one event did."""
    event: VaultEvent
    outcome: str
    error: Optional[str] = None


class EventQueue:
    """
    FIFO of create/rename events for one vault.

    Directories are observed once per queue: the first document seen in a
    directory may give that directory an inherited mapping.
    """

    def __init__(
        self,
        engine: ReconciliationEngine,
        store: DocumentStoreProtocol,
        config: FolderTagConfig,
    ):
        self._engine = engine
        self._store = store
        self._config = config
        self._pending: deque[VaultEvent] = deque()
        self._observed: set[str] = set()

    def __len__(self) -> int:
        return len(self._pending)

    def put(self, event: VaultEvent) -> None:
        if event.kind not in (EVENT_CREATE, EVENT_RENAME):
            raise ValueError(f"Unknown event kind: {event.kind!r}")
        if event.kind == EVENT_RENAME and event.old_path is None:
            raise ValueError("Rename events need old_path")
        self._pending.append(event)

    def created(self, path: str) -> None:
        self.put(VaultEvent(EVENT_CREATE, normalize_path(path)))

    def renamed(self, old_path: str, new_path: str) -> None:
        self.put(VaultEvent(EVENT_RENAME, normalize_path(new_path), normalize_path(old_path)))

    def drain(self) -> list[EventOutcome]:
        """Handle every queued event in order."""
        outcomes = []
        while self._pending:
            event = self._pending.popleft()
            try:
                outcome = EventOutcome(event, self.handle(event))
            except Exception as e:
                logger.warning("Failed to handle %s for %s: %s", event.kind, event.path, e)
                outcome = EventOutcome(event, FAILED, str(e))
            outcomes.append(outcome)
        return outcomes

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    def handle(self, event: VaultEvent) -> str:
        path = normalize_path(event.path)
        if not is_document(path):
            return IGNORED

        if event.kind == EVENT_CREATE:
            self.observe_directory(directory_of(path))
            return self._engine.create(path)

        old_path = normalize_path(event.old_path or "")
        if old_path == path:
            return UNCHANGED
        self.propagate_directory_rename(old_path, path)
        self.observe_directory(directory_of(path))
        return self._engine.move(path, old_path)

    def observe_directory(self, dir_path: str) -> Optional[DirectoryMapping]:
        """
        Note that a directory holds documents.

        The first time a directory is seen it inherits its nearest tagged
        ancestor's mapping, unless it already has one of its own.
        """
        dir_path = normalize_path(dir_path)
        if not dir_path or dir_path in self._observed:
            return None
        self._observed.add(dir_path)
        mapping = self._config.mappings.inherit_for_new_directory(dir_path)
        if mapping is not None:
            save_config(self._config)
        return mapping

    def propagate_directory_rename(self, old_path: str, new_path: str) -> bool:
        """
        Carry a folder rename into the mappings.

        A document rename whose changed folder no longer exists means the
        folder itself was renamed; a note moved between two existing folders
        leaves mappings alone.
        """
        old_dir, new_dir = common_rename_root(old_path, new_path)
        if not old_dir or old_dir == new_dir:
            return False
        if self._store.directory_exists(old_dir):
            return False
        if not self._config.mappings.rename_propagate(old_dir, new_dir):
            return False
        self._observed.discard(old_dir)
        save_config(self._config)
        logger.info("Directory mappings follow rename %s -> %s", old_dir, new_dir)
        return True
