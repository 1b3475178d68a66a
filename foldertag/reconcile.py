"""
Reconcile a document's tags against a computed tag set.

reconcile() is the pure diff: drop what should go, append what is missing,
leave everything else (user tags, tags written by other tools) where it is.
ReconciliationEngine wires it to the document store for each action.

Every action is one read-modify-write of one document. When the new tag
list equals the old one nothing is written, so re-running an action never
produces a spurious modification.
"""

import logging
from typing import Any, Iterable, Optional

from .config import FolderTagConfig
from .protocol import DocumentStoreProtocol
from .resolver import TagSetResolver
from .types import dedupe
from .vault import MalformedFrontmatter

logger = logging.getLogger(__name__)

TAGS_KEY = "tags"

# Outcome of a single-document action
MODIFIED = "modified"
UNCHANGED = "unchanged"
SKIPPED = "skipped"  # frontmatter is not a mapping


def reconcile(
    current: Iterable[str],
    remove: Iterable[str],
    add: Iterable[str],
) -> Optional[list[str]]:
    """
    Apply a tag diff.

    Tags in `remove` are dropped from `current`, then tags in `add` that are
    not already present are appended in order (duplicates in `add` count
    once). A tag in both `remove` and `add` ends up present, moved to the end.

    Returns:
        The new tag list, or None when it is empty (the tags field should be
        absent rather than an empty list)
    """
    removed = set(remove)
    result = [t for t in current if t not in removed]
    present = set(result)
    for tag in add:
        if tag not in present:
            result.append(tag)
            present.add(tag)
    return result or None


def read_tags(frontmatter: dict[str, Any]) -> list[str]:
    """
    Tags as found in a frontmatter mapping.

    Accepts a YAML list or a comma-separated string. List items are
    stringified; blanks are dropped.
    """
    value = frontmatter.get(TAGS_KEY)
    if isinstance(value, list):
        items = [str(t).strip() for t in value if t is not None]
    elif isinstance(value, str):
        items = [t.strip() for t in value.split(",")]
    else:
        return []
    return [t for t in items if t]


class ReconciliationEngine:
    """
    Per-document tag actions.

    The engine reads settings from the config on every call, so settings
    changes take effect immediately for new actions.
    """

    def __init__(self, store: DocumentStoreProtocol, config: FolderTagConfig):
        self._store = store
        self._config = config

    @property
    def resolver(self) -> TagSetResolver:
        return TagSetResolver(self._config.settings)

    @property
    def previous_resolver(self) -> Optional[TagSetResolver]:
        if self._config.previous is None:
            return None
        return TagSetResolver(self._config.previous)

    def apply(self, path: str, remove: Iterable[str], add: Iterable[str]) -> str:
        """
        Reconcile one document's tags and write back if they changed.

        Returns:
            MODIFIED, UNCHANGED or SKIPPED
        """
        remove = list(remove)
        add = list(add)

        def mutate(frontmatter: dict[str, Any]) -> None:
            current = read_tags(frontmatter)
            new_tags = reconcile(current, remove, add)
            if (new_tags or []) == current:
                return
            if new_tags is None:
                frontmatter.pop(TAGS_KEY, None)
            else:
                frontmatter[TAGS_KEY] = new_tags

        try:
            written = self._store.process_frontmatter(path, mutate)
        except MalformedFrontmatter as e:
            logger.debug("Skipping %s: %s", path, e)
            return SKIPPED
        if written:
            logger.debug("Tags updated for %s (-%s +%s)", path, remove, add)
        return MODIFIED if written else UNCHANGED

    # -------------------------------------------------------------------------
    # Path-driven actions
    # -------------------------------------------------------------------------

    def create(self, path: str) -> str:
        """Add the resolved tags of a new document."""
        target = self.resolver.resolve(path)
        if not target:
            return UNCHANGED
        return self.apply(path, (), target)

    def move(self, path: str, old_path: str) -> str:
        """
        Swap tags from the old location for tags of the new one.

        A tag produced by both locations stays untouched. A document moved
        somewhere with no tags at all keeps what it has.
        """
        resolver = self.resolver
        target = resolver.resolve(path)
        if not target:
            return UNCHANGED
        old_tags = resolver.resolve(old_path)
        return self.apply(path, [t for t in old_tags if t not in target], target)

    def rerun(self, path: str) -> str:
        """
        Reapply current settings to a document that has not moved.

        Removes what the current settings resolve to (and, when settings
        changed since the last reapply, what the earlier settings resolved
        to), then adds the current resolution.
        """
        target = self.resolver.resolve(path)
        if not target:
            return UNCHANGED
        remove = list(target)
        previous = self.previous_resolver
        if previous is not None:
            remove = dedupe(remove + previous.resolve(path))
        return self.apply(path, remove, target)

    def remove_resolved(self, path: str) -> str:
        """Strip every folder-derived and custom tag of this path."""
        resolved = self.resolver.resolve(path)
        if not resolved:
            return UNCHANGED
        return self.apply(path, resolved, ())

    def remove_custom(self, path: str) -> str:
        """Strip only the custom mapping tags, leaving folder tags alone."""
        custom = self.resolver.custom_tags(path)
        if not custom:
            return UNCHANGED
        return self.apply(path, custom, ())

    # -------------------------------------------------------------------------
    # Mapping-scoped actions (caller picks the documents)
    # -------------------------------------------------------------------------

    def apply_tags_for_mapping(self, path: str, tags: Iterable[str]) -> str:
        return self.apply(path, (), tags)

    def remove_tags_for_mapping(self, path: str, tags: Iterable[str]) -> str:
        return self.apply(path, tags, ())

    def update_tags_for_mapping(
        self, path: str, old_tags: Iterable[str], new_tags: Iterable[str],
    ) -> str:
        """Replace one mapping's old tags with its new ones.

        Tags kept by the edit are not removed, so they keep their position.
        """
        new_tags = list(new_tags)
        return self.apply(path, [t for t in old_tags if t not in new_tags], new_tags)
