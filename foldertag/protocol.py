"""
Protocol definitions for the host document store.

The tagging engine never touches files directly. It needs a store that can
list documents and run an exclusive read-modify-write over a document's
frontmatter. Implemented by:
- VaultStore (Markdown files with YAML frontmatter on the local filesystem)
- InMemoryStore in the test suite
"""

from typing import Any, Callable, Protocol, runtime_checkable


FrontmatterMutator = Callable[[dict[str, Any]], None]


@runtime_checkable
class DocumentStoreProtocol(Protocol):
    """
    What the engine consumes from the host.

    process_frontmatter() must hand the mutator the latest stored state and
    persist its result atomically; it returns True only if something was
    written. A frontmatter block that is not a mapping raises
    MalformedFrontmatter without calling the mutator.
    """

    def list_documents(self) -> list[str]: ...

    def process_frontmatter(self, path: str, fn: FrontmatterMutator) -> bool: ...

    def read_frontmatter(self, path: str) -> dict[str, Any]: ...

    def directory_exists(self, dir_path: str) -> bool: ...

    def rename(self, old_path: str, new_path: str) -> None: ...
