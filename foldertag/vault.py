"""
Filesystem vault: Markdown notes with YAML frontmatter.

The vault is the host document store. Paths handed in and out are
vault-relative and '/'-separated. Writes go to a temporary file in the
same directory which then replaces the note, so a crash leaves either
the old or the new version on disk, never a torn one.
"""

import copy
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any

import yaml

from .protocol import FrontmatterMutator
from .types import DOCUMENT_EXTENSION, normalize_path

logger = logging.getLogger(__name__)


# Opening fence, YAML body, closing fence on its own line
_FRONTMATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(?P<yaml>.*?)(?:^|\n)---[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)


class MalformedFrontmatter(ValueError):
    """Frontmatter exists but is not a YAML mapping."""


def split_frontmatter(text: str) -> tuple[dict[str, Any], str, bool]:
    """
    Split a note into (frontmatter, body, has_frontmatter).

    A note without a leading '---' fence has empty frontmatter and the
    whole text as body. An empty block parses as an empty mapping.

    Raises:
        MalformedFrontmatter: If the block is not valid YAML or not a mapping
    """
    match = _FRONTMATTER_RE.match(text)
    if not match:
        return {}, text, False

    try:
        data = yaml.safe_load(match.group("yaml"))
    except yaml.YAMLError as e:
        raise MalformedFrontmatter(f"Invalid YAML frontmatter: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise MalformedFrontmatter(
            f"Frontmatter is a {type(data).__name__}, not a mapping"
        )
    return data, text[match.end():], True


def render_frontmatter(data: dict[str, Any]) -> str:
    """Render a mapping as a frontmatter block, keys in their original order."""
    if not data:
        return ""
    dumped = yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False)
    return "---\n" + dumped + "---\n"


class VaultStore:
    """
    A folder of Markdown notes.

    Hidden directories (names starting with '.', such as the config
    directory or an editor's own settings folder) are not part of the vault.
    """

    def __init__(self, root: Path, extension: str = DOCUMENT_EXTENSION):
        self._root = Path(root).expanduser().resolve()
        self._extension = extension

    @property
    def root(self) -> Path:
        return self._root

    def __repr__(self) -> str:
        return f"VaultStore({str(self._root)!r})"

    def _abs(self, path: str) -> Path:
        rel = normalize_path(path)
        if not rel or ".." in rel.split("/"):
            raise ValueError(f"Not a vault-relative path: {path!r}")
        return self._root / rel

    def relative(self, path: Path) -> str:
        """Vault-relative form of an absolute path."""
        return Path(path).resolve().relative_to(self._root).as_posix()

    # -------------------------------------------------------------------------
    # Read Operations
    # -------------------------------------------------------------------------

    def list_documents(self) -> list[str]:
        """All notes in the vault, sorted by path."""
        if not self._root.is_dir():
            return []
        docs = []
        for entry in self._root.rglob(f"*{self._extension}"):
            rel = entry.relative_to(self._root)
            if any(part.startswith(".") for part in rel.parts):
                continue
            if entry.is_symlink() or not entry.is_file():
                continue
            docs.append(rel.as_posix())
        return sorted(docs)

    def exists(self, path: str) -> bool:
        return self._abs(path).is_file()

    def directory_exists(self, dir_path: str) -> bool:
        rel = normalize_path(dir_path)
        if not rel:
            return True
        return (self._root / rel).is_dir()

    def read_frontmatter(self, path: str) -> dict[str, Any]:
        """
        Parse a note's frontmatter.

        Raises:
            FileNotFoundError: If the note doesn't exist
            MalformedFrontmatter: If the frontmatter is not a mapping
        """
        text = self._abs(path).read_text(encoding="utf-8")
        data, _, _ = split_frontmatter(text)
        return data

    # -------------------------------------------------------------------------
    # Write Operations
    # -------------------------------------------------------------------------

    def process_frontmatter(self, path: str, fn: FrontmatterMutator) -> bool:
        """
        Read-modify-write a note's frontmatter.

        fn receives the parsed mapping and edits it in place. The note is
        rewritten only if the mapping changed; the body is kept byte for byte.
        A rewrite re-serializes the whole block with yaml.safe_dump, so values
        survive but YAML comments, quoting style and timestamp formatting in
        other fields do not.

        Returns:
            True if the note was written

        Raises:
            FileNotFoundError: If the note doesn't exist
            MalformedFrontmatter: If the frontmatter is not a mapping
        """
        abs_path = self._abs(path)
        text = abs_path.read_text(encoding="utf-8")
        data, body, had_block = split_frontmatter(text)

        original = copy.deepcopy(data)
        fn(data)
        if data == original:
            return False

        if not data and had_block:
            # Keep an explicit empty block rather than dropping the fence
            new_text = "---\n---\n" + body
        else:
            new_text = render_frontmatter(data) + body
        self._write_atomic(abs_path, new_text)
        logger.debug("Wrote frontmatter for %s", path)
        return True

    def _write_atomic(self, abs_path: Path, text: str) -> None:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=str(abs_path.parent),
            prefix=f".{abs_path.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp.write(text)
            tmp_name = tmp.name
        try:
            os.replace(tmp_name, abs_path)
        except OSError:
            os.unlink(tmp_name)
            raise

    def rename(self, old_path: str, new_path: str) -> None:
        """
        Move a note within the vault, creating parent folders as needed.

        Raises:
            FileNotFoundError: If the source doesn't exist
            FileExistsError: If the destination already exists
        """
        src = self._abs(old_path)
        dst = self._abs(new_path)
        if not src.is_file():
            raise FileNotFoundError(f"Note not found: {old_path}")
        if dst.exists():
            raise FileExistsError(f"Destination exists: {new_path}")
        dst.parent.mkdir(parents=True, exist_ok=True)
        src.rename(dst)
        logger.info("Moved %s -> %s", old_path, new_path)
