"""
Data types for folder-derived tagging.

Paths are vault-relative strings separated by '/'. Everything in this
package works on normalized paths; call normalize_path() at the edges
(CLI arguments, config files, host events).
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


SEPARATOR = "/"

# Folder depth policies. Values are the persisted config strings.
DEPTH_LAST1 = "1"             # immediate parent only
DEPTH_LAST2_SPLIT = "2split"  # parent and grandparent, as two tags
DEPTH_LAST2_JOINED = "2single"  # "grandparent/parent" as one tag
DEPTH_FULL_PATH = "full"      # every directory joined into one tag
DEPTH_ALL_SPLIT = "allsplit"  # one tag per directory, root first

FOLDER_DEPTHS = (
    DEPTH_LAST1,
    DEPTH_LAST2_SPLIT,
    DEPTH_LAST2_JOINED,
    DEPTH_FULL_PATH,
    DEPTH_ALL_SPLIT,
)

# Human labels, shown by `foldertag config` and the set-depth help text
DEPTH_LABELS = {
    DEPTH_LAST1: "Depth 1",
    DEPTH_LAST2_SPLIT: "Depth 2 (separate tags)",
    DEPTH_LAST2_JOINED: "Depth 2 in one tag",
    DEPTH_FULL_PATH: "Full path",
    DEPTH_ALL_SPLIT: "All directories (separate tags)",
}

# Only documents with this extension take part in tagging
DOCUMENT_EXTENSION = ".md"

_SEPARATOR_RUN_RE = re.compile(r"/+")


def utc_now() -> str:
    """Current UTC timestamp in canonical format: YYYY-MM-DDTHH:MM:SS."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")


def normalize_path(path: str) -> str:
    """Normalize a vault-relative path.

    Backslashes and non-breaking spaces are converted, runs of separators
    collapse to one, '.' segments are dropped and leading/trailing
    separators are stripped. The vault root normalizes to "".
    """
    if not path:
        return ""
    path = path.replace("\\", SEPARATOR).replace("\u00a0", " ").replace("\u202f", " ")
    path = _SEPARATOR_RUN_RE.sub(SEPARATOR, path)
    segments = [seg for seg in path.split(SEPARATOR) if seg and seg != "."]
    return SEPARATOR.join(segments)


def directory_segments(path: str) -> list[str]:
    """Segments of a normalized document path before the leaf name."""
    if not path:
        return []
    return path.split(SEPARATOR)[:-1]


def directory_of(path: str) -> str:
    """Containing directory of a normalized document path ("" at the root)."""
    return SEPARATOR.join(directory_segments(path))


def is_within(dir_path: str, ancestor: str) -> bool:
    """True if dir_path equals ancestor or lies below it.

    An empty ancestor never matches; mappings without a directory
    are treated as unset.
    """
    if not ancestor:
        return False
    return dir_path == ancestor or dir_path.startswith(ancestor + SEPARATOR)


def is_document(path: str) -> bool:
    """Check whether a path names a taggable document."""
    return path.lower().endswith(DOCUMENT_EXTENSION)


def parse_tags_from_string(tags_string: str) -> list[str]:
    """Split a comma-separated tag string, dropping blanks."""
    return [t.strip() for t in tags_string.split(",") if t.strip()]


def dedupe(tags) -> list[str]:
    """Remove duplicates, keeping the first occurrence of each tag."""
    return list(dict.fromkeys(tags))


def validate_depth(depth: str) -> str:
    """Validate a folder depth policy string and return it."""
    if depth not in FOLDER_DEPTHS:
        raise ValueError(
            f"Unknown folder depth {depth!r} (expected one of: {', '.join(FOLDER_DEPTHS)})"
        )
    return depth


@dataclass(frozen=True)
class FormattingPolicy:
    """How directory segments become tag strings."""
    depth: str = DEPTH_LAST1
    prefix: str = ""
    suffix: str = ""

    def __post_init__(self):
        validate_depth(self.depth)

    def wrap(self, text: str) -> str:
        return f"{self.prefix}{text}{self.suffix}"


@dataclass
class DirectoryMapping:
    """
    User-defined tags for a directory and everything beneath it.

    Attributes:
        directory: Normalized vault-relative directory ("" means unset)
        tags: Ordered tag strings, no duplicates
    """
    directory: str
    tags: list[str] = field(default_factory=list)

    def __post_init__(self):
        self.directory = normalize_path(self.directory)
        self.tags = dedupe(str(t).strip() for t in self.tags if str(t).strip())

    def to_dict(self) -> dict:
        return {"directory": self.directory, "tags": list(self.tags)}

    @classmethod
    def from_dict(cls, d: dict) -> "DirectoryMapping":
        tags = d.get("tags", [])
        if isinstance(tags, str):
            tags = parse_tags_from_string(tags)
        return cls(directory=str(d.get("directory", "")), tags=list(tags))


@dataclass(frozen=True)
class VaultEvent:
    """A host notification about a document.

    kind is "create" or "rename"; old_path is set for renames only.
    """
    kind: str
    path: str
    old_path: Optional[str] = None


EVENT_CREATE = "create"
EVENT_RENAME = "rename"
