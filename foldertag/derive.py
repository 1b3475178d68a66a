"""
Folder-derived tags.

Pure function of a document path and a FormattingPolicy: no store reads,
no config lookups.
"""

from .types import (
    DEPTH_ALL_SPLIT,
    DEPTH_FULL_PATH,
    DEPTH_LAST1,
    DEPTH_LAST2_JOINED,
    DEPTH_LAST2_SPLIT,
    SEPARATOR,
    FormattingPolicy,
    directory_segments,
    normalize_path,
)


def derive_folder_tags(path: str, policy: FormattingPolicy) -> list[str]:
    """
    Compute the folder tags for a document path.

    Segments are indexed from the root; the last one is the immediate
    parent directory. A document at the vault root has no directory
    segments and gets no folder tags under any policy.

    Args:
        path: Vault-relative document path (normalized here)
        policy: Depth, prefix and suffix to apply

    Returns:
        Ordered list of tag strings
    """
    parts = directory_segments(normalize_path(path))
    if not parts:
        return []

    depth = policy.depth
    last = parts[-1]

    if depth == DEPTH_LAST1:
        return [policy.wrap(last)]

    if depth == DEPTH_LAST2_SPLIT:
        if len(parts) >= 2:
            return [policy.wrap(last), policy.wrap(parts[-2])]
        return [policy.wrap(last)]

    if depth == DEPTH_LAST2_JOINED:
        if len(parts) >= 2:
            return [policy.wrap(parts[-2] + SEPARATOR + last)]
        return [policy.wrap(last)]

    if depth == DEPTH_FULL_PATH:
        return [policy.wrap(SEPARATOR.join(parts))]

    if depth == DEPTH_ALL_SPLIT:
        return [policy.wrap(part) for part in parts]

    # FormattingPolicy validates depth on construction
    raise ValueError(f"Unknown folder depth: {depth!r}")
