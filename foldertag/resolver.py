"""
Resolve the full tag set for a document path.

A TagSetResolver reads straight from the settings it was given, so a
resolver built before a settings change sees the change. Nothing is
cached between calls.
"""

from .config import ResolutionSettings
from .derive import derive_folder_tags
from .types import dedupe, directory_of, normalize_path


class TagSetResolver:
    """Folder-derived tags plus custom mapping tags for a path."""

    def __init__(self, settings: ResolutionSettings):
        self._settings = settings

    @property
    def settings(self) -> ResolutionSettings:
        return self._settings

    def folder_tags(self, path: str) -> list[str]:
        return derive_folder_tags(path, self._settings.policy)

    def custom_tags(self, path: str) -> list[str]:
        """Tags from every mapping covering the document's directory."""
        return dedupe(self._settings.mappings.lookup(directory_of(normalize_path(path))))

    def resolve(self, path: str) -> list[str]:
        """
        The canonical tag set for a document path.

        Folder tags come first, then custom tags; duplicates are dropped
        keeping the first occurrence.
        """
        path = normalize_path(path)
        return dedupe(self.folder_tags(path) + self._settings.mappings.lookup(directory_of(path)))
