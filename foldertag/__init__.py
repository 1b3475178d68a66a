"""
foldertag: tags for Markdown notes derived from the folders they live in.

Basic usage:
    from foldertag import FolderTagger

    ft = FolderTagger("~/notes")
    ft.add_mapping("work/clients", ["client"], apply=True)
    ft.on_create(["work/clients/acme/kickoff.md"])
    result = ft.reapply_all()
"""

from .api import FolderTagger
from .bulk import BulkResult
from .config import FolderTagConfig
from .derive import derive_folder_tags
from .mappings import DirectoryMappingStore
from .reconcile import reconcile
from .resolver import TagSetResolver
from .types import DirectoryMapping, FormattingPolicy

__version__ = "0.3.0"
__all__ = [
    "FolderTagger",
    "BulkResult",
    "FolderTagConfig",
    "DirectoryMapping",
    "DirectoryMappingStore",
    "FormattingPolicy",
    "TagSetResolver",
    "derive_folder_tags",
    "reconcile",
]
