"""
Store Module
Read-only view of the module monorepo's tagged history.
"""

from .git_store import VersionStore, Tree, FileEntry, BlobReader

__all__ = ["VersionStore", "Tree", "FileEntry", "BlobReader"]
