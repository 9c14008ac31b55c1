"""
Archive Module
Per-module tar.gz synthesis from a resolved commit tree.
"""

from .synthesizer import (
    ModuleFiles,
    module_name_of,
    is_module_name,
    partition_by_module,
    iter_archive,
    build_archive,
    archive_bytes,
    empty_archive,
)

__all__ = [
    "ModuleFiles",
    "module_name_of",
    "is_module_name",
    "partition_by_module",
    "iter_archive",
    "build_archive",
    "archive_bytes",
    "empty_archive",
]
