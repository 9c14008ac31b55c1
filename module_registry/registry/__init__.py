"""
Registry Module
Deployment strategies, protocol helpers and the offline asset build.
"""

from .protocol import normalize_ref, accepts_gzip, content_disposition, download_location, versions_envelope
from .sources import ArchiveSource, OnDemandSource, PrecomputedSource, archive_path, open_store, open_source
from .build import BuildReport, build_assets

__all__ = [
    "normalize_ref",
    "accepts_gzip",
    "content_disposition",
    "download_location",
    "versions_envelope",
    "ArchiveSource",
    "OnDemandSource",
    "PrecomputedSource",
    "archive_path",
    "open_store",
    "open_source",
    "BuildReport",
    "build_assets",
]
