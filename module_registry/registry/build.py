"""
Asset Build
Offline pass that precomputes every (version, module) archive.

The whole cache is written to a staging directory next to the target and only
swapped into place once every archive and the versions manifest exist. Any
failure aborts the build and leaves the previous cache untouched, so the
published manifest never lists a version whose archives are incomplete.
"""

import os
import shutil
import tempfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from module_registry.archive import build_archive, partition_by_module
from module_registry.errors import ArchiveWriteError
from module_registry.registry.manifest import write_manifest
from module_registry.registry.sources import archive_path
from module_registry.store import VersionStore
from module_registry.utils.logger import Logger


@dataclass
class BuildReport:
    """Summary of a finished build."""
    assets_dir: Path
    versions: List[str] = field(default_factory=list)
    archives: int = 0


def build_version(store: VersionStore, version: str, assets_dir: Path, logger: Logger) -> int:
    """Write the archive of every module present at ``version``; returns how many."""
    tree = store.resolve_tag(version)
    modules = partition_by_module(tree.files())

    with store.blob_reader() as reader:
        for module, files in sorted(modules.items()):
            path = archive_path(assets_dir, version, module)
            partial = path.with_name(path.name + ".partial")
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                with open(partial, "wb") as sink:
                    build_archive(module, files, reader, sink)
                os.replace(partial, path)
            except OSError as e:
                raise ArchiveWriteError(f"Failed to write {path}: {e}") from e

    logger.info(f"Built {version}: {len(modules)} modules")
    return len(modules)


def _swap_into_place(staging: Path, assets_dir: Path) -> None:
    previous = None
    if assets_dir.exists():
        previous = assets_dir.with_name(f"{staging.name}.previous")
        os.replace(assets_dir, previous)
    os.replace(staging, assets_dir)
    if previous is not None:
        shutil.rmtree(previous)


def build_assets(
    store: VersionStore,
    assets_dir: Path,
    jobs: int = 1,
    logger: Optional[Logger] = None,
) -> BuildReport:
    """
    Build the asset cache for every tag of ``store`` into ``assets_dir``.
    
    Args:
        store: Opened version store
        assets_dir: Cache directory to (re)create
        jobs: Number of tags built in parallel
        logger: Progress logger
    """
    logger = logger or Logger("asset-build")
    assets_dir = Path(assets_dir)
    assets_dir.parent.mkdir(parents=True, exist_ok=True)
    staging = Path(tempfile.mkdtemp(prefix=f".{assets_dir.name}-", dir=assets_dir.parent))

    try:
        versions = store.list_tags()
        logger.info(f"Building {len(versions)} versions into {assets_dir} ({jobs} jobs)")

        if jobs > 1:
            with ThreadPoolExecutor(max_workers=jobs) as pool:
                futures = [pool.submit(build_version, store, v, staging, logger) for v in versions]
                try:
                    counts = [f.result() for f in futures]
                except BaseException:
                    for f in futures:
                        f.cancel()
                    raise
        else:
            counts = [build_version(store, v, staging, logger) for v in versions]

        write_manifest(staging, versions)
        os.chmod(staging, 0o755)
        _swap_into_place(staging, assets_dir)
    except BaseException as e:
        shutil.rmtree(staging, ignore_errors=True)
        logger.error(f"Build failed, {assets_dir} left unchanged: {e}")
        raise

    report = BuildReport(assets_dir=assets_dir, versions=versions, archives=sum(counts))
    logger.info(f"Build complete: {len(report.versions)} versions, {report.archives} archives")
    return report
