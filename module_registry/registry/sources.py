"""
Archive Sources
The two deployment strategies behind the protocol server.

``OnDemandSource`` resolves and synthesizes archives per request against a
live repository; ``PrecomputedSource`` serves what an offline build pass left
in an asset cache. Both produce identical archive bytes for the same
(module, version); the server never knows which one it talks to.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator, List, Optional

from module_registry.archive import ModuleFiles, empty_archive, is_module_name, iter_archive, partition_by_module
from module_registry.errors import RegistryError, TagNotFound
from module_registry.registry.manifest import read_manifest
from module_registry.registry.protocol import version_path_segment
from module_registry.store import VersionStore
from module_registry.utils.logger import Logger

CHUNK_SIZE = 64 * 1024
ARCHIVE_SUFFIX = ".tar.gz"
# Version directories live apart from the manifest so no tag name can shadow it
ARCHIVES_DIR = "archives"


def archive_path(assets_dir: Path, version: str, module: str) -> Path:
    """Location of a module archive inside an asset cache."""
    return Path(assets_dir) / ARCHIVES_DIR / version_path_segment(version) / f"{module}{ARCHIVE_SUFFIX}"


class ArchiveSource(ABC):
    """Where the protocol server gets versions and archives from."""

    strategy: str = ""

    @abstractmethod
    def list_versions(self) -> List[str]:
        """All published version (tag) names."""

    @abstractmethod
    def open_archive(self, module: str, version: str) -> Iterator[bytes]:
        """
        Validate (module, version) and return the archive as a chunk iterator.
        
        Raises TagNotFound before returning if the version is unknown. A module
        that does not exist at the version yields an archive with no entries.
        """

    def close(self) -> None:
        pass


class OnDemandSource(ArchiveSource):
    """Builds every archive from the repository when it is requested."""

    strategy = "on-demand"

    def __init__(self, store: VersionStore, logger: Optional[Logger] = None):
        self.store = store
        self.logger = logger or Logger("on-demand-source")

    def list_versions(self) -> List[str]:
        return self.store.list_tags()

    def open_archive(self, module: str, version: str) -> Iterator[bytes]:
        tree = self.store.resolve_tag(version)
        files: ModuleFiles = []
        if is_module_name(module):
            files = partition_by_module(tree.files()).get(module, [])
        self.logger.debug(f"Serving {module}@{version}: {len(files)} files")
        return self._stream(module, files)

    def _stream(self, module: str, files: ModuleFiles) -> Iterator[bytes]:
        if not files:
            yield empty_archive()
            return
        try:
            with self.store.blob_reader() as reader:
                yield from iter_archive(module, files, reader)
        except RegistryError as e:
            # Headers are already sent; the HTTP error handler never sees this
            self.logger.error(f"Streaming {module} archive failed: {type(e).__name__}: {e}")
            raise

    def close(self) -> None:
        self.store.close()


class PrecomputedSource(ArchiveSource):
    """Streams archives from an asset cache written by the build pass."""

    strategy = "precomputed"

    def __init__(self, assets_dir: Path, logger: Optional[Logger] = None):
        self.assets_dir = Path(assets_dir)
        self.logger = logger or Logger("precomputed-source")
        # The manifest is immutable for the lifetime of a deployment
        self._versions = read_manifest(self.assets_dir)
        self._known = set(self._versions)
        self.logger.info(f"Loaded {len(self._versions)} versions from {self.assets_dir}")

    def list_versions(self) -> List[str]:
        return list(self._versions)

    def open_archive(self, module: str, version: str) -> Iterator[bytes]:
        if version not in self._known:
            raise TagNotFound(version)
        if not is_module_name(module):
            return iter([empty_archive()])
        path = archive_path(self.assets_dir, version, module)
        if not path.is_file():
            self.logger.debug(f"{module} is absent at {version}")
            return iter([empty_archive()])
        return self._stream(path)

    @staticmethod
    def _stream(path: Path) -> Iterator[bytes]:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
                yield chunk


def open_store(config, logger: Optional[Logger] = None) -> VersionStore:
    """Open the repository named by ``config``, cloning a private copy if a URL is set."""
    if config.repo_url:
        return VersionStore.clone(config.repo_url, logger=logger)
    return VersionStore.open(config.repo_path, logger=logger)


def open_source(config, logger: Optional[Logger] = None) -> ArchiveSource:
    """Create the archive source for the configured deployment strategy."""
    if config.is_precomputed:
        return PrecomputedSource(config.assets_dir, logger=logger)
    return OnDemandSource(open_store(config, logger=logger), logger=logger)
