"""
Archive Synthesizer
Splits a commit tree into modules and writes one tar.gz per module.

A module is a top-level directory of the monorepo whose name does not start
with a dot. Files at the repository root, or under hidden top-level
directories, belong to no module.

Archives are deterministic: entries are sorted by path (plain ``str``
ordering, i.e. code point order), every header carries a zero mtime and
owner, and the gzip layer has no timestamp or file name. Building the same
module file set twice therefore yields identical bytes.
"""

import gzip
import io
import tarfile
from typing import BinaryIO, Dict, Iterable, Iterator, List, Optional, Tuple

from module_registry.errors import ArchiveWriteError, TreeReadError
from module_registry.store import BlobReader, FileEntry

ModuleFiles = List[Tuple[str, FileEntry]]


def module_name_of(path: str) -> Optional[str]:
    """Module a repository path belongs to, or None."""
    head, sep, rest = path.partition("/")
    if not sep or not rest or not is_module_name(head):
        return None
    return head


def is_module_name(name: str) -> bool:
    return bool(name) and "/" not in name and not name.startswith(".")


def partition_by_module(files: Iterable[Tuple[str, FileEntry]]) -> Dict[str, ModuleFiles]:
    """Group tree files by module, each group sorted by path."""
    modules: Dict[str, ModuleFiles] = {}
    for path, entry in files:
        name = module_name_of(path)
        if name is None:
            continue
        modules.setdefault(name, []).append((path, entry))

    for members in modules.values():
        members.sort(key=lambda item: item[0])
    return modules


class _ChunkSink:
    """Write-only file object that hands back whatever was written since the last drain."""

    def __init__(self):
        self._buffer = bytearray()

    def write(self, data) -> int:
        self._buffer += data
        return len(data)

    def flush(self) -> None:
        pass

    def drain(self) -> bytes:
        data = bytes(self._buffer)
        self._buffer.clear()
        return data


def _entry_info(module: str, path: str, entry: FileEntry, content: bytes) -> tarfile.TarInfo:
    info = tarfile.TarInfo(name=path[len(module) + 1:])
    info.mtime = 0
    info.uid = info.gid = 0
    info.uname = info.gname = ""
    if entry.is_symlink:
        info.type = tarfile.SYMTYPE
        info.linkname = content.decode("utf-8", errors="surrogateescape")
        info.mode = 0o777
        info.size = 0
    else:
        info.mode = entry.permissions
        info.size = len(content)
    return info


def iter_archive(module: str, files: ModuleFiles, reader: Optional[BlobReader]) -> Iterator[bytes]:
    """
    Yield the compressed archive of ``module`` chunk by chunk.
    
    ``files`` must all live under ``module/`` (as produced by
    partition_by_module). Output written so far is yielded after every
    entry, so callers can stream it without holding the whole archive.
    """
    prefix = module + "/"
    sink = _ChunkSink()
    with gzip.GzipFile(filename="", mode="wb", fileobj=sink, mtime=0) as gz:
        with tarfile.open(fileobj=gz, mode="w|", format=tarfile.PAX_FORMAT) as tar:
            for path, entry in sorted(files, key=lambda item: item[0]):
                if not path.startswith(prefix) or path == prefix:
                    raise ValueError(f"{path} is not a file of module {module}")

                content = reader.read(entry.object_id)
                if len(content) != entry.size:
                    raise TreeReadError(f"Blob {entry.object_id} is {len(content)} bytes, tree says {entry.size}")

                info = _entry_info(module, path, entry, content)
                try:
                    tar.addfile(info, None if entry.is_symlink else io.BytesIO(content))
                except (OSError, tarfile.TarError, ValueError) as e:
                    raise ArchiveWriteError(f"Failed to write {info.name} to {module} archive: {e}") from e

                chunk = sink.drain()
                if chunk:
                    yield chunk

    yield sink.drain()


def build_archive(module: str, files: ModuleFiles, reader: Optional[BlobReader], sink: BinaryIO) -> int:
    """Write the archive of ``module`` to ``sink``; returns the number of bytes written."""
    written = 0
    for chunk in iter_archive(module, files, reader):
        try:
            sink.write(chunk)
        except (OSError, ValueError) as e:
            raise ArchiveWriteError(f"Failed to write {module} archive: {e}") from e
        written += len(chunk)
    return written


def archive_bytes(module: str, files: ModuleFiles, reader: Optional[BlobReader]) -> bytes:
    return b"".join(iter_archive(module, files, reader))


def empty_archive() -> bytes:
    """A valid archive with no entries, served for modules absent at a version."""
    return archive_bytes("", [], None)
