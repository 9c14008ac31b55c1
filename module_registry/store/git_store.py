"""
Git Version Store
Read-only access to the tags, commits and trees of a module monorepo.

Every operation is a separate invocation of the git command-line client, so a
single opened store can be shared by concurrent requests without locking.
Nothing in this module ever writes to the repository.
"""

import os
import shutil
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, List, Optional, Tuple, Union

from module_registry.errors import (
    CommitResolutionError,
    StoreOpenError,
    TagNotFound,
    TreeReadError,
)
from module_registry.utils.logger import Logger

TAG_PREFIX = "refs/tags/"

# git tree entry modes
MODE_SYMLINK = 0o120000
MODE_TYPE_MASK = 0o170000


def _run_git(git_dir: Path, args: List[str], *, binary: bool = False) -> Tuple[int, Any, str]:
    """Run git inside ``git_dir``; returns (returncode, stdout, stderr)."""
    try:
        p = subprocess.run(
            ["git", "--no-pager", *args],
            cwd=str(git_dir),
            capture_output=True,
            env={**os.environ, "GIT_PAGER": "cat", "PAGER": "cat", "GIT_TERMINAL_PROMPT": "0"},
        )
    except FileNotFoundError as e:
        raise StoreOpenError("git executable not found on PATH") from e
    stderr = p.stderr.decode("utf-8", errors="replace").strip()
    if binary:
        return p.returncode, p.stdout, stderr
    return p.returncode, p.stdout.decode("utf-8", errors="replace").strip(), stderr


@dataclass(frozen=True, slots=True)
class FileEntry:
    """A file leaf of a commit tree."""
    mode: int
    object_id: str
    size: int

    @property
    def is_symlink(self) -> bool:
        return self.mode & MODE_TYPE_MASK == MODE_SYMLINK

    @property
    def permissions(self) -> int:
        return self.mode & 0o777


class BlobReader:
    """
    Streams blob contents out of one ``git cat-file --batch`` process.
    
    A reader belongs to exactly one archive build and must be closed
    (use it as a context manager).
    """

    def __init__(self, git_dir: Path):
        try:
            self._proc = subprocess.Popen(
                ["git", "cat-file", "--batch"],
                cwd=str(git_dir),
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
            )
        except FileNotFoundError as e:
            raise StoreOpenError("git executable not found on PATH") from e

    def read(self, object_id: str) -> bytes:
        """Return the full content of a blob."""
        try:
            self._proc.stdin.write(object_id.encode("ascii") + b"\n")
            self._proc.stdin.flush()
            header = self._proc.stdout.readline()
        except (OSError, ValueError) as e:
            raise TreeReadError(f"Failed to request blob {object_id}: {e}") from e

        parts = header.split()
        if len(parts) != 3:
            detail = header.decode("utf-8", errors="replace").strip() or "no response"
            raise TreeReadError(f"Failed to read blob {object_id}: {detail}")

        size = int(parts[2])
        data = self._proc.stdout.read(size)
        trailer = self._proc.stdout.read(1)
        if len(data) != size or trailer != b"\n":
            raise TreeReadError(f"Truncated blob {object_id}: expected {size} bytes, got {len(data)}")
        return data

    def close(self) -> None:
        try:
            self._proc.stdin.close()
        except OSError:
            # cat-file already exited; the broken pipe is expected
            pass
        self._proc.wait()
        self._proc.stdout.close()

    def __enter__(self) -> "BlobReader":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


@dataclass(frozen=True)
class Tree:
    """The file tree of the commit a tag resolves to."""
    store: "VersionStore"
    tag: str
    commit: str

    def files(self) -> Iterator[Tuple[str, FileEntry]]:
        """
        Yield (path, entry) for every file leaf of the tree.
        
        Directories and submodule links are not files and are skipped. Each
        call starts a fresh listing.
        """
        rc, out, err = _run_git(
            self.store.git_dir,
            ["ls-tree", "-r", "-l", "-z", "--full-tree", self.commit],
            binary=True,
        )
        if rc != 0:
            raise TreeReadError(f"Failed to list tree of {self.tag} ({self.commit}): {err}")

        for record in out.split(b"\0"):
            if not record:
                continue
            meta, _, raw_path = record.partition(b"\t")
            mode, kind, object_id, size = meta.split()
            if kind != b"blob":
                continue
            yield (
                raw_path.decode("utf-8", errors="surrogateescape"),
                FileEntry(mode=int(mode, 8), object_id=object_id.decode("ascii"), size=int(size)),
            )


class VersionStore:
    """Translates between tag names and file trees of one repository."""

    def __init__(self, git_dir: Path, logger: Optional[Logger] = None, owned_dir: Optional[Path] = None):
        self.git_dir = Path(git_dir)
        self.logger = logger or Logger("version-store")
        self._owned_dir = owned_dir
        self._closed = False

    @classmethod
    def open(cls, path: Union[str, Path], logger: Optional[Logger] = None) -> "VersionStore":
        """Open an existing clone (working tree or bare) in place."""
        path = Path(path)
        if not path.is_dir():
            raise StoreOpenError(f"Repository path does not exist: {path}")
        rc, _, err = _run_git(path, ["rev-parse", "--git-dir"])
        if rc != 0:
            raise StoreOpenError(f"Not a git repository: {path} ({err})")
        store = cls(path, logger)
        store.logger.info(f"Opened repository {path}")
        return store

    @classmethod
    def clone(cls, source: Union[str, Path], logger: Optional[Logger] = None) -> "VersionStore":
        """
        Load a private mirror of ``source`` (URL or local path).
        
        The mirror lives in a temporary directory owned by the store and is
        removed by close(), so later changes to the source never leak into a
        running process.
        """
        workdir = Path(tempfile.mkdtemp(prefix="module-registry-"))
        target = workdir / "repo.git"
        rc, _, err = _run_git(workdir, ["clone", "--mirror", "--quiet", str(source), str(target)])
        if rc != 0:
            shutil.rmtree(workdir, ignore_errors=True)
            raise StoreOpenError(f"Failed to clone {source}: {err}")
        store = cls(target, logger, owned_dir=workdir)
        store.logger.info(f"Loaded {source} into {target}")
        return store

    def list_tags(self) -> List[str]:
        """All tag names, ordered by ref name."""
        rc, out, err = _run_git(self.git_dir, ["for-each-ref", "--format=%(refname)", TAG_PREFIX.rstrip("/")])
        if rc != 0:
            raise TreeReadError(f"Failed to list tags: {err}")
        return [line[len(TAG_PREFIX):] for line in out.splitlines() if line.startswith(TAG_PREFIX)]

    def resolve_tag(self, name: str) -> Tree:
        """
        Resolve a tag to the tree of its commit.
        
        Annotated tags are peeled to the commit they point at; otherwise the
        tag ref is taken to point at a commit directly.
        """
        ref = TAG_PREFIX + name
        rc, _, _ = _run_git(self.git_dir, ["check-ref-format", ref])
        if rc != 0:
            raise TagNotFound(name)
        rc, target, _ = _run_git(self.git_dir, ["rev-parse", "--verify", "--quiet", ref])
        if rc != 0 or not target:
            raise TagNotFound(name)

        rc, kind, err = _run_git(self.git_dir, ["cat-file", "-t", target])
        if rc != 0:
            raise CommitResolutionError(f"Cannot read object {target} of tag {name}: {err}")

        if kind == "tag":
            rc, commit, err = _run_git(self.git_dir, ["rev-parse", "--verify", "--quiet", f"{target}^{{commit}}"])
            if rc != 0 or not commit:
                raise CommitResolutionError(f"Annotated tag {name} does not point at a commit")
        elif kind == "commit":
            commit = target
        else:
            raise CommitResolutionError(f"Tag {name} points at a {kind}, not a commit")

        rc, _, err = _run_git(self.git_dir, ["cat-file", "-e", f"{commit}^{{tree}}"])
        if rc != 0:
            raise CommitResolutionError(f"Cannot load commit {commit} of tag {name}: {err}")

        self.logger.debug(f"Resolved {name} -> {commit}")
        return Tree(store=self, tag=name, commit=commit)

    def blob_reader(self) -> BlobReader:
        return BlobReader(self.git_dir)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._owned_dir is not None:
            shutil.rmtree(self._owned_dir, ignore_errors=True)
        self.logger.info(f"Closed repository {self.git_dir}")

    def __enter__(self) -> "VersionStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
