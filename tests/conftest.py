"""
Shared pytest fixtures for module registry tests

Provides a real git monorepo built with the git CLI, plus helpers for
reading archives back.
"""

import io
import shutil
import subprocess
import sys
import tarfile
from pathlib import Path
from typing import Dict
from unittest.mock import Mock

import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git executable not available")


# ============================================================================
# Helpers
# ============================================================================

def git(repo: Path, *args: str) -> str:
    """Run a git command in ``repo`` and return its stripped stdout."""
    result = subprocess.run(
        [
            "git",
            "-c", "user.name=Registry Tests",
            "-c", "user.email=tests@example.com",
            "-c", "commit.gpgsign=false",
            "-c", "tag.gpgsign=false",
            "-c", "init.defaultBranch=main",
            *args,
        ],
        cwd=str(repo),
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


def write_files(repo: Path, files: Dict[str, str]) -> None:
    for rel, content in files.items():
        path = repo / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)


def read_archive(data: bytes) -> Dict[str, bytes]:
    """Extract a tar.gz byte string into {entry name: content}."""
    entries = {}
    with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as tar:
        for member in tar.getmembers():
            if member.isfile():
                entries[member.name] = tar.extractfile(member).read()
            else:
                entries[member.name] = member.linkname.encode()
    return entries


def archive_members(data: bytes):
    with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as tar:
        return tar.getmembers()


class FakeBlobReader:
    """In-memory stand-in for BlobReader keyed by object id."""

    def __init__(self, blobs: Dict[str, bytes]):
        self.blobs = blobs
        self.reads = []

    def read(self, object_id: str) -> bytes:
        self.reads.append(object_id)
        return self.blobs[object_id]


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def logger():
    """
    Standard mock logger for all tests.
    """
    from module_registry.utils.logger import Logger
    return Mock(spec=Logger)


@pytest.fixture
def module_repo(tmp_path):
    """
    A module monorepo with two releases.
    
    v1.0.0 (lightweight tag):
        docker/main.tf, docker/README.md, aws/scripts/run.sh (executable),
        .github/workflows/ci.yml, README.md
    v1.1.0 (annotated tag):
        docker/main.tf changed, aws/variables.tf added
    """
    if shutil.which("git") is None:
        pytest.skip("git executable not available")
    
    repo = tmp_path / "modules"
    repo.mkdir()
    git(repo, "init", "-q")
    
    write_files(repo, {
        "docker/main.tf": "resource x {}",
        "docker/README.md": "hi",
        "aws/scripts/run.sh": "#!/bin/sh\necho run\n",
        ".github/workflows/ci.yml": "on: push\n",
        "README.md": "# modules\n",
    })
    (repo / "aws/scripts/run.sh").chmod(0o755)
    git(repo, "add", "-A")
    git(repo, "commit", "-q", "-m", "first release")
    git(repo, "tag", "v1.0.0")
    
    write_files(repo, {
        "docker/main.tf": "resource y {}",
        "aws/variables.tf": "variable region {}",
    })
    git(repo, "add", "-A")
    git(repo, "commit", "-q", "-m", "second release")
    git(repo, "tag", "-a", "v1.1.0", "-m", "release 1.1.0")
    
    return repo


@pytest.fixture
def store(module_repo, logger):
    """VersionStore opened on the module monorepo."""
    from module_registry.store import VersionStore
    
    with VersionStore.open(module_repo, logger=logger) as s:
        yield s
