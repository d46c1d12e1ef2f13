"""Shared fixtures: recording log sink, tarball builder, local git upstream."""

import io
import shutil
import subprocess
import tarfile
from pathlib import Path

import pytest
from dojo_installer import Upstream

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git executable not available")


class RecordingLog:
    """AcquisitionLog that keeps every message for assertions."""

    def __init__(self):
        self.messages: list[tuple[str, str]] = []

    def trace(self, message: str) -> None:
        self.messages.append(("trace", message))

    def status(self, message: str) -> None:
        self.messages.append(("status", message))

    def warning(self, message: str) -> None:
        self.messages.append(("warning", message))

    def error(self, message: str) -> None:
        self.messages.append(("error", message))

    def text(self, level: str | None = None) -> str:
        return "\n".join(m for lvl, m in self.messages if level is None or lvl == level)


@pytest.fixture
def log():
    return RecordingLog()


def build_tarball(entries: dict[str, bytes | None]) -> bytes:
    """Build a .tar.gz in memory. A None value makes a directory entry."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for name, content in entries.items():
            info = tarfile.TarInfo(name)
            if content is None:
                info.type = tarfile.DIRTYPE
                info.mode = 0o755
                tar.addfile(info)
            else:
                info.size = len(content)
                info.mode = 0o644
                tar.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


def _git(repo: Path, *args: str) -> str:
    completed = subprocess.run(
        ["git", "-c", "user.name=Test", "-c", "user.email=test@example.com", *args],
        cwd=repo,
        check=True,
        capture_output=True,
        text=True,
    )
    return completed.stdout.strip()


@pytest.fixture
def git_upstream(tmp_path):
    """Local repository with two commits on main and a release/2.0 branch.

    Returns (Upstream pointing at it, {"first": sha, "main": sha, "release": sha}).
    """
    repo = tmp_path / "upstream"
    repo.mkdir()
    _git(repo, "init", "--quiet")
    _git(repo, "checkout", "--quiet", "-b", "main")

    (repo / "README.md").write_text("first\n")
    _git(repo, "add", "README.md")
    _git(repo, "commit", "--quiet", "-m", "first")
    first = _git(repo, "rev-parse", "HEAD")

    (repo / "README.md").write_text("second\n")
    _git(repo, "commit", "--quiet", "-am", "second")
    main = _git(repo, "rev-parse", "HEAD")

    _git(repo, "checkout", "--quiet", "-b", "release/2.0")
    (repo / "RELEASE").write_text("2.0\n")
    _git(repo, "add", "RELEASE")
    _git(repo, "commit", "--quiet", "-m", "release")
    release = _git(repo, "rev-parse", "HEAD")
    _git(repo, "checkout", "--quiet", "main")

    return Upstream(clone_url=str(repo)), {"first": first, "main": main, "release": release}
