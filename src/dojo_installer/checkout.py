"""Source checkout via git.

Clones the repository into root/source and pins it to either an exact commit
or a branch head. Commit always wins over branch.

Git runs as a subprocess with no timeout: a hung transport blocks the
installer until git gives up on its own.
"""

import asyncio
from pathlib import Path

from .exceptions import ConfigurationError
from .exceptions import FilesystemError
from .exceptions import SourceControlError
from .protocols import AcquisitionLog
from .schema import DEFAULT_UPSTREAM
from .schema import Configuration
from .schema import Upstream


async def _git(*args: str, cwd: Path | None = None, context: dict | None = None) -> str:
    """Run a git command and return its stdout.

    Raises:
        SourceControlError: git is missing or exits non-zero (stderr included)
    """
    cmd = ["git", *args]
    context = {**(context or {}), "command": " ".join(cmd)}

    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            cwd=cwd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as e:
        raise SourceControlError("git executable not found on PATH", context=context) from e

    stdout, stderr = await proc.communicate()
    if proc.returncode != 0:
        msg = f"Failed to run {' '.join(cmd)}"
        detail = stderr.decode(errors="replace").strip()
        if detail:
            msg += f": {detail}"
        raise SourceControlError(msg, context={**context, "returncode": proc.returncode})

    return stdout.decode(errors="replace").strip()


async def head_commit(repo_path: Path) -> str:
    """Full SHA of the commit checked out in repo_path."""
    return await _git("rev-parse", "HEAD", cwd=repo_path, context={"path": str(repo_path)})


async def current_branch(repo_path: Path) -> str:
    """Name of the checked out branch ("HEAD" when detached)."""
    return await _git("rev-parse", "--abbrev-ref", "HEAD", cwd=repo_path, context={"path": str(repo_path)})


def _ensure_directory(path: Path, log: AcquisitionLog) -> None:
    log.trace("Creating source directory if it doesn't exist already")
    try:
        path.mkdir(mode=0o755, parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemError(f"Failed to create source directory {path}: {e}", context={"path": str(path)}) from e


async def checkout_source(
    config: Configuration,
    log: AcquisitionLog,
    upstream: Upstream = DEFAULT_UPSTREAM,
) -> Path:
    """
    Clone the repository into root/source at the configured commit or branch.

    Decision:
    - source_commit set: full clone, then check out that commit (branch ignored)
    - else source_branch set: single-branch clone of refs/heads/<branch>
    - else: ConfigurationError, nothing touched

    A failed clone or checkout leaves whatever git wrote behind; callers
    must treat the directory as unusable.

    Args:
        config: Install configuration (read only)
        log: Logging context
        upstream: Repository location

    Returns:
        Path to the working tree (config.source_path)

    Raises:
        ConfigurationError: Neither commit nor branch configured, or the commit looks like an option
        FilesystemError: Source directory cannot be created
        SourceControlError: Clone or checkout failed
    """
    log.status("Downloading DefectDojo source as a branch or commit from the repo directly")

    commit = config.source_commit
    branch = config.source_branch
    src_path = config.source_path

    log.trace("Determining if a commit or branch will be checked out of the repo")
    if not commit and not branch:
        raise ConfigurationError(
            "Both source commit and branch have empty or nonsensical values configured. "
            f"Source commit was configured as {commit!r} and branch was configured as {branch!r}",
            context={"commit": commit, "branch": branch},
        )
    if commit.startswith("-"):
        raise ConfigurationError(
            f"Source commit {commit!r} is not a commit reference",
            context={"commit": commit},
        )

    _ensure_directory(src_path, log)

    if commit:
        await _checkout_commit(upstream.clone_url, src_path, commit, log)
    else:
        await _checkout_branch(upstream.clone_url, src_path, branch, log)

    log.status("Successfully checked out the configured DefectDojo source")
    return src_path


async def _checkout_commit(clone_url: str, src_path: Path, commit: str, log: AcquisitionLog) -> None:
    log.status(f"DefectDojo will be installed from commit {commit}")
    context = {"url": clone_url, "path": str(src_path), "commit": commit}

    log.trace(f"Initial clone of {clone_url}")
    await _git("clone", "--quiet", "--", clone_url, str(src_path), context=context)

    log.trace("Checking out the commit in the working tree")
    await _git(
        "-c",
        "advice.detachedHead=false",
        "checkout",
        "--quiet",
        commit,
        "--",
        cwd=src_path,
        context=context,
    )


async def _checkout_branch(clone_url: str, src_path: Path, branch: str, log: AcquisitionLog) -> None:
    log.status(f"DefectDojo will be installed from branch {branch}")
    context = {"url": clone_url, "path": str(src_path), "branch": branch, "reference": f"refs/heads/{branch}"}

    log.trace(f"Cloning branch {branch}")
    await _git(
        "clone",
        "--quiet",
        "--single-branch",
        "--branch",
        branch,
        "--",
        clone_url,
        str(src_path),
        context=context,
    )
