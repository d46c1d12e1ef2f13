"""Release archive acquisition.

Downloads the tagged release tarball, unpacks it into a staging directory
under the install root and renames the versioned top-level directory to the
configured source name. An existing root/source is refused before download,
and the rename happens only after extraction completed, so a failed run
never writes into root/source.
"""

import asyncio
import os
import shutil
import tarfile
import tempfile
import zlib
from pathlib import Path

import httpx

from .exceptions import ConfigurationError
from .exceptions import ExtractionError
from .exceptions import FilesystemError
from .exceptions import NetworkError
from .protocols import AcquisitionLog
from .schema import DEFAULT_UPSTREAM
from .schema import Configuration
from .schema import Upstream

# Hard limit for the whole download (connect + body), not configurable
RELEASE_TIMEOUT = 20.0
CHUNK_SIZE = 64 * 1024


async def fetch_release(
    config: Configuration,
    log: AcquisitionLog,
    upstream: Upstream = DEFAULT_UPSTREAM,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Path:
    """
    Download, extract and rename the configured release.

    Steps (any failure aborts, nothing is retried):
    1. Refuse to run if root/<source> already exists
    2. GET <release_base_url><version>.tar.gz (20 second deadline)
    3. Stream body to root/dojo-v<version>.tar.gz
    4. Extract into a staging directory under root
    5. Rename <staging>/<archive_prefix>-<version> to root/<source>

    Args:
        config: Install configuration (read only)
        log: Logging context
        upstream: Release location
        transport: Optional httpx transport (tests inject a MockTransport)

    Returns:
        Path to the source directory (config.source_path)

    Raises:
        ConfigurationError: No version configured
        NetworkError: Request failed, timed out or returned a non-200 status
        FilesystemError: root/<source> already exists, tarball could not be written,
            or the rename failed
        ExtractionError: Archive is malformed or escapes the root
    """
    log.status("Downloading the configured release of DefectDojo")

    if not config.version:
        raise ConfigurationError(
            "No release version configured for a release install",
            context={"source_install": config.source_install},
        )

    url = upstream.release_url(config.version)
    tarball = config.tarball_path
    log.trace(f"Release download URL is {url}")
    log.trace(f"File path to write tarball is {tarball}")

    _ensure_absent(config.source_path)

    await _download(url, tarball, log, transport)

    # Unpack into a staging directory so nothing lands at root/source before the rename
    try:
        staging = tempfile.TemporaryDirectory(prefix=".dojo-extract-", dir=config.root)
    except OSError as e:
        raise FilesystemError(
            f"Failed to create staging directory in {config.root}: {e}",
            context={"path": str(config.root)},
        ) from e

    with staging as staging_dir:
        log.trace(f"Extracting tarball into staging directory {staging_dir}")
        extract_tarball(Path(staging_dir), tarball, log)

        log.trace("Renaming source directory to the non-versioned name")
        versioned = Path(staging_dir) / f"{upstream.archive_prefix}-{config.version}"
        _rename_into_place(versioned, config.source_path)

    log.status("Successfully downloaded and extracted the DefectDojo release file")
    return config.source_path


async def _download(
    url: str,
    tarball: Path,
    log: AcquisitionLog,
    transport: httpx.AsyncBaseTransport | None,
) -> None:
    log.trace(f"Downloading release from {url} with a {RELEASE_TIMEOUT:.0f} second timeout")
    try:
        async with asyncio.timeout(RELEASE_TIMEOUT):
            async with httpx.AsyncClient(
                timeout=RELEASE_TIMEOUT, follow_redirects=True, transport=transport
            ) as client:
                async with client.stream("GET", url) as response:
                    log.trace(f"Status of release download response was {response.status_code}")
                    if response.status_code != httpx.codes.OK:
                        raise NetworkError(
                            f"Release download from {url} returned HTTP {response.status_code}",
                            context={"url": url, "status": response.status_code},
                        )
                    await _write_body(response, tarball, log)
    except TimeoutError as e:
        raise NetworkError(
            f"Release download from {url} timed out after {RELEASE_TIMEOUT:.0f} seconds",
            context={"url": url},
        ) from e
    except httpx.HTTPError as e:
        raise NetworkError(f"Error downloading from {url}: {e}", context={"url": url}) from e


async def _write_body(response: httpx.Response, tarball: Path, log: AcquisitionLog) -> None:
    log.trace("Creating file for downloaded tarball")
    try:
        out = open(tarball, "wb")
    except OSError as e:
        raise FilesystemError(f"Failed to create tarball {tarball}: {e}", context={"path": str(tarball)}) from e

    log.trace("Writing downloaded content to tarball file")
    with out:
        async for chunk in response.aiter_bytes(CHUNK_SIZE):
            try:
                out.write(chunk)
            except OSError as e:
                raise FilesystemError(
                    f"Failed to write tarball {tarball}: {e}", context={"path": str(tarball)}
                ) from e


def _member_target(root: Path, name: str) -> Path:
    """Resolve where an archive member lands, rejecting anything outside root."""
    if os.path.isabs(name):
        raise ExtractionError(f"Archive entry has an absolute path: {name}", context={"entry": name})

    target = (root / name).resolve()
    if not target.is_relative_to(root):
        raise ExtractionError(
            f"Archive entry escapes {root}: {name}",
            context={"entry": name, "root": str(root)},
        )
    return target


def extract_tarball(root: Path, archive: Path, log: AcquisitionLog | None = None) -> list[Path]:
    """
    Extract a gzipped tarball into root.

    Only directories and regular files are unpacked; other member types are
    skipped. Every entry is checked before anything is written, so an
    archive containing a path traversal writes nothing.

    Args:
        root: Directory to extract into
        archive: Path to the .tar.gz file
        log: Optional logging context

    Returns:
        Paths that were created, in archive order

    Raises:
        FilesystemError: Archive file cannot be opened
        ExtractionError: Malformed archive, traversal attempt or write failure
    """
    root = root.resolve()
    context = {"archive": str(archive), "root": str(root)}

    try:
        tar = tarfile.open(archive, "r:gz")
    except tarfile.TarError as e:
        raise ExtractionError(f"Malformed archive {archive}: {e}", context=context) from e
    except OSError as e:
        raise FilesystemError(f"Failed to open archive {archive}: {e}", context=context) from e

    extracted: list[Path] = []
    with tar:
        try:
            members = [(member, _member_target(root, member.name)) for member in tar.getmembers()]

            for member, target in members:
                if member.isdir():
                    target.mkdir(parents=True, exist_ok=True)
                elif member.isfile():
                    target.parent.mkdir(parents=True, exist_ok=True)
                    source = tar.extractfile(member)
                    if source is None:
                        continue
                    with source, open(target, "wb") as out:
                        shutil.copyfileobj(source, out)
                    target.chmod(member.mode & 0o777)
                else:
                    if log is not None:
                        log.trace(f"Skipping unsupported archive entry {member.name}")
                    continue
                extracted.append(target)
        except (tarfile.TarError, EOFError, zlib.error) as e:
            raise ExtractionError(f"Malformed archive {archive}: {e}", context=context) from e
        except OSError as e:
            raise ExtractionError(f"Failed to extract {archive}: {e}", context=context) from e

    return extracted


def _ensure_absent(target: Path) -> None:
    if target.exists():
        raise FilesystemError(
            f"Source directory {target} already exists, remove it before installing again",
            context={"path": str(target)},
        )


def _rename_into_place(versioned: Path, target: Path) -> None:
    context = {"from": str(versioned), "to": str(target)}

    if not versioned.is_dir():
        raise FilesystemError(f"Extracted release directory not found: {versioned}", context=context)
    _ensure_absent(target)

    try:
        versioned.rename(target)
    except OSError as e:
        raise FilesystemError(f"Failed to rename {versioned} to {target}: {e}", context=context) from e
