"""Source acquisition dispatch.

acquire_source picks exactly one strategy from the configuration and awaits
it. run_install is the caller side: it logs the outcome, records a
successful install and turns failure into an exit status.
"""

from datetime import datetime
from pathlib import Path

import httpx

from .archive import fetch_release
from .checkout import checkout_source
from .checkout import head_commit
from .exceptions import AcquisitionError
from .protocols import AcquisitionLog
from .record import InstallRecord
from .reporter import InstallLog
from .schema import DEFAULT_UPSTREAM
from .schema import Configuration
from .schema import Upstream

START_TIME_FORMAT = "%a %b %d, %Y %H:%M:%S %Z"


async def acquire_source(
    config: Configuration,
    log: AcquisitionLog,
    upstream: Upstream = DEFAULT_UPSTREAM,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Path:
    """
    Materialize the source tree at config.source_path.

    source_install=True clones the repository, otherwise the release archive
    is downloaded. The choice is made once and never revisited.

    Args:
        config: Install configuration (read only)
        log: Logging context
        upstream: Release and repository locations
        transport: Optional httpx transport for the release download

    Returns:
        Path to the source directory

    Raises:
        AcquisitionError: Delegate failed (subclass kept as raised); unexpected
            exceptions are wrapped with the original as __cause__
    """
    log.trace(f"Determining if this is a source or release install: source_install is {config.source_install}")

    try:
        if config.source_install:
            log.trace("Dojo will be installed from source")
            return await checkout_source(config, log, upstream)

        log.trace("Dojo will be installed from a release tarball")
        return await fetch_release(config, log, upstream, transport)

    except Exception as e:
        if isinstance(e, AcquisitionError):
            raise
        raise AcquisitionError(
            f"Failed to acquire source: {e}",
            context={"source_path": str(config.source_path), "source_install": config.source_install},
        ) from e


async def run_install(
    config: Configuration,
    log: InstallLog,
    upstream: Upstream = DEFAULT_UPSTREAM,
    record: InstallRecord | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    """
    Run the acquisition stage of the installer.

    Args:
        config: Install configuration
        log: Logging context for the run
        upstream: Release and repository locations
        record: Optional install record to update on success
        transport: Optional httpx transport for the release download

    Returns:
        Exit status: 0 on success, 1 when acquisition failed

    Example:
        >>> log = setup_install_log(trace=True)
        >>> config = Configuration(root=Path("/opt/dojo"), version="1.2.3")
        >>> sys.exit(asyncio.run(run_install(config, log)))
    """
    started = datetime.now().astimezone()
    log.section(f"Starting the dojo install at {started.strftime(START_TIME_FORMAT)}")

    log.section("Downloading the source for DefectDojo")

    try:
        source_path = await acquire_source(config, log, upstream, transport)
    except AcquisitionError as e:
        how = "source" if config.source_install else "a release tarball"
        log.error(f"Error attempting to install Dojo from {how} was:\n    {e}")
        log.trace(f"Error context: {e.context}")
        return 1

    if record is not None:
        method = "source" if config.source_install else "release"
        reference = (config.source_commit or config.source_branch) if config.source_install else config.version

        try:
            commit = await head_commit(source_path) if config.source_install else None
            record.add_entry(name=config.source, method=method, reference=reference, commit=commit, path=source_path)
        except AcquisitionError as e:
            log.error(f"Error recording the install was:\n    {e}")
            return 1
        log.trace(f"Recorded {method} install of {reference} in {record.record_path}")

    return 0
