"""Operator-facing output and the install log file.

Console output mirrors what is written to the log: section headers, status
lines and loud error blocks go to stdout unless quiet, and every message is
also recorded through a stdlib logger writing to a per-run log file.
"""

import logging
import os
import time
from pathlib import Path

from .exceptions import FilesystemError

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

LOG_FORMAT = "%(levelname)-8s %(asctime)s %(message)s"
LOG_DATE_FORMAT = "%Y/%m/%d %H:%M:%S"

HELP_URL = "https://github.com/mtesauro/godojo"

BANNER = r"""
        ____       ____          __     ____          _
       / __ \___  / __/__  _____/ /_   / __ \____    (_)___
      / / / / _ \/ /_/ _ \/ ___/ __/  / / / / __ \  / / __ \
     / /_/ /  __/ __/  __/ /__/ /_   / /_/ / /_/ / / / /_/ /
    /_____/\___/_/  \___/\___/\__/  /_____/\____/_/ /\____/
                                               /___/
"""

_RULE = "=" * 78
_ALARM = "#" * 78


class InstallLog:
    """
    Logging context for one installer run (implements AcquisitionLog).

    Constructed once by the caller and passed into acquisition, instead of
    module-level logger globals.
    """

    def __init__(self, logger: logging.Logger, quiet: bool = False, trace_enabled: bool = False):
        self.logger = logger
        self.quiet = quiet
        self.trace_enabled = trace_enabled

    def section(self, message: str) -> None:
        if not self.quiet:
            print(f"\n{_RULE}\n  {message}\n{_RULE}\n")
        self.logger.info(f"SECTION: {message}")

    def status(self, message: str) -> None:
        if not self.quiet:
            print(message)
        self.logger.info(message)

    def warning(self, message: str) -> None:
        self.logger.warning(message)

    def error(self, message: str) -> None:
        if not self.quiet:
            print(f"\n{_ALARM}\n  ERROR: {message}\n{_ALARM}\n")
        self.logger.error(message)

    def trace(self, message: str) -> None:
        if self.trace_enabled:
            self.logger.log(TRACE, message)


def setup_install_log(
    log_dir: Path = Path("logs"),
    quiet: bool = False,
    trace: bool = False,
    now: float | None = None,
) -> InstallLog:
    """Create the per-run log file and return a logging context writing to it.

    Args:
        log_dir: Directory for install logs (created if missing)
        quiet: Suppress console output
        trace: Record TRACE messages
        now: Timestamp (seconds since epoch) used in the file name, defaults to now

    Returns:
        InstallLog bound to logs/dojo-install_<unix-nanoseconds>.log

    Raises:
        FilesystemError: If the directory or file cannot be created
    """
    stamp = time.time_ns() if now is None else int(now * 1_000_000_000)
    log_path = log_dir / f"dojo-install_{stamp}.log"

    try:
        log_dir.mkdir(mode=0o755, parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    except OSError as e:
        raise FilesystemError(
            f"Failed to open log file {log_path}: {e}",
            context={"path": str(log_path)},
        ) from e

    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))

    logger = logging.getLogger(f"dojo_installer.run.{stamp}")
    logger.setLevel(TRACE if trace else logging.INFO)
    logger.addHandler(handler)
    logger.propagate = False

    install_log = InstallLog(logger, quiet=quiet, trace_enabled=trace)
    install_log.trace("Logging established, trace log begins here")
    return install_log


def print_banner() -> None:
    print(BANNER)
    print("  Welcome to goDojo, the official way to install DefectDojo.")
    print("  For more information on how goDojo does an install, see:")
    print(f"  {HELP_URL}\n")


def running_as_root(log: InstallLog | None = None) -> bool:
    """Check for root privileges; later install stages need them."""
    is_root = os.geteuid() == 0
    if not is_root and log is not None:
        log.warning("Installer is not running as root, later install stages may fail")
    return is_root
