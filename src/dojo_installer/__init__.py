"""dojo-installer - DefectDojo source acquisition.

Public API: pick a release archive or a git checkout from an immutable
Configuration and materialize the source tree at root/source.
"""

from .archive import extract_tarball
from .archive import fetch_release
from .checkout import checkout_source
from .checkout import current_branch
from .checkout import head_commit
from .exceptions import AcquisitionError
from .exceptions import ConfigurationError
from .exceptions import ExtractionError
from .exceptions import FilesystemError
from .exceptions import NetworkError
from .exceptions import SourceControlError
from .installer import acquire_source
from .installer import run_install
from .protocols import AcquisitionLog
from .record import InstallRecord
from .record import InstallRecordEntry
from .reporter import InstallLog
from .reporter import print_banner
from .reporter import running_as_root
from .reporter import setup_install_log
from .schema import DEFAULT_UPSTREAM
from .schema import Configuration
from .schema import Upstream

__all__ = [
    # Configuration
    "Configuration",
    "Upstream",
    "DEFAULT_UPSTREAM",
    # Acquisition
    "acquire_source",
    "run_install",
    "fetch_release",
    "extract_tarball",
    "checkout_source",
    "head_commit",
    "current_branch",
    # Logging
    "AcquisitionLog",
    "InstallLog",
    "setup_install_log",
    "print_banner",
    "running_as_root",
    # Install record
    "InstallRecord",
    "InstallRecordEntry",
    # Exceptions
    "AcquisitionError",
    "ConfigurationError",
    "NetworkError",
    "FilesystemError",
    "ExtractionError",
    "SourceControlError",
]

__version__ = "0.1.0"
