"""Source acquisition exceptions.

Every failure carries a human-readable message plus the context needed to
diagnose it (URL, path, commit, branch).
"""


class AcquisitionError(Exception):
    """Base exception for source acquisition."""

    def __init__(self, message: str, context: dict | None = None):
        """Initialize with message and optional context.

        Args:
            message: Human-readable error message
            context: Optional dict with additional context (url, path, commit, etc.)
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}


class ConfigurationError(AcquisitionError):
    """Configuration cannot drive an acquisition (e.g. no commit and no branch)."""


class NetworkError(AcquisitionError):
    """Release download failed, timed out, or returned a non-success status."""


class FilesystemError(AcquisitionError):
    """Creating, writing or renaming something on disk failed."""


class ExtractionError(AcquisitionError):
    """Release archive is malformed or tries to escape the install root."""


class SourceControlError(AcquisitionError):
    """Git clone or checkout failed."""
