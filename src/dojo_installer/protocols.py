"""Protocols for the logging sink injected into acquisition.

Acquirers never reach for a process-wide logger; callers pass a sink in.
InstallLog (reporter.py) is the stock implementation, tests use recorders.
"""

from typing import Protocol
from typing import runtime_checkable


@runtime_checkable
class AcquisitionLog(Protocol):
    """Leveled text sink used by the acquirers.

    Messages are for audit and debugging only, never for control flow.
    """

    def trace(self, message: str) -> None:
        """Record a step-by-step detail (only kept when tracing is on)."""
        ...

    def status(self, message: str) -> None:
        """Report progress to the operator."""
        ...

    def warning(self, message: str) -> None:
        """Report something suspicious that does not stop the install."""
        ...

    def error(self, message: str) -> None:
        """Report a failure."""
        ...
