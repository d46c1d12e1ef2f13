"""Install record file.

Tracks which release or git revision produced each source directory, so a
later run (or an operator) can tell how root/source came to be.

Record format (JSON):
{
  "version": "1.0",
  "installs": {
    "django-DefectDojo": {
      "name": "django-DefectDojo",
      "method": "source",
      "reference": "dev",
      "commit": "abc123...",
      "path": "/opt/dojo/django-DefectDojo",
      "installed_at": "2025-10-26T12:00:00+00:00"
    }
  }
}
"""

import json
import logging
from dataclasses import asdict
from dataclasses import dataclass
from datetime import UTC
from datetime import datetime
from pathlib import Path

from .exceptions import FilesystemError

logger = logging.getLogger(__name__)


@dataclass
class InstallRecordEntry:
    """One acquired source tree."""

    name: str
    method: str
    reference: str
    commit: str | None
    path: str
    installed_at: str

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "InstallRecordEntry":
        return cls(**data)


class InstallRecord:
    """Install record manager (record path injected by the caller)."""

    VERSION = "1.0"

    def __init__(self, record_path: Path):
        self.record_path = record_path
        self._data: dict[str, InstallRecordEntry] = {}
        self._load()

    def _load(self) -> None:
        """Load record file if it exists; an unreadable file counts as empty."""
        if not self.record_path.exists():
            self._data = {}
            return

        try:
            with open(self.record_path) as f:
                data = json.load(f)

            if not isinstance(data, dict):
                raise ValueError(f"expected a JSON object, got {type(data).__name__}")

            if data.get("version") != self.VERSION:
                logger.warning(f"Install record version mismatch: expected {self.VERSION}, got {data.get('version')}")

            installs = data.get("installs", {})
            if not isinstance(installs, dict):
                raise ValueError(f"expected \"installs\" to be an object, got {type(installs).__name__}")

            self._data = {name: InstallRecordEntry.from_dict(entry) for name, entry in installs.items()}
            logger.debug(f"Loaded {len(self._data)} installs from {self.record_path}")

        except (OSError, ValueError, TypeError) as e:
            logger.error(f"Failed to load install record {self.record_path}: {e}")
            self._data = {}

    def _save(self) -> None:
        data = {
            "version": self.VERSION,
            "installs": {name: entry.to_dict() for name, entry in self._data.items()},
        }

        try:
            self.record_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.record_path, "w") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            raise FilesystemError(
                f"Failed to save install record {self.record_path}: {e}",
                context={"path": str(self.record_path)},
            ) from e
        logger.debug(f"Saved install record with {len(self._data)} installs")

    def add_entry(
        self,
        name: str,
        method: str,
        reference: str,
        commit: str | None,
        path: Path,
    ) -> InstallRecordEntry:
        """
        Add or replace the record for a source directory.

        Args:
            name: Source directory name
            method: "release" or "source"
            reference: Release version, commit or branch that was requested
            commit: Resolved git commit SHA (None for release archives)
            path: Location of the source tree
        """
        entry = InstallRecordEntry(
            name=name,
            method=method,
            reference=reference,
            commit=commit,
            path=str(path),
            installed_at=datetime.now(UTC).isoformat(),
        )
        self._data[name] = entry
        self._save()
        return entry

    def get_entry(self, name: str) -> InstallRecordEntry | None:
        return self._data.get(name)

    def list_entries(self) -> list[InstallRecordEntry]:
        return list(self._data.values())

    def is_installed(self, name: str) -> bool:
        return name in self._data
