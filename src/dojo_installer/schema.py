"""Install configuration schema.

The configuration is built once by the caller and handed to the acquirers
read-only, so the models are frozen.
"""

from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import field_validator


class Configuration(BaseModel):
    """
    Settings consumed by source acquisition.

    `source_install` selects the strategy: True clones the git repository,
    False downloads the release archive for `version`.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    root: Path = Path("/opt/dojo")
    source: str = "django-DefectDojo"
    version: str = ""

    source_install: bool = False
    source_commit: str = ""
    source_branch: str = ""

    @field_validator("source")
    @classmethod
    def _single_component(cls, value: str) -> str:
        if not value or value in (".", "..") or "/" in value or "\\" in value:
            raise ValueError(f"source must be a plain directory name, got {value!r}")
        return value

    @property
    def source_path(self) -> Path:
        """Final location of the source tree: root/source."""
        return self.root / self.source

    @property
    def tarball_path(self) -> Path:
        """Where the release archive for `version` is written."""
        return self.root / f"dojo-v{self.version}.tar.gz"


class Upstream(BaseModel):
    """Where releases and the repository are fetched from."""

    model_config = ConfigDict(frozen=True)

    release_base_url: str = "https://github.com/DefectDojo/django-DefectDojo/archive/"
    clone_url: str = "https://github.com/DefectDojo/django-DefectDojo.git"
    # Top-level directory name inside release archives is "<archive_prefix>-<version>"
    archive_prefix: str = "django-DefectDojo"

    def release_url(self, version: str) -> str:
        return f"{self.release_base_url}{version}.tar.gz"


DEFAULT_UPSTREAM = Upstream()
