"""Tests for InstallRecord with injected record path."""

import tempfile
from pathlib import Path

import pytest
from dojo_installer import FilesystemError
from dojo_installer import InstallRecord
from dojo_installer import InstallRecordEntry


def test_record_with_injected_path():
    """Record uses injected path and is not created until first save."""
    with tempfile.TemporaryDirectory() as tmpdir:
        record_path = Path(tmpdir) / "custom.json"

        record = InstallRecord(record_path=record_path)

        assert record.record_path == record_path
        assert not record_path.exists()


def test_add_and_get_entry():
    with tempfile.TemporaryDirectory() as tmpdir:
        record = InstallRecord(record_path=Path(tmpdir) / "record.json")

        record.add_entry(
            name="django-DefectDojo",
            method="source",
            reference="dev",
            commit="abc123",
            path=Path("/opt/dojo/django-DefectDojo"),
        )

        entry = record.get_entry("django-DefectDojo")
        assert entry is not None
        assert entry.method == "source"
        assert entry.reference == "dev"
        assert entry.commit == "abc123"
        assert entry.path == "/opt/dojo/django-DefectDojo"
        assert "T" in entry.installed_at  # ISO format


def test_add_entry_replaces_previous_install():
    with tempfile.TemporaryDirectory() as tmpdir:
        record = InstallRecord(record_path=Path(tmpdir) / "record.json")

        record.add_entry(name="dojo", method="release", reference="1.2.3", commit=None, path=Path("/opt/dojo/dojo"))
        record.add_entry(name="dojo", method="release", reference="1.2.4", commit=None, path=Path("/opt/dojo/dojo"))

        entries = record.list_entries()
        assert len(entries) == 1
        assert entries[0].reference == "1.2.4"


def test_record_persistence():
    """Record file persists across instances."""
    with tempfile.TemporaryDirectory() as tmpdir:
        record_path = Path(tmpdir) / "nested" / "record.json"

        first = InstallRecord(record_path=record_path)
        first.add_entry(name="dojo", method="release", reference="1.2.3", commit=None, path=Path("/opt/dojo/dojo"))

        second = InstallRecord(record_path=record_path)

        assert second.is_installed("dojo")
        entry = second.get_entry("dojo")
        assert entry is not None
        assert entry == InstallRecordEntry.from_dict(first.get_entry("dojo").to_dict())


def test_corrupt_record_is_treated_as_empty(tmp_path):
    record_path = tmp_path / "record.json"
    record_path.write_text("{not json")

    record = InstallRecord(record_path=record_path)

    assert record.list_entries() == []


def test_save_failure_raises(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory")
    record = InstallRecord(record_path=blocker / "record.json")

    with pytest.raises(FilesystemError, match="Failed to save install record"):
        record.add_entry(name="dojo", method="release", reference="1.2.3", commit=None, path=tmp_path)


@pytest.mark.parametrize("contents", ["[]", "null", '{"version": "1.0", "installs": []}', '{"installs": {"dojo": 1}}'])
def test_wrong_shape_record_is_treated_as_empty(tmp_path, contents):
    """Valid JSON that is not a record object loads as an empty record."""
    record_path = tmp_path / "record.json"
    record_path.write_text(contents)

    record = InstallRecord(record_path=record_path)

    assert record.list_entries() == []
    record.add_entry(name="dojo", method="release", reference="1.2.3", commit=None, path=tmp_path / "dojo")
    assert InstallRecord(record_path=record_path).is_installed("dojo")
