"""Tests for saved test persistence."""

import errno
import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from examgen_core.errors import (
    StorageQuotaExceeded,
    StorageReadCorrupt,
    StorageWriteFailure,
)
from examgen_core.schemas.artifacts import SavedArtifact
from examgen_core.schemas.generation import GenerationInput
from examgen_core.storage.kv import FileKeyValueStore, KeyValueStore, MemoryKeyValueStore
from examgen_core.storage.store import (
    QUOTA_MESSAGE,
    WRITE_FAILURE_MESSAGE,
    PersistenceStore,
)


class BrokenKeyValueStore(KeyValueStore):
    """Store whose writes always fail with a given error."""

    def __init__(self, error: Exception):
        self.error = error

    def get(self, key: str) -> str | None:
        return None

    def set(self, key: str, value: str) -> None:
        raise self.error

    def delete(self, key: str) -> None:
        pass


def _artifact(exam, subject: str = "Toán") -> SavedArtifact:
    return SavedArtifact.create(
        exam,
        GenerationInput(
            subject=subject, extracted_text="lesson text", page_images=["abc"]
        ),
        now=datetime(2024, 5, 1, 8, 30, tzinfo=timezone.utc),
    )


class TestSavedArtifact:
    """Tests for SavedArtifact creation."""

    def test_content_stripped(self, exam) -> None:
        """Test that document text and images are not stored."""
        artifact = _artifact(exam)

        assert artifact.input_parameters.extracted_text == ""
        assert artifact.input_parameters.page_images == []
        assert artifact.input_parameters.subject == "Toán"
        assert artifact.test_data == exam

    def test_display_name(self, exam) -> None:
        """Test that the name carries the subject and creation time."""
        artifact = _artifact(exam, subject="Tiếng Việt")

        assert artifact.display_name.startswith("Đề Tiếng Việt - ")
        assert "/2024 " in artifact.display_name

    def test_unique_ids(self, exam) -> None:
        """Test that every artifact gets its own id."""
        assert _artifact(exam).id != _artifact(exam).id


class TestPersistenceStore:
    """Tests for PersistenceStore."""

    def test_empty_store(self) -> None:
        """Test that an absent key reads as an empty list."""
        store = PersistenceStore(MemoryKeyValueStore())

        assert store.list() == []
        assert store.read_error is None

    def test_save_prepends(self, exam) -> None:
        """Test that the newest artifact comes first."""
        store = PersistenceStore(MemoryKeyValueStore())
        first, second = _artifact(exam), _artifact(exam)

        assert store.save(first).ok
        assert store.save(second).ok

        assert [a.id for a in store.list()] == [second.id, first.id]

    def test_order_survives_reload(self, exam) -> None:
        """Test that a fresh store reads the same most-recent-first order."""
        kv = MemoryKeyValueStore()
        store = PersistenceStore(kv)
        saved = [_artifact(exam) for _ in range(3)]
        for artifact in saved:
            store.save(artifact)

        reopened = PersistenceStore(kv)

        assert [a.id for a in reopened.list()] == [a.id for a in reversed(saved)]
        assert reopened.list()[0].test_data == exam

    def test_stored_as_json_list(self, exam) -> None:
        """Test that the whole list is stored under one key."""
        kv = MemoryKeyValueStore()
        PersistenceStore(kv, key="my_tests").save(_artifact(exam))

        payload = json.loads(kv.get("my_tests"))

        assert isinstance(payload, list)
        assert payload[0]["input_parameters"]["page_images"] == []

    def test_delete(self, exam) -> None:
        """Test that deleting removes exactly one artifact."""
        kv = MemoryKeyValueStore()
        store = PersistenceStore(kv)
        keep, drop = _artifact(exam), _artifact(exam)
        store.save(keep)
        store.save(drop)

        assert store.delete(drop.id).ok

        assert [a.id for a in store.list()] == [keep.id]
        assert [a.id for a in PersistenceStore(kv).list()] == [keep.id]

    def test_delete_unknown_id(self, exam) -> None:
        """Test that deleting an unknown id changes nothing."""
        store = PersistenceStore(MemoryKeyValueStore())
        store.save(_artifact(exam))

        assert store.delete("missing").ok
        assert len(store.list()) == 1

    def test_get(self, exam) -> None:
        """Test lookup by id."""
        store = PersistenceStore(MemoryKeyValueStore())
        artifact = _artifact(exam)
        store.save(artifact)

        assert store.get(artifact.id) == artifact
        assert store.get("missing") is None

    def test_quota_error(self, exam) -> None:
        """Test that running out of space gives the quota message."""
        store = PersistenceStore(MemoryKeyValueStore(quota_bytes=100))

        result = store.save(_artifact(exam))

        assert not result.ok
        assert isinstance(result.error, StorageQuotaExceeded)
        assert str(result.error) == QUOTA_MESSAGE
        # The in-memory list still shows the attempted change
        assert len(store.list()) == 1

    def test_other_write_error(self, exam) -> None:
        """Test that other write errors are reported separately."""
        store = PersistenceStore(BrokenKeyValueStore(RuntimeError("disk on fire")))

        result = store.save(_artifact(exam))

        assert isinstance(result.error, StorageWriteFailure)
        assert str(result.error) == WRITE_FAILURE_MESSAGE

    def test_quota_from_backend(self, exam) -> None:
        """Test that a backend quota error keeps its classification."""
        store = PersistenceStore(BrokenKeyValueStore(StorageQuotaExceeded("full")))

        result = store.save(_artifact(exam))

        assert isinstance(result.error, StorageQuotaExceeded)

    def test_corrupt_payload_reads_empty(self) -> None:
        """Test that undecodable content is treated as no saved tests."""
        kv = MemoryKeyValueStore()
        kv.set("saved_exams", "{not json")

        store = PersistenceStore(kv)

        assert store.list() == []
        assert isinstance(store.read_error, StorageReadCorrupt)

    def test_reload(self, exam) -> None:
        """Test that reload picks up writes made through another store."""
        kv = MemoryKeyValueStore()
        store = PersistenceStore(kv)
        PersistenceStore(kv).save(_artifact(exam))

        assert store.list() == []
        assert len(store.reload()) == 1


class TestFileKeyValueStore:
    """Tests for FileKeyValueStore."""

    def test_round_trip(self, tmp_path: Path) -> None:
        """Test that values are written as UTF-8 files."""
        kv = FileKeyValueStore(tmp_path / "store")

        kv.set("saved_exams", '["Đề Toán"]')

        assert kv.get("saved_exams") == '["Đề Toán"]'
        assert (tmp_path / "store" / "saved_exams.json").exists()
        assert list((tmp_path / "store").glob(".*.tmp")) == []

    def test_missing_key(self, tmp_path: Path) -> None:
        """Test that an absent key reads as None."""
        assert FileKeyValueStore(tmp_path).get("nothing") is None

    def test_delete(self, tmp_path: Path) -> None:
        """Test that delete removes the file and ignores absent keys."""
        kv = FileKeyValueStore(tmp_path)
        kv.set("a", "1")

        kv.delete("a")
        kv.delete("a")

        assert kv.get("a") is None

    def test_quota_counts_other_keys(self, tmp_path: Path) -> None:
        """Test that the quota covers every key in the directory."""
        kv = FileKeyValueStore(tmp_path, quota_bytes=15)
        kv.set("a", "x" * 10)

        kv.set("a", "y" * 15)
        with pytest.raises(StorageQuotaExceeded):
            kv.set("b", "z" * 5)

        assert kv.get("a") == "y" * 15
        assert kv.get("b") is None

    def test_invalid_key(self, tmp_path: Path) -> None:
        """Test that keys cannot escape the directory."""
        with pytest.raises(ValueError):
            FileKeyValueStore(tmp_path).get("../secrets")

    def test_disk_full_is_quota(self, tmp_path: Path, monkeypatch) -> None:
        """Test that ENOSPC is classified as a quota error."""

        def no_space(*args, **kwargs):
            raise OSError(errno.ENOSPC, "No space left on device")

        monkeypatch.setattr("examgen_core.storage.kv.os.replace", no_space)
        kv = FileKeyValueStore(tmp_path)

        with pytest.raises(StorageQuotaExceeded):
            kv.set("a", "1")
        assert list(tmp_path.iterdir()) == []

    def test_other_os_error_is_write_failure(self, tmp_path: Path, monkeypatch) -> None:
        """Test that other OS errors are write failures."""

        def denied(*args, **kwargs):
            raise PermissionError(errno.EACCES, "Permission denied")

        monkeypatch.setattr("examgen_core.storage.kv.os.replace", denied)

        with pytest.raises(StorageWriteFailure):
            FileKeyValueStore(tmp_path).set("a", "1")

    def test_persistence_store_on_disk(self, tmp_path: Path, exam) -> None:
        """Test the store end to end on the file backend."""
        store = PersistenceStore(FileKeyValueStore(tmp_path))
        artifact = _artifact(exam)
        store.save(artifact)

        reopened = PersistenceStore(FileKeyValueStore(tmp_path))

        assert reopened.get(artifact.id).display_name == artifact.display_name
