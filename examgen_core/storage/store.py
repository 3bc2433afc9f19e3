"""Saved test artifacts, persisted as one JSON list under a single key."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import TypeAdapter, ValidationError

from examgen_core.errors import (
    ExamGenError,
    StorageQuotaExceeded,
    StorageReadCorrupt,
    StorageWriteFailure,
)
from examgen_core.schemas.artifacts import SavedArtifact
from examgen_core.storage.kv import KeyValueStore
from examgen_core.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_STORAGE_KEY = "saved_exams"

QUOTA_MESSAGE = (
    "Not enough storage space to save this test. Please delete some older tests."
)
WRITE_FAILURE_MESSAGE = "An error occurred while saving the tests."

_ARTIFACT_LIST = TypeAdapter(list[SavedArtifact])


@dataclass(frozen=True)
class StoreResult:
    """Outcome of a write; ``error`` is None on success."""

    error: ExamGenError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class PersistenceStore:
    """Most-recent-first list of saved artifacts.

    The in-memory list always reflects the last requested change, even when
    writing it back failed. Write methods report failures through
    ``StoreResult`` and never raise.
    """

    def __init__(self, kv: KeyValueStore, key: str = DEFAULT_STORAGE_KEY):
        self._kv = kv
        self.key = key
        self.read_error: StorageReadCorrupt | None = None
        self._artifacts: list[SavedArtifact] = self._read()

    def _read(self) -> list[SavedArtifact]:
        self.read_error = None
        try:
            raw = self._kv.get(self.key)
            if raw is None:
                return []
            artifacts = _ARTIFACT_LIST.validate_json(raw)
        except (ValidationError, OSError, UnicodeDecodeError) as e:
            self.read_error = StorageReadCorrupt(f"Saved tests could not be read: {e}")
            logger.warning(f"Ignoring unreadable saved tests under {self.key!r}: {e}")
            return []

        logger.info(f"Loaded {len(artifacts)} saved tests")
        return artifacts

    def reload(self) -> list[SavedArtifact]:
        """Re-read the list from the underlying store."""
        self._artifacts = self._read()
        return self.list()

    def list(self) -> list[SavedArtifact]:
        return list(self._artifacts)

    def get(self, artifact_id: str) -> SavedArtifact | None:
        for artifact in self._artifacts:
            if artifact.id == artifact_id:
                return artifact
        return None

    def save(self, artifact: SavedArtifact) -> StoreResult:
        """Put an artifact at the front of the list and write the list back."""
        self._artifacts = [artifact, *self._artifacts]
        logger.info(f"Saving test {artifact.id} ({artifact.display_name})")
        return self._write()

    def delete(self, artifact_id: str) -> StoreResult:
        """Remove an artifact by id.

        Confirming the deletion with the user is the caller's job.
        """
        remaining = [a for a in self._artifacts if a.id != artifact_id]
        if len(remaining) == len(self._artifacts):
            logger.warning(f"No saved test with id {artifact_id}")
            return StoreResult()
        self._artifacts = remaining
        logger.info(f"Deleting test {artifact_id}")
        return self._write()

    def _write(self) -> StoreResult:
        payload = _ARTIFACT_LIST.dump_json(self._artifacts).decode("utf-8")
        try:
            self._kv.set(self.key, payload)
        except StorageQuotaExceeded as e:
            logger.error(f"Storage quota exceeded: {e}")
            return StoreResult(error=StorageQuotaExceeded(QUOTA_MESSAGE))
        except Exception as e:
            logger.error(f"Failed to write saved tests: {e}")
            return StoreResult(error=StorageWriteFailure(WRITE_FAILURE_MESSAGE))
        return StoreResult()
